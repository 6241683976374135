import os
import sys
import pytest

# Ensure the project root (containing the `puzzleduo` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from puzzleduo import create_app, socketio
from puzzleduo.broadcaster import EventBroadcaster
from puzzleduo.catalog import default_puzzle_catalog, default_question_catalog
from puzzleduo.registry import SessionRegistry
from puzzleduo.services import GameServices


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:3000']
    HOST = '127.0.0.1'
    PORT = 3001
    SOCKETIO_NAMESPACE = '/'
    SESSION_CODE_LENGTH = 6
    SESSION_IDLE_TIMEOUT_SEC = 0
    SWEEP_INTERVAL_SEC = 0
    LOG_LEVEL = 'DEBUG'


class RecordingBroadcaster(EventBroadcaster):
    """Captures outbound events instead of sending them."""

    def __init__(self):
        self.sent = []        # (target kind, target id, event, payload)
        self.groups = {}      # session id -> set of connection ids
        self.closed = []

    def send_to(self, connection_id, event, payload):
        self.sent.append(('connection', connection_id, event, payload))

    def send_to_session(self, session_id, event, payload):
        self.sent.append(('session', session_id, event, payload))

    def enter_session(self, connection_id, session_id):
        self.groups.setdefault(session_id, set()).add(connection_id)

    def close_session(self, session_id):
        self.groups.pop(session_id, None)
        self.closed.append(session_id)

    def events(self, name=None):
        return [s for s in self.sent if name is None or s[2] == name]

    def names(self):
        return [s[2] for s in self.sent]

    def clear(self):
        self.sent.clear()


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry(clock):
    reg = SessionRegistry(default_puzzle_catalog(), default_question_catalog(), clock=clock)
    yield reg
    reg.close()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def services(registry, broadcaster):
    return GameServices(registry, broadcaster)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
    application.extensions['puzzleduo'].close()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    """Build Socket.IO test clients; every client is disconnected on teardown."""
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        if test_client.is_connected():
            test_client.disconnect()


@pytest.fixture()
def sio_client(sio_factory):
    return sio_factory()
