from abc import ABC, abstractmethod

from flask_socketio import SocketIO


class EventBroadcaster(ABC):
    """Outbound side of the event channel, as seen by the state machines.

    Sends are fire-and-forget: nothing waits for delivery and failed sends
    are not retried.
    """

    @abstractmethod
    def send_to(self, connection_id: str, event: str, payload: dict) -> None:
        ...

    @abstractmethod
    def send_to_session(self, session_id: str, event: str, payload: dict) -> None:
        ...

    @abstractmethod
    def enter_session(self, connection_id: str, session_id: str) -> None:
        """Subscribe a connection to events addressed to ``session_id``."""

    @abstractmethod
    def close_session(self, session_id: str) -> None:
        """Drop every subscription to ``session_id`` so a reused code starts clean."""


class SocketIOBroadcaster(EventBroadcaster):
    """Maps sessions onto Socket.IO rooms named after the session code."""

    def __init__(self, socketio: SocketIO, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def send_to(self, connection_id, event, payload):
        self.socketio.emit(event, payload, to=connection_id, namespace=self.namespace)

    def send_to_session(self, session_id, event, payload):
        self.socketio.emit(event, payload, to=session_id, namespace=self.namespace)

    def enter_session(self, connection_id, session_id):
        self.socketio.server.enter_room(connection_id, session_id, namespace=self.namespace)

    def close_session(self, session_id):
        self.socketio.close_room(session_id, namespace=self.namespace)
