from flask import current_app, request
from flask_socketio import emit
from puzzleduo import socketio
from puzzleduo.errors import SessionFull, SessionNotFound
from puzzleduo.services import GameServices
from typing import Any, Optional


def _services() -> GameServices:
    return current_app.extensions['puzzleduo']

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _payload(data: Any) -> dict:
    return data if isinstance(data, dict) else {}

def _session_id(data: Any) -> Optional[str]:
    """Accept a bare code or ``{sessionId}`` / legacy ``{roomId}``."""
    if isinstance(data, str):
        return data
    payload = _payload(data)
    session_id = payload.get('sessionId') or payload.get('roomId')
    return session_id if isinstance(session_id, str) else None

def _value(payload: dict, *keys: str):
    for key in keys:
        if key in payload:
            return payload[key]
    return None

def _emit_not_found() -> None:
    emit('notFoundError', {'message': 'A session code is required'})


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(*args):
    # Flask-SocketIO >= 5.4 passes a disconnect reason
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid}")
    _services().reconciler.handle_disconnect(sid)


def handle_create_cooperative(data=None):
    _services().cooperative.create(_get_sid())


def handle_join_cooperative(data=None):
    session_id = _session_id(data)
    if not session_id:
        _emit_not_found()
        return
    try:
        _services().cooperative.join(session_id, _get_sid())
    except SessionNotFound as exc:
        emit('notFoundError', {'message': exc.message})
    except SessionFull as exc:
        emit('fullError', {'message': exc.message})


def handle_submit_action(data=None):
    payload = _payload(data)
    session_id = _session_id(payload)
    value = _value(payload, 'value', 'action')
    role = payload.get('role')
    if not session_id or value is None:
        return
    _services().cooperative.submit_action(session_id, _get_sid(), role if isinstance(role, str) else None, value)


def handle_advance_stage(data=None):
    session_id = _session_id(data)
    if not session_id:
        return
    stage = _payload(data).get('stage')
    if not isinstance(stage, int) or isinstance(stage, bool):
        stage = None
    _services().cooperative.advance_stage(session_id, stage)


def handle_start_quiz(data=None):
    _services().quiz.start(_get_sid())


def handle_submit_answer(data=None):
    payload = _payload(data)
    session_id = _session_id(payload)
    answer = _value(payload, 'value', 'answer')
    if not session_id or answer is None:
        return
    _services().quiz.submit_answer(session_id, answer, _get_sid())


def handle_advance_question(data=None):
    session_id = _session_id(data)
    if not session_id:
        return
    _services().quiz.advance_question(session_id)


EVENT_HANDLERS = (
    ('createCooperative', handle_create_cooperative),
    ('joinCooperative', handle_join_cooperative),
    ('submitAction', handle_submit_action),
    ('advanceStage', handle_advance_stage),
    ('startQuiz', handle_start_quiz),
    ('submitAnswer', handle_submit_answer),
    ('advanceQuestion', handle_advance_question),
)

# Inbound event names used by the first web client. Outbound events and
# payload shapes are the current ones only.
LEGACY_ALIASES = (
    ('createRoom', handle_create_cooperative),
    ('joinRoom', handle_join_cooperative),
    ('nextStage', handle_advance_stage),
    ('submitQuizAnswer', handle_submit_answer),
    ('nextQuizQuestion', handle_advance_question),
)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``.

    Both the current event names and the legacy aliases are bound.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for name, handler in EVENT_HANDLERS + LEGACY_ALIASES:
        socketio.on_event(name, handler, namespace=namespace)
