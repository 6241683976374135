import logging
from typing import Optional

from puzzleduo.broadcaster import EventBroadcaster
from puzzleduo.errors import SessionNotFound
from puzzleduo.models import (
    DEFAULT_FAILURE_MESSAGE,
    DEFAULT_SUCCESS_MESSAGE,
    ROLES,
    CooperativeSession,
    Outcome,
    Step,
    StepCheck,
)
from puzzleduo.registry import SessionRegistry

logger = logging.getLogger(__name__)

GAME_COMPLETE_MESSAGE = 'All stages cleared!'


class CooperativeSessionStateMachine:
    """Role assignment, stage progression and step validation for two-seat rooms.

    WaitingForPeer -> InProgress(stage) -> Cleared(stage) -> InProgress(stage + 1) -> ... -> Complete
    """

    def __init__(self, registry: SessionRegistry, broadcaster: EventBroadcaster):
        self.registry = registry
        self.broadcaster = broadcaster

    def _game_start_payload(self, session: CooperativeSession):
        return {
            'stage': session.stage,
            'puzzle': session.puzzle.to_public_dict(),
            'nextRole': session.next_role,
        }

    def create(self, connection_id: str) -> str:
        session_id, role = self.registry.create_cooperative(connection_id)
        try:
            with self.registry.locked(session_id, CooperativeSession):
                self.broadcaster.enter_session(connection_id, session_id)
                self.broadcaster.send_to(connection_id, 'roomCreated', {'sessionId': session_id, 'role': role})
        except SessionNotFound:
            # creator disconnected before the room was announced
            logger.info(f"[room-gone] code={session_id} creator={connection_id}")
        return session_id

    def join(self, session_id, connection_id: str) -> str:
        """Seat a second player. Raises ``SessionNotFound`` or ``SessionFull``."""
        with self.registry.locked(session_id, CooperativeSession) as session:
            joined = self.registry.join_cooperative(session.id, connection_id)
            self.broadcaster.enter_session(connection_id, session.id)
            self.broadcaster.send_to(connection_id, 'roomJoined', {'sessionId': session.id, 'role': joined.role})
            if joined.ready:
                self.broadcaster.send_to_session(session.id, 'gameStart', self._game_start_payload(session))
                logger.info(f"[game-start] code={session.id} stage={session.stage}")
            return joined.role

    def submit_action(self, session_id, connection_id: str, role: Optional[str], value) -> Outcome:
        try:
            with self.registry.locked(session_id, CooperativeSession) as session:
                return self._apply_action(session, connection_id, role, value)
        except SessionNotFound:
            return Outcome.IGNORED

    def _apply_action(self, session: CooperativeSession, connection_id: str, role: Optional[str], value) -> Outcome:
        if not session.started:
            return Outcome.IGNORED
        member_role = session.role_of(connection_id)
        if member_role is None:
            return Outcome.IGNORED
        if role is None:
            role = member_role
        if role not in ROLES:
            return Outcome.IGNORED

        puzzle = session.puzzle
        check = puzzle.validate_step(len(session.progress), role, value)

        if check is StepCheck.NO_STEP:
            return Outcome.IGNORED

        if check is StepCheck.WRONG_TURN:
            expected = session.next_role
            self.broadcaster.send_to(connection_id, 'wrongTurn', {
                'message': f"It is Player {expected}'s turn.",
                'nextRole': expected,
            })
            outcome = Outcome.WRONG_TURN
        elif check is StepCheck.INCORRECT:
            session.progress = []
            session.cleared = False
            self.broadcaster.send_to_session(session.id, 'incorrect', {
                'message': puzzle.failure_message or DEFAULT_FAILURE_MESSAGE,
            })
            logger.info(f"[incorrect] code={session.id} stage={session.stage} role={role}")
            outcome = Outcome.INCORRECT
        else:
            session.progress.append(Step(role, value))
            outcome = Outcome.ACCEPTED
            if check is StepCheck.COMPLETED:
                session.cleared = True
                self.broadcaster.send_to_session(session.id, 'stageClear', {
                    'stage': session.stage,
                    'message': puzzle.success_message or DEFAULT_SUCCESS_MESSAGE,
                })
                logger.info(f"[stage-clear] code={session.id} stage={session.stage}")
                outcome = Outcome.CLEARED

        self.broadcaster.send_to_session(session.id, 'progressUpdate', session.progress_payload())
        return outcome

    def advance_stage(self, session_id, expected_stage: Optional[int] = None) -> Outcome:
        """Move the session to the next stage.

        When ``expected_stage`` is given and no longer matches the current
        stage the request is ignored, so two "next stage" clicks sent for the
        same stage advance only once.
        """
        try:
            with self.registry.locked(session_id, CooperativeSession) as session:
                if expected_stage is not None and expected_stage != session.stage:
                    return Outcome.IGNORED
                session.stage += 1
                session.progress = []
                session.cleared = False

                if session.stage > self.registry.puzzles.max_stage:
                    self.broadcaster.send_to_session(session.id, 'gameComplete', {'message': GAME_COMPLETE_MESSAGE})
                    self.registry.destroy(session)
                    self.broadcaster.close_session(session.id)
                    logger.info(f"[game-complete] code={session.id}")
                    return Outcome.COMPLETE

                session.puzzle = self.registry.puzzles.get(session.stage)
                self.broadcaster.send_to_session(session.id, 'gameStart', self._game_start_payload(session))
                logger.info(f"[next-stage] code={session.id} stage={session.stage}")
                return Outcome.ADVANCED
        except SessionNotFound:
            return Outcome.IGNORED
