import logging
from typing import Optional

from puzzleduo.broadcaster import EventBroadcaster
from puzzleduo.errors import SessionNotFound
from puzzleduo.models import Outcome, QuizSession
from puzzleduo.registry import SessionRegistry

logger = logging.getLogger(__name__)

INCORRECT_ANSWER_MESSAGE = 'Incorrect. Try again.'
QUIZ_COMPLETE_MESSAGE = 'All questions answered!'


class QuizSessionStateMachine:
    """Linear question progression for single-player quiz sessions."""

    def __init__(self, registry: SessionRegistry, broadcaster: EventBroadcaster):
        self.registry = registry
        self.broadcaster = broadcaster

    def _question_payload(self, session: QuizSession):
        question = self.registry.questions.get(session.current_question_id)
        return {
            'question': question.to_public_dict(),
            'questionIndex': session.current_question_id,
            'total': session.total_questions,
        }

    def start(self, owner_id: str) -> str:
        session_id = self.registry.create_quiz(owner_id)
        try:
            with self.registry.locked(session_id, QuizSession) as session:
                self.broadcaster.enter_session(owner_id, session_id)
                payload = {'sessionId': session_id}
                payload.update(self._question_payload(session))
                self.broadcaster.send_to(owner_id, 'quizStarted', payload)
        except SessionNotFound:
            logger.info(f"[quiz-gone] code={session_id} owner={owner_id}")
        return session_id

    def submit_answer(self, session_id, answer, connection_id: Optional[str] = None) -> Outcome:
        try:
            with self.registry.locked(session_id, QuizSession) as session:
                if connection_id is not None and connection_id != session.owner_id:
                    return Outcome.IGNORED
                question = self.registry.questions.get(session.current_question_id)
                if answer == question.answer:
                    session.revealed = True
                    self.broadcaster.send_to_session(session.id, 'answerResult', {
                        'correct': True,
                        'explanation': question.explanation,
                    })
                    return Outcome.ACCEPTED
                self.broadcaster.send_to_session(session.id, 'answerResult', {
                    'correct': False,
                    'message': INCORRECT_ANSWER_MESSAGE,
                })
                return Outcome.INCORRECT
        except SessionNotFound:
            return Outcome.IGNORED

    def advance_question(self, session_id) -> Outcome:
        try:
            with self.registry.locked(session_id, QuizSession) as session:
                if not session.revealed:
                    return Outcome.IGNORED
                session.current_question_id += 1
                session.revealed = False

                if session.complete:
                    self.broadcaster.send_to_session(session.id, 'quizComplete', {
                        'message': QUIZ_COMPLETE_MESSAGE,
                        'total': session.total_questions,
                    })
                    self.registry.destroy(session)
                    self.broadcaster.close_session(session.id)
                    logger.info(f"[quiz-complete] code={session.id}")
                    return Outcome.COMPLETE

                self.broadcaster.send_to_session(session.id, 'questionUpdate', self._question_payload(session))
                return Outcome.ADVANCED
        except SessionNotFound:
            return Outcome.IGNORED
