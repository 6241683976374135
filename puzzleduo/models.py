import threading
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple

ROLE_A = 'A'
ROLE_B = 'B'
ROLES = (ROLE_A, ROLE_B)

MAX_MEMBERS = 2

DEFAULT_SUCCESS_MESSAGE = 'Stage cleared! Well done.'
DEFAULT_FAILURE_MESSAGE = 'Incorrect. Try again from the first step.'


class Outcome(str, Enum):
    """Result of handling one inbound event against a session."""
    IGNORED = 'ignored'
    WRONG_TURN = 'wrong_turn'
    ACCEPTED = 'accepted'
    CLEARED = 'cleared'
    INCORRECT = 'incorrect'
    ADVANCED = 'advanced'
    COMPLETE = 'complete'


class StepCheck(str, Enum):
    NO_STEP = 'no_step'
    WRONG_TURN = 'wrong_turn'
    ACCEPTED = 'accepted'
    COMPLETED = 'completed'
    INCORRECT = 'incorrect'


class Step(NamedTuple):
    role: str
    value: str

    def to_dict(self):
        return {'role': self.role, 'value': self.value}


class Member(NamedTuple):
    connection_id: str
    role: str


class SequencePuzzle:
    """A stage solved by entering ``sequence`` in order, each step by its role."""
    kind = 'sequence'

    def __init__(self, stage: int, hint: str, options: Sequence[str], sequence: Sequence[Tuple[str, str]],
                 success_message: Optional[str] = None, failure_message: Optional[str] = None):
        self.stage = stage
        self.hint = hint
        self.options = list(options)
        self.sequence = tuple(Step(role, value) for role, value in sequence)
        self.success_message = success_message
        self.failure_message = failure_message

    @property
    def step_count(self) -> int:
        return len(self.sequence)

    def expected_step(self, position: int) -> Optional[Step]:
        if 0 <= position < len(self.sequence):
            return self.sequence[position]
        return None

    def next_role(self, position: int) -> Optional[str]:
        step = self.expected_step(position)
        return step.role if step else None

    def validate_step(self, position: int, role: str, value) -> StepCheck:
        expected = self.expected_step(position)
        if expected is None:
            return StepCheck.NO_STEP
        if expected.role != role:
            return StepCheck.WRONG_TURN
        if expected.value != value:
            return StepCheck.INCORRECT
        if position + 1 == len(self.sequence):
            return StepCheck.COMPLETED
        return StepCheck.ACCEPTED

    def to_public_dict(self):
        # Required values stay on the server; the hint is what players share.
        return {
            'stage': self.stage,
            'kind': self.kind,
            'hint': self.hint,
            'options': list(self.options),
            'stepCount': self.step_count,
            'turnOrder': [step.role for step in self.sequence],
        }


class SingleAnswerPuzzle:
    """A stage solved by one correct value, submitted by either role."""
    kind = 'answer'
    step_count = 1

    def __init__(self, stage: int, hint: str, options: Sequence[str], answer: str,
                 success_message: Optional[str] = None, failure_message: Optional[str] = None):
        self.stage = stage
        self.hint = hint
        self.options = list(options)
        self.answer = answer
        self.success_message = success_message
        self.failure_message = failure_message

    def next_role(self, position: int) -> Optional[str]:
        return None

    def validate_step(self, position: int, role: str, value) -> StepCheck:
        if position >= self.step_count:
            return StepCheck.NO_STEP
        if value == self.answer:
            return StepCheck.COMPLETED
        return StepCheck.INCORRECT

    def to_public_dict(self):
        return {
            'stage': self.stage,
            'kind': self.kind,
            'hint': self.hint,
            'options': list(self.options),
            'stepCount': self.step_count,
            'turnOrder': [],
        }


class Question:
    def __init__(self, id: int, prompt: str, options: Sequence[str], answer: str, explanation: str):
        self.id = id
        self.prompt = prompt
        self.options = list(options)
        self.answer = answer
        self.explanation = explanation

    def to_public_dict(self):
        # answer and explanation are only revealed through answerResult
        return {
            'id': self.id,
            'prompt': self.prompt,
            'options': list(self.options),
        }


class CooperativeSession:
    """Live state of one two-seat cooperative room."""

    def __init__(self, id: str, puzzle, now: float = 0.0):
        self.id = id
        self.members: List[Member] = []
        self.stage = 1
        self.puzzle = puzzle
        self.progress: List[Step] = []
        self.started = False
        self.cleared = False
        self.closed = False
        self.last_activity = now
        self.lock = threading.RLock()

    def role_of(self, connection_id: str) -> Optional[str]:
        for member in self.members:
            if member.connection_id == connection_id:
                return member.role
        return None

    def vacant_role(self) -> Optional[str]:
        taken = {m.role for m in self.members}
        for role in ROLES:
            if role not in taken:
                return role
        return None

    @property
    def next_role(self) -> Optional[str]:
        return self.puzzle.next_role(len(self.progress))

    def progress_payload(self):
        return {
            'progress': [step.to_dict() for step in self.progress],
            'cleared': self.cleared,
            'nextRole': self.next_role,
        }

    def to_dict(self):
        return {
            'sessionId': self.id,
            'type': 'cooperative',
            'members': [{'role': m.role} for m in self.members],
            'stage': self.stage,
            'started': self.started,
            'cleared': self.cleared,
            'progress': [step.to_dict() for step in self.progress],
            'nextRole': self.next_role,
            'puzzle': self.puzzle.to_public_dict(),
        }


class QuizSession:
    """Live state of one single-player quiz run."""

    def __init__(self, id: str, owner_id: str, total_questions: int, now: float = 0.0):
        self.id = id
        self.owner_id = owner_id
        self.current_question_id = 1
        self.total_questions = total_questions
        self.revealed = False
        self.closed = False
        self.last_activity = now
        self.lock = threading.RLock()

    @property
    def complete(self) -> bool:
        return self.current_question_id > self.total_questions

    def to_dict(self):
        return {
            'sessionId': self.id,
            'type': 'quiz',
            'questionIndex': self.current_question_id,
            'total': self.total_questions,
            'revealed': self.revealed,
        }
