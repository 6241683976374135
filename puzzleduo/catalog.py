"""Static puzzle and question content.

Both catalogs are immutable tables indexed from 1. Lookups outside the
table fall back to the first entry instead of failing.
"""

from typing import List, Sequence

from puzzleduo.models import ROLE_A, ROLE_B, ROLES, Question, SequencePuzzle, SingleAnswerPuzzle


class PuzzleCatalog:
    def __init__(self, puzzles: Sequence):
        if not puzzles:
            raise ValueError('PuzzleCatalog needs at least one stage')
        self._puzzles = tuple(puzzles)

    @property
    def max_stage(self) -> int:
        return len(self._puzzles)

    def get(self, stage: int):
        if 1 <= stage <= len(self._puzzles):
            return self._puzzles[stage - 1]
        return self._puzzles[0]

    def __iter__(self):
        return iter(self._puzzles)

    def __len__(self):
        return len(self._puzzles)

    def problems(self) -> List[str]:
        """Return human-readable integrity problems, empty when the catalog is sound."""
        found = []
        for index, puzzle in enumerate(self._puzzles, start=1):
            if puzzle.stage != index:
                found.append(f'stage {index}: declares stage {puzzle.stage}')
            if isinstance(puzzle, SequencePuzzle):
                if not puzzle.sequence:
                    found.append(f'stage {index}: empty sequence')
                for position, step in enumerate(puzzle.sequence):
                    if step.role not in ROLES:
                        found.append(f'stage {index}: step {position} has unknown role {step.role!r}')
            elif isinstance(puzzle, SingleAnswerPuzzle):
                if puzzle.answer not in puzzle.options:
                    found.append(f'stage {index}: answer {puzzle.answer!r} is not one of the options')
            else:
                found.append(f'stage {index}: unsupported puzzle type {type(puzzle).__name__}')
        return found


class QuestionCatalog:
    def __init__(self, questions: Sequence[Question]):
        if not questions:
            raise ValueError('QuestionCatalog needs at least one question')
        self._questions = tuple(questions)

    @property
    def total(self) -> int:
        return len(self._questions)

    def get(self, question_id: int) -> Question:
        if 1 <= question_id <= len(self._questions):
            return self._questions[question_id - 1]
        return self._questions[0]

    def __iter__(self):
        return iter(self._questions)

    def __len__(self):
        return len(self._questions)

    def problems(self) -> List[str]:
        found = []
        for index, question in enumerate(self._questions, start=1):
            if question.id != index:
                found.append(f'question {index}: declares id {question.id}')
            if question.answer not in question.options:
                found.append(f'question {index}: answer {question.answer!r} is not one of the options')
        return found


DEFAULT_PUZZLES = (
    SequencePuzzle(
        stage=1,
        hint='Hunt down the leaked file: search the log directory by name for anything containing "secret".',
        options=['find', 'grep', '/var/log', '/etc', '-name', '-type', '"*secret*"', '"*.conf"'],
        sequence=[
            (ROLE_A, 'find'),
            (ROLE_B, '/var/log'),
            (ROLE_A, '-name'),
            (ROLE_B, '"*secret*"'),
        ],
        success_message='find /var/log -name "*secret*" -- the leaked file is located.',
        failure_message='The command broke. Start again from the first word.',
    ),
    SingleAnswerPuzzle(
        stage=2,
        hint='The intruder logged in over an encrypted remote shell. Which port did they use?',
        options=['21', '22', '80', '443'],
        answer='22',
        success_message='Port 22 -- the SSH door is now closed.',
        failure_message='That port was never open. Look at the hint again.',
    ),
    SequencePuzzle(
        stage=3,
        hint='Lock the private key so only its owner can read it.',
        options=['chmod', 'chown', '600', '777', '~/.ssh/id_rsa', '/tmp'],
        sequence=[
            (ROLE_B, 'chmod'),
            (ROLE_A, '600'),
            (ROLE_B, '~/.ssh/id_rsa'),
        ],
        success_message='chmod 600 ~/.ssh/id_rsa -- the key is safe.',
    ),
)

DEFAULT_QUESTIONS = (
    Question(
        id=1,
        prompt='Which command prints the current working directory?',
        options=['ls', 'pwd', 'cd', 'whoami'],
        answer='pwd',
        explanation='pwd (print working directory) shows the absolute path of the current directory.',
    ),
    Question(
        id=2,
        prompt='Which command lists files including hidden ones?',
        options=['ls', 'ls -a', 'dir', 'cat'],
        answer='ls -a',
        explanation='The -a flag makes ls include entries whose names start with a dot.',
    ),
    Question(
        id=3,
        prompt='Which command shows the user you are logged in as?',
        options=['who', 'id -g', 'whoami', 'users'],
        answer='whoami',
        explanation='whoami prints the user name associated with the current effective user id.',
    ),
    Question(
        id=4,
        prompt='Which command searches file contents for a pattern?',
        options=['find', 'grep', 'sed', 'sort'],
        answer='grep',
        explanation='grep scans input lines and prints the ones matching a regular expression.',
    ),
    Question(
        id=5,
        prompt='Which permission mode makes a file readable and writable by its owner only?',
        options=['777', '644', '600', '400'],
        answer='600',
        explanation='600 grants read and write to the owner and nothing to group or others.',
    ),
)


def default_puzzle_catalog() -> PuzzleCatalog:
    return PuzzleCatalog(DEFAULT_PUZZLES)


def default_question_catalog() -> QuestionCatalog:
    return QuestionCatalog(DEFAULT_QUESTIONS)
