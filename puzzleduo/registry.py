"""In-process registry of live cooperative and quiz sessions.

One registry is built per application in ``create_app`` and handed to the
state machines; nothing here is module-global.

Locking
-------
``_lock`` guards the two dictionaries only and is never held while a
session lock is being acquired. Each session carries its own ``RLock``;
``locked()`` yields a session with that lock held so a mutation and the
broadcasts it triggers are applied atomically per session.
"""

import logging
import random
import string
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from puzzleduo.catalog import PuzzleCatalog, QuestionCatalog
from puzzleduo.errors import SessionFull, SessionNotFound
from puzzleduo.models import MAX_MEMBERS, ROLE_A, CooperativeSession, Member, QuizSession

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


class JoinResult(NamedTuple):
    role: str
    ready: bool


class PeerNotice(NamedTuple):
    session_id: str
    connection_id: str


class Removal(NamedTuple):
    peer_notices: List[PeerNotice]
    deleted: List[str]

    @property
    def empty(self) -> bool:
        return not self.peer_notices and not self.deleted


def normalize_code(session_id) -> str:
    if not isinstance(session_id, str):
        return ''
    return session_id.strip().upper()


class SessionRegistry:
    def __init__(self, puzzles: PuzzleCatalog, questions: QuestionCatalog,
                 code_length: int = 6, clock: Callable[[], float] = time.monotonic):
        self.puzzles = puzzles
        self.questions = questions
        self.code_length = code_length
        self._clock = clock
        self._cooperative: Dict[str, CooperativeSession] = {}
        self._quiz: Dict[str, QuizSession] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _generate_code(self) -> str:
        """Generate a short code not used by any live session. Caller holds ``_lock``."""
        while True:
            code = ''.join(random.choices(CODE_ALPHABET, k=self.code_length))
            if code not in self._cooperative and code not in self._quiz:
                return code

    def create_cooperative(self, creator_id: str) -> Tuple[str, str]:
        with self._lock:
            code = self._generate_code()
            session = CooperativeSession(code, self.puzzles.get(1), now=self._clock())
            session.members.append(Member(creator_id, ROLE_A))
            self._cooperative[code] = session
        logger.info(f"[room-created] code={code} creator={creator_id}")
        return code, ROLE_A

    def create_quiz(self, owner_id: str) -> str:
        with self._lock:
            code = self._generate_code()
            self._quiz[code] = QuizSession(code, owner_id, self.questions.total, now=self._clock())
        logger.info(f"[quiz-created] code={code} owner={owner_id}")
        return code

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, session_id, kind: Optional[type] = None):
        code = normalize_code(session_id)
        with self._lock:
            session = self._cooperative.get(code) or self._quiz.get(code)
        if session is None or (kind is not None and not isinstance(session, kind)):
            raise SessionNotFound(code or str(session_id))
        return session

    @contextmanager
    def locked(self, session_id, kind: Optional[type] = None, touch: bool = True):
        """Yield the session with its lock held.

        Raises ``SessionNotFound`` when the code is unknown or the session
        was torn down while this caller waited for the lock.
        """
        session = self.get(session_id, kind)
        with session.lock:
            if session.closed:
                raise SessionNotFound(session.id)
            if touch:
                session.last_activity = self._clock()
            yield session

    def __contains__(self, session_id) -> bool:
        code = normalize_code(session_id)
        with self._lock:
            return code in self._cooperative or code in self._quiz

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return {'cooperative': len(self._cooperative), 'quiz': len(self._quiz)}

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def join_cooperative(self, session_id, joiner_id: str) -> JoinResult:
        with self.locked(session_id, CooperativeSession) as session:
            existing = session.role_of(joiner_id)
            if existing is not None:
                return JoinResult(existing, False)
            if len(session.members) >= MAX_MEMBERS:
                raise SessionFull(session.id)
            role = session.vacant_role()
            session.members.append(Member(joiner_id, role))
            ready = len(session.members) == MAX_MEMBERS
            if ready:
                session.started = True
            logger.info(f"[room-joined] code={session.id} sid={joiner_id} role={role} members={len(session.members)}")
            return JoinResult(role, ready)

    def remove_member(self, connection_id: str) -> Removal:
        """Drop a connection from every session it belongs to.

        Cooperative sessions left empty are deleted; otherwise each remaining
        member gets a peer notice. Quiz sessions owned by the connection are
        deleted outright. Calling again for the same connection is a no-op.
        """
        with self._lock:
            rooms = [s for s in self._cooperative.values() if s.role_of(connection_id) is not None]
            quizzes = [s for s in self._quiz.values() if s.owner_id == connection_id]

        notices: List[PeerNotice] = []
        deleted: List[str] = []
        for session in rooms:
            with session.lock:
                if session.closed:
                    continue
                remaining = [m for m in session.members if m.connection_id != connection_id]
                if len(remaining) == len(session.members):
                    continue
                session.members = remaining
                if not remaining:
                    self.destroy(session)
                    deleted.append(session.id)
                else:
                    notices.extend(PeerNotice(session.id, m.connection_id) for m in remaining)
        for session in quizzes:
            with session.lock:
                if session.closed:
                    continue
                self.destroy(session)
                deleted.append(session.id)
        return Removal(notices, deleted)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def destroy(self, session) -> None:
        """Remove a session from the store. Caller holds ``session.lock``."""
        session.closed = True
        with self._lock:
            if self._cooperative.get(session.id) is session:
                del self._cooperative[session.id]
            if self._quiz.get(session.id) is session:
                del self._quiz[session.id]
        logger.info(f"[session-destroyed] code={session.id}")

    def idle_sessions(self, max_idle: float, now: Optional[float] = None) -> list:
        now = self._clock() if now is None else now
        with self._lock:
            every = list(self._cooperative.values()) + list(self._quiz.values())
        return [s for s in every if now - s.last_activity > max_idle]

    def is_idle(self, session, max_idle: float, now: Optional[float] = None) -> bool:
        now = self._clock() if now is None else now
        return now - session.last_activity > max_idle

    def close(self) -> None:
        with self._lock:
            every = list(self._cooperative.values()) + list(self._quiz.values())
            self._cooperative.clear()
            self._quiz.clear()
        for session in every:
            session.closed = True
        if every:
            logger.info(f"[registry-closed] dropped={len(every)}")
