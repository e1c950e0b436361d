"""
In-memory study sessions.

A session holds the working note: the most recent summary, which chat and
quiz requests use as their grounding context. Nothing is persisted.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from app.core.config import settings
from app.core.exceptions import NoContextAvailable
from app.core.logging_config import get_logger

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StudySession:
    session_id: str
    working_note: str = ""
    last_used: datetime = field(default_factory=_now)

    @property
    def has_note(self) -> bool:
        return bool(self.working_note.strip())

    def set_note(self, note: str) -> None:
        """Replace the working note. Concurrent summaries: last write wins."""
        self.working_note = note
        self.touch()

    def require_note(self) -> str:
        if not self.has_note:
            raise NoContextAvailable()
        self.touch()
        return self.working_note

    def clear(self) -> None:
        self.working_note = ""

    def touch(self) -> None:
        self.last_used = _now()


class SessionStore:
    """Maps session ids to sessions; idle sessions expire after ``ttl``.

    Request dependencies run in FastAPI's threadpool, so every access to the
    session map holds ``_lock``.
    """

    def __init__(self, ttl: timedelta | None = None):
        self.ttl = ttl or timedelta(minutes=settings.session_ttl_minutes)
        self._sessions: dict[str, StudySession] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _is_expired(self, session: StudySession) -> bool:
        return _now() - session.last_used >= self.ttl

    def purge_expired(self) -> int:
        with self._lock:
            expired = [sid for sid, s in list(self._sessions.items()) if self._is_expired(s)]
            purged = 0
            for sid in expired:
                session = self._sessions.pop(sid, None)
                if session is not None:
                    session.clear()
                    purged += 1
        if purged:
            logger.info(f"Expired {purged} idle study sessions")
        return purged

    def create(self) -> StudySession:
        session = StudySession(session_id=uuid.uuid4().hex)
        with self._lock:
            self._sessions[session.session_id] = session
        logger.debug(f"Created study session {session.session_id[:8]}")
        return session

    def get(self, session_id: str | None) -> StudySession | None:
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if self._is_expired(session):
                self.end(session_id)
                return None
            return session

    def get_or_create(self, session_id: str | None) -> StudySession:
        with self._lock:
            self.purge_expired()
            return self.get(session_id) or self.create()

    def end(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.clear()
        logger.debug(f"Ended study session {session_id[:8]}")
        return True


session_store = SessionStore()
