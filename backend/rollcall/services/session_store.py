"""In-memory session store."""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Optional

from rollcall.models.session import AttendanceEntry, Session, utcnow
from rollcall.services.token_service import TokenService
from rollcall.utils.validators import InvalidNameError, Validator

logger = logging.getLogger(__name__)


class SessionStore:
    """Owns every session, keyed by session id.

    Mutations of one session are serialized through a per-session
    re-entrant lock, which callers can also take via :meth:`locked` to
    make a read-check-append sequence atomic.
    """

    def __init__(self, token_service: TokenService = None, max_name_length: int = 100):
        self.token_service = token_service or TokenService()
        self.max_name_length = max_name_length
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    def _session_lock(self, session_id: str) -> threading.RLock:
        with self._lock:
            lock = self._locks.get(session_id)
        # unknown ids get a throwaway lock so lookups never grow the map
        return lock or threading.RLock()

    @contextmanager
    def locked(self, session_id: str) -> Iterator[None]:
        """Hold the lock of one session for the duration of the block."""
        lock = self._session_lock(session_id)
        with lock:
            yield

    def peek(self, session_id: str) -> Optional[Session]:
        """Return the live session object. Only read it while holding :meth:`locked`."""
        with self._lock:
            return self._sessions.get(session_id)

    def create(self, name: str) -> Session:
        """Create a session with a fresh token."""
        result = Validator.validate_name(name, max_length=self.max_name_length)
        if not result['is_valid']:
            raise InvalidNameError(result['errors'][0])

        token = self.token_service.generate()
        with self._lock:
            session_id = self.token_service.generate_session_id()
            while session_id in self._sessions:
                session_id = self.token_service.generate_session_id()

            session = Session(
                id=session_id,
                name=name.strip(),
                current_token=token,
                token_history=[token]
            )
            self._sessions[session_id] = session
            self._locks[session_id] = threading.RLock()

        logger.info(f"Created session {session.name!r} ({session_id})")
        return session.snapshot()

    def get(self, session_id: str) -> Optional[Session]:
        """Snapshot of a session, or None."""
        with self.locked(session_id):
            session = self.peek(session_id)
            return session.snapshot() if session else None

    def list_sessions(self, active_only: bool = False) -> List[Session]:
        with self._lock:
            session_ids = list(self._sessions)

        sessions = []
        for session_id in session_ids:
            session = self.get(session_id)
            if session is None or (active_only and not session.is_active):
                continue
            sessions.append(session)

        return sorted(sessions, key=lambda s: s.created_at)

    def rotate_token(self, session_id: str) -> Optional[str]:
        """Install a new current token. Returns None for unknown or ended sessions."""
        with self.locked(session_id):
            session = self.peek(session_id)
            if session is None or not session.is_active:
                logger.debug(f"Skipped token rotation for missing or ended session {session_id}")
                return None

            token = self.token_service.generate()
            session.current_token = token
            session.token_history.append(token)

        logger.debug(f"Rotated token for {session_id}: {token[:8]}...")
        return token

    def append_attendee(self, session_id: str, entry: AttendanceEntry) -> Optional[Session]:
        """Append an entry. Duplicate and token checks belong to the caller."""
        with self.locked(session_id):
            session = self.peek(session_id)
            if session is None:
                return None

            session.add_attendee(entry)
            return session.snapshot()

    def end(self, session_id: str) -> Optional[Session]:
        """Mark a session as ended. Ending twice returns the same state."""
        with self.locked(session_id):
            session = self.peek(session_id)
            if session is None:
                logger.warning(f"Attempted to end unknown session {session_id}")
                return None

            if session.is_active:
                session.is_active = False
                session.ended_at = utcnow()
                logger.info(
                    f"Ended session {session.name!r} ({session_id}): "
                    f"{session.attendee_count} attendees, "
                    f"{len(session.token_history)} tokens issued, "
                    f"{round(session.duration_seconds() / 60)} minutes"
                )

            return session.snapshot()

    def statistics(self, session_id: str) -> Optional[Dict]:
        session = self.get(session_id)
        if session is None:
            return None

        return {
            'attendee_count': session.attendee_count,
            'rotation_count': session.rotation_count,
            'tokens_issued': len(session.token_history),
            'duration_seconds': round(session.duration_seconds(), 1),
            'is_active': session.is_active
        }

    def cleanup(self, max_age: timedelta = timedelta(hours=24), now: datetime = None) -> List[str]:
        """Drop sessions created more than ``max_age`` ago. Returns the removed ids."""
        cutoff = (now or datetime.now(timezone.utc)) - max_age
        removed = []

        with self._lock:
            for session_id, session in list(self._sessions.items()):
                if session.created_at < cutoff:
                    del self._sessions[session_id]
                    self._locks.pop(session_id, None)
                    removed.append(session_id)

        for session_id in removed:
            logger.info(f"Removed stale session {session_id}")

        return removed

    def export_data(self) -> Dict:
        """JSON-ready dump of every session."""
        return {
            'sessions': [
                session.to_dict(include_history=True)
                for session in self.list_sessions()
            ],
            'export_time': utcnow().isoformat()
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
