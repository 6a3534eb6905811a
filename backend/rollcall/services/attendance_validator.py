"""Check-in validation against the current session token."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from rollcall.models.session import AttendanceEntry, utcnow
from rollcall.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class RejectionReason(Enum):
    """Stable identifiers for rejected check-ins."""
    SESSION_NOT_FOUND = 'SESSION_NOT_FOUND'
    SESSION_ENDED = 'SESSION_ENDED'
    TOKEN_EXPIRED = 'TOKEN_EXPIRED'
    INVALID_NAME = 'INVALID_NAME'
    DUPLICATE_ATTENDANCE = 'DUPLICATE_ATTENDANCE'


@dataclass(frozen=True)
class Accepted:
    entry: AttendanceEntry
    total_count: int
    accepted = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'accepted': True,
            'entry': self.entry.to_dict(),
            'total_count': self.total_count
        }


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    message: str
    student_name: Optional[str] = None
    accepted = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'accepted': False,
            'reason': self.reason.value,
            'student_name': self.student_name
        }


CheckinResult = Union[Accepted, Rejected]


class AttendanceValidator:
    """Decides whether a check-in is accepted.

    Rules are evaluated in a fixed order and the first failure wins:

    1. the session exists
    2. the session is active
    3. the token equals the session's current token exactly
    4. the trimmed name is non-empty and at least ``min_name_length`` characters
    5. nobody with the same trimmed name has checked in yet

    Rejections are returned, never raised. The validator keeps no state
    of its own; the check and the append happen under the session lock.
    """

    def __init__(self, store: SessionStore, min_name_length: int = 2):
        self.store = store
        self.min_name_length = min_name_length

    def validate(self, session_id: str, token: str, student_name: str) -> CheckinResult:
        name = student_name.strip() if isinstance(student_name, str) else ''

        with self.store.locked(session_id):
            session = self.store.peek(session_id)

            if session is None:
                return self._reject(
                    RejectionReason.SESSION_NOT_FOUND,
                    "Session not found. Please check the QR code.",
                    session_id
                )

            if not session.is_active:
                return self._reject(
                    RejectionReason.SESSION_ENDED,
                    "This session has ended. Attendance is closed.",
                    session_id
                )

            if token != session.current_token:
                return self._reject(
                    RejectionReason.TOKEN_EXPIRED,
                    "QR code has expired. Please re-scan the latest code.",
                    session_id
                )

            if not name or len(name) < self.min_name_length:
                message = (
                    f"Name must be at least {self.min_name_length} characters long."
                    if self.min_name_length > 1 else "Name is required."
                )
                return self._reject(
                    RejectionReason.INVALID_NAME,
                    message,
                    session_id
                )

            if session.has_attendee(name):
                return self._reject(
                    RejectionReason.DUPLICATE_ATTENDANCE,
                    f"{name} has already checked in.",
                    session_id,
                    student_name=name
                )

            entry = AttendanceEntry(name=name, timestamp=utcnow(), token=token)
            updated = self.store.append_attendee(session_id, entry)
            if updated is None:
                # removed by cleanup between lookup and append
                return self._reject(
                    RejectionReason.SESSION_NOT_FOUND,
                    "Session not found. Please check the QR code.",
                    session_id
                )

        logger.info(f"{name} checked in to {session_id} (#{updated.attendee_count})")
        return Accepted(entry=entry, total_count=updated.attendee_count)

    def _reject(self, reason: RejectionReason, message: str, session_id: str,
                student_name: str = None) -> Rejected:
        logger.info(f"Check-in rejected for {session_id}: {reason.value}")
        return Rejected(reason=reason, message=message, student_name=student_name)
