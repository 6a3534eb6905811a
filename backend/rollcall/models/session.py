"""Attendance session and attendance entry models."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AttendanceEntry:
    """A recorded, accepted check-in."""

    name: str
    timestamp: datetime
    token: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'name': self.name,
            'timestamp': self.timestamp.isoformat(),
            'token': self.token
        }


@dataclass
class Session:
    """One attendance-taking event, e.g. a single class meeting.

    ``current_token`` is the only token accepted for check-in.
    ``token_history`` keeps every token ever issued (first one included)
    and is never used for validation. ``is_active`` only ever goes from
    True to False.
    """

    id: str
    name: str
    current_token: str
    created_at: datetime = field(default_factory=utcnow)
    token_history: List[str] = field(default_factory=list)
    attendees: List[AttendanceEntry] = field(default_factory=list)
    is_active: bool = True
    ended_at: Optional[datetime] = None
    _attendee_names: Set[str] = field(default_factory=set, repr=False, compare=False)

    def has_attendee(self, name: str) -> bool:
        return name in self._attendee_names

    def add_attendee(self, entry: AttendanceEntry) -> None:
        self.attendees.append(entry)
        self._attendee_names.add(entry.name)

    @property
    def attendee_count(self) -> int:
        return len(self.attendees)

    @property
    def rotation_count(self) -> int:
        """Number of rotations since creation."""
        return len(self.token_history) - 1

    def duration_seconds(self, now: datetime = None) -> float:
        end = self.ended_at or now or utcnow()
        return (end - self.created_at).total_seconds()

    def snapshot(self) -> 'Session':
        """Return an independent copy; attendance entries are immutable and shared."""
        return Session(
            id=self.id,
            name=self.name,
            current_token=self.current_token,
            created_at=self.created_at,
            token_history=list(self.token_history),
            attendees=list(self.attendees),
            is_active=self.is_active,
            ended_at=self.ended_at,
            _attendee_names=set(self._attendee_names)
        )

    def to_dict(self, include_history: bool = False) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {
            'id': self.id,
            'name': self.name,
            'current_token': self.current_token,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat(),
            'ended_at': self.ended_at.isoformat() if self.ended_at else None,
            'attendees': [entry.to_dict() for entry in self.attendees],
            'attendee_count': self.attendee_count,
            'rotation_count': self.rotation_count
        }

        if include_history:
            result['token_history'] = list(self.token_history)

        return result

    def __repr__(self) -> str:
        return f'<Session {self.id} {self.name!r} active={self.is_active}>'
