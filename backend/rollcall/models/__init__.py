"""Models package."""
from .session import AttendanceEntry, Session

__all__ = ['AttendanceEntry', 'Session']
