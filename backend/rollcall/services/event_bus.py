"""Versioned change notifications for session viewers."""
import threading
from typing import Dict


class SessionEventBus:
    """Tells viewers that a session changed, without queueing history.

    Each session has a version counter. ``publish`` bumps it and wakes
    waiters; a waiter then re-reads the latest state itself, so a slow
    viewer skips intermediate versions instead of falling behind.
    """

    def __init__(self):
        self._versions: Dict[str, int] = {}
        self._condition = threading.Condition()

    def get_version(self, key: str) -> int:
        with self._condition:
            return self._versions.get(key, 0)

    def publish(self, key: str) -> int:
        with self._condition:
            version = self._versions.get(key, 0) + 1
            self._versions[key] = version
            self._condition.notify_all()
            return version

    def wait_for_change(self, key: str, version: int, timeout: float = 30.0) -> int:
        """Block until the version of ``key`` differs from ``version`` or the timeout passes."""
        with self._condition:
            self._condition.wait_for(
                lambda: self._versions.get(key, 0) != version,
                timeout=timeout
            )
            return self._versions.get(key, 0)

    def forget(self, key: str) -> None:
        with self._condition:
            self._versions.pop(key, None)
            self._condition.notify_all()
