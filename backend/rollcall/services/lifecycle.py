"""Session lifecycle: creation, periodic token rotation and ending."""
import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from rollcall.models.session import Session
from rollcall.services.event_bus import SessionEventBus
from rollcall.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class RotationTask:
    """Background thread rotating one session's token at a fixed interval.

    The loop ends when it is cancelled, when ``keep_going`` says nobody
    is displaying the session any more, or when the store refuses to
    rotate (session ended or removed).
    """

    def __init__(self, session_id: str, interval: float,
                 rotate: Callable[[str], Optional[str]],
                 on_finished: Callable[['RotationTask'], None] = None,
                 keep_going: Callable[['RotationTask'], bool] = None):
        self.session_id = session_id
        self.interval = interval
        self._rotate = rotate
        self._on_finished = on_finished
        self._keep_going = keep_going
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"rotation-{session_id}",
            daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def cancel(self, timeout: float = None) -> None:
        self._stop.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout if timeout is not None else self.interval * 2 + 1)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        try:
            while not self._stop.wait(self.interval):
                if self._keep_going and not self._keep_going(self):
                    break
                if self._rotate(self.session_id) is None:
                    break
        finally:
            if self._on_finished:
                self._on_finished(self)


class SessionLifecycleController:
    """Creates sessions, keeps their tokens rotating and ends them.

    A rotation loop runs only while an active session is being shown.
    A session counts as shown while an event stream viewer is attached
    (:meth:`attach_viewer`) or while a polling display has called
    :meth:`touch` within the last ``idle_intervals`` rotation intervals.
    Once neither holds, the loop stops by itself; the next viewer or
    poll starts it again.
    """

    def __init__(self, store: SessionStore, event_bus: SessionEventBus,
                 rotation_interval: float = 2.0, rotation_enabled: bool = True,
                 idle_intervals: int = 5):
        self.store = store
        self.event_bus = event_bus
        self.rotation_interval = rotation_interval
        self.rotation_enabled = rotation_enabled
        self.idle_timeout = rotation_interval * idle_intervals
        self._tasks: Dict[str, RotationTask] = {}
        self._viewers: Dict[str, int] = {}
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def start_session(self, name: str) -> Session:
        """Create a session and publish its first token.

        The creating page is its first display, so the session starts
        out as recently seen.
        """
        session = self.store.create(name)
        self.publish(session.id)
        self.touch(session.id)
        return session

    def rotate_now(self, session_id: str) -> Optional[str]:
        token = self.store.rotate_token(session_id)
        if token is not None:
            self.publish(session_id)
        return token

    def end_session(self, session_id: str) -> Optional[Session]:
        """End a session and cancel its rotation loop. Safe to call twice."""
        session = self.store.end(session_id)
        if session is None:
            return None

        self._stop_rotation(session_id)
        with self._lock:
            self._last_seen.pop(session_id, None)
        self.publish(session_id)
        return session

    def publish(self, session_id: str) -> None:
        """Notify viewers that the session changed. Never blocks on them."""
        self.event_bus.publish(session_id)

    def touch(self, session_id: str) -> bool:
        """Record that a polling display just showed the session.

        Restarts rotation if it had stopped for lack of viewers. Returns
        False for unknown or ended sessions.
        """
        if not self._is_live(session_id):
            return False

        with self._lock:
            self._last_seen[session_id] = time.monotonic()

        if self.rotation_enabled:
            self._start_rotation(session_id)
        return True

    def attach_viewer(self, session_id: str) -> Optional[Session]:
        session = self.store.get(session_id)
        if session is None:
            return None

        with self._lock:
            self._viewers[session_id] = self._viewers.get(session_id, 0) + 1
            count = self._viewers[session_id]

        logger.debug(f"Viewer attached to {session_id} ({count} watching)")
        if session.is_active and self.rotation_enabled:
            self._start_rotation(session_id)
        return session

    def detach_viewer(self, session_id: str) -> None:
        with self._lock:
            count = self._viewers.get(session_id, 0) - 1
            if count > 0:
                self._viewers[session_id] = count
                return
            self._viewers.pop(session_id, None)
            if self._recently_seen(session_id):
                return

        logger.debug(f"Last viewer left {session_id}, stopping rotation")
        self._stop_rotation(session_id)

    def viewer_count(self, session_id: str) -> int:
        with self._lock:
            return self._viewers.get(session_id, 0)

    def is_rotating(self, session_id: str) -> bool:
        with self._lock:
            task = self._tasks.get(session_id)
        return task is not None and not task.cancelled

    def cleanup(self, max_age: timedelta) -> List[str]:
        """Drop stale sessions from the store along with their loops and viewers."""
        removed = self.store.cleanup(max_age)
        for session_id in removed:
            self._stop_rotation(session_id)
            with self._lock:
                self._viewers.pop(session_id, None)
                self._last_seen.pop(session_id, None)
            self.event_bus.forget(session_id)
        return removed

    def shutdown(self) -> None:
        """Cancel every rotation loop."""
        with self._lock:
            tasks = list(self._tasks.values())
            self._tasks.clear()
            self._viewers.clear()
            self._last_seen.clear()

        for task in tasks:
            task.cancel()

        if tasks:
            logger.info(f"Stopped {len(tasks)} rotation loop(s)")

    def _is_live(self, session_id: str) -> bool:
        with self.store.locked(session_id):
            session = self.store.peek(session_id)
            return session is not None and session.is_active

    def _recently_seen(self, session_id: str) -> bool:
        # caller holds self._lock
        last_seen = self._last_seen.get(session_id)
        return last_seen is not None and time.monotonic() - last_seen <= self.idle_timeout

    def _keep_rotating(self, task: RotationTask) -> bool:
        session_id = task.session_id
        with self._lock:
            if self._viewers.get(session_id, 0) > 0 or self._recently_seen(session_id):
                return True
            # unregister while holding the lock so a concurrent touch starts a fresh loop
            if self._tasks.get(session_id) is task:
                del self._tasks[session_id]
            self._last_seen.pop(session_id, None)

        logger.debug(f"Nobody is showing {session_id}, stopping rotation")
        return False

    def _start_rotation(self, session_id: str) -> None:
        with self._lock:
            task = self._tasks.get(session_id)
            if task is not None and not task.cancelled:
                return

            task = RotationTask(
                session_id,
                self.rotation_interval,
                self.rotate_now,
                on_finished=self._task_finished,
                keep_going=self._keep_rotating
            )
            self._tasks[session_id] = task

        task.start()
        logger.debug(f"Started token rotation for {session_id} every {self.rotation_interval}s")

    def _stop_rotation(self, session_id: str) -> bool:
        with self._lock:
            task = self._tasks.pop(session_id, None)

        # join outside the lock; the finishing thread takes it in _task_finished
        if task is None:
            return False
        task.cancel()
        return True

    def _task_finished(self, task: RotationTask) -> None:
        with self._lock:
            if self._tasks.get(task.session_id) is task:
                del self._tasks[task.session_id]
