from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TaskGroup:
    """
    Runs each task on its own thread and counts the ones still running.

    `wait()` blocks until the count drops to zero, which is what a graceful
    stop needs. The count is released when a task finishes, whether it
    returned or raised.
    """

    def __init__(self, name: str = "task"):
        self.name = name
        self._cond = threading.Condition()
        self._outstanding = 0
        self._closed = False
        self._seq = itertools.count(1)

    @property
    def outstanding(self) -> int:
        with self._cond:
            return self._outstanding

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def close(self) -> None:
        """Refuse new tasks. Tasks already admitted keep running."""
        with self._cond:
            self._closed = True

    def spawn(self, fn: Callable[..., object], *args) -> Optional[threading.Thread]:
        """Start `fn(*args)` on a new thread. Returns None once the group is closed."""
        with self._cond:
            if self._closed:
                return None
            self._outstanding += 1
        thread = threading.Thread(
            target=self._run,
            args=(fn, args),
            name=f"{self.name}-{next(self._seq)}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError:
            self._done()
            raise
        return thread

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for all tasks. Returns False if `timeout` expired first."""
        with self._cond:
            return self._cond.wait_for(lambda: self._outstanding == 0, timeout)

    def _run(self, fn: Callable[..., object], args: tuple) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("Task %s failed", threading.current_thread().name)
        finally:
            self._done()

    def _done(self) -> None:
        with self._cond:
            self._outstanding -= 1
            if self._outstanding == 0:
                self._cond.notify_all()
