# src/jetworker/worker/tracker.py
"""
In-flight job tracking.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional


class InFlightTracker:
    """
    Counts job invocations that are currently executing.

    The count is shared between the thread running jobs and the thread
    performing a graceful stop, so every access goes through a condition
    variable and ``wait_for_drain`` never sees a stale zero.
    """

    def __init__(self):
        self._count = 0
        self._condition = threading.Condition()

    def __repr__(self) -> str:
        return f"<InFlightTracker count={self.count}>"

    @property
    def count(self) -> int:
        with self._condition:
            return self._count

    @property
    def is_idle(self) -> bool:
        return self.count == 0

    def acquire(self) -> None:
        with self._condition:
            self._count += 1

    def release(self) -> None:
        with self._condition:
            if self._count == 0:
                raise RuntimeError("release() called more times than acquire()")
            self._count -= 1
            if self._count == 0:
                self._condition.notify_all()

    @contextmanager
    def track(self) -> Iterator[None]:
        """Count the enclosed block as one in-flight invocation."""
        self.acquire()
        try:
            yield
        finally:
            self.release()

    def wait_for_drain(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no invocation is in flight.

        Returns:
            True once drained, False if ``timeout`` elapsed first.
        """
        with self._condition:
            return self._condition.wait_for(lambda: self._count == 0, timeout)
