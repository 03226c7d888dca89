"""Bounded permit pool capping in-flight crawl units."""

from __future__ import annotations

import threading
from concurrent.futures import Future

from matchgraph.core.constants import DEFAULT_MAX_CONCURRENCY


class ConcurrencyLimiter:
    """Counting semaphore with a fixed number of permits.

    Releasing more permits than were acquired raises ``ValueError``.
    """

    def __init__(self, capacity: int = DEFAULT_MAX_CONCURRENCY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._held = 0

    def acquire(self, timeout: float | None = None) -> bool:
        acquired = self._semaphore.acquire(timeout=timeout)
        if acquired:
            with self._lock:
                self._held += 1
        return acquired

    def release(self) -> None:
        with self._lock:
            if self._held == 0:
                raise ValueError("release() called without a matching acquire()")
            self._held -= 1
        self._semaphore.release()

    def release_when_done(self, future: Future) -> Future:
        """Release one permit once ``future`` finishes, however it finishes."""
        future.add_done_callback(lambda _f: self.release())
        return future

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._held

    @property
    def available(self) -> int:
        return self.capacity - self.in_use
