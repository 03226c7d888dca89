"""Token-bucket rate limiting for API requests."""

from __future__ import annotations

import threading
import time
from typing import Callable


class TokenBucket:
    """
    Thread-safe token bucket.

    Holds up to ``burst`` tokens and refills at ``per_second`` tokens per
    second. ``consume`` blocks the calling thread until a token is available,
    so up to ``burst`` requests may go out back to back before the sustained
    rate applies.
    """

    def __init__(
        self,
        burst: int,
        per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if burst < 1:
            raise ValueError("burst must be at least 1")
        if per_second <= 0:
            raise ValueError("per_second must be positive")
        self.capacity = float(burst)
        self.rate = float(per_second)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._updated = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._updated
        if elapsed > 0:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
            self._updated = now

    def try_consume(self, tokens: float = 1.0) -> bool:
        """Take ``tokens`` if available right now; never blocks."""
        with self._lock:
            self._refill()
            if self._tokens >= tokens:
                self._tokens -= tokens
                return True
            return False

    def consume(self, tokens: float = 1.0) -> None:
        """Take ``tokens``, sleeping until the bucket has refilled enough."""
        if tokens > self.capacity:
            raise ValueError("cannot consume more tokens than the burst size")
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= tokens:
                    self._tokens -= tokens
                    return
                wait = (tokens - self._tokens) / self.rate
            self._sleep(wait)

    @property
    def available(self) -> float:
        with self._lock:
            self._refill()
            return self._tokens
