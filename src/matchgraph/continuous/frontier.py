"""Deduplicated crawl frontier shared by the control loop and worker callbacks."""

from __future__ import annotations

import threading
from collections import deque
from typing import Iterable, Optional


class Frontier:
    """
    Thread-safe FIFO of pending player ids with set membership.

    An id is queued at most once. Ids handed out by :meth:`dequeue` are
    tracked as in flight until :meth:`complete` or :meth:`requeue` is called;
    enqueueing an in-flight id is a no-op, so no id is ever processed by two
    workers at the same time.
    """

    def __init__(self, ids: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._order: deque[str] = deque()
        self._members: set[str] = set()
        self._in_flight: set[str] = set()
        self.seed(ids)

    def seed(self, ids: Iterable[str]) -> int:
        """Bulk-add ``ids`` in order; returns how many were new."""
        added = 0
        with self._lock:
            for player_id in ids:
                if self._add(player_id):
                    added += 1
        return added

    def _add(self, player_id: str) -> bool:
        if player_id in self._members or player_id in self._in_flight:
            return False
        self._members.add(player_id)
        self._order.append(player_id)
        return True

    def enqueue(self, player_id: str) -> bool:
        """Append ``player_id`` unless it is queued or in flight."""
        with self._lock:
            return self._add(player_id)

    def dequeue(self) -> Optional[str]:
        """Pop the oldest id and mark it in flight; ``None`` when drained."""
        with self._lock:
            if not self._order:
                return None
            player_id = self._order.popleft()
            self._members.discard(player_id)
            self._in_flight.add(player_id)
            return player_id

    def complete(self, player_id: str) -> None:
        with self._lock:
            self._in_flight.discard(player_id)

    def requeue(self, player_id: str) -> bool:
        """Return a failed in-flight id to the tail of the queue."""
        with self._lock:
            self._in_flight.discard(player_id)
            return self._add(player_id)

    def size(self) -> int:
        with self._lock:
            return len(self._order)

    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, player_id: object) -> bool:
        with self._lock:
            return player_id in self._members

    def __bool__(self) -> bool:
        return self.size() > 0
