"""
Per-player crawl unit.

A unit makes sure the player has a row in the store, then fetches its match
history asynchronously while holding one limiter permit. The history
callback runs on the API handle's worker thread with its own store, queues
unseen opponents, persists the player's games and edges as one batch and
marks the player as checked.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from typing import Callable

from matchgraph.continuous.frontier import Frontier
from matchgraph.continuous.limiter import ConcurrencyLimiter
from matchgraph.core.constants import DEFAULT_API_RETRY_DELAY_SECONDS
from matchgraph.core.protocols import ApiHandle
from matchgraph.core.retry import retry_request
from matchgraph.scraping.models import HistoryEntry
from matchgraph.sql.store import MatchStore

logger = logging.getLogger(__name__)


class CrawlWorker:
    def __init__(
        self,
        frontier: Frontier,
        limiter: ConcurrencyLimiter,
        store_factory: Callable[[], MatchStore],
        *,
        api_retry_delay: float = DEFAULT_API_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.frontier = frontier
        self.limiter = limiter
        self.store_factory = store_factory
        self.api_retry_delay = api_retry_delay
        self._sleep = sleep

    def ensure_player(
        self, handle: ApiHandle, store: MatchStore, player_id: str
    ) -> bool:
        """Create ``player_id`` from its API profile if the store lacks it.

        Returns True when a new row was created.
        """
        if store.player_exists(player_id):
            return False
        profile = retry_request(
            lambda: handle.retrieve_user(player_id).result(),
            description=f"retrieve_user({player_id})",
            delay=self.api_retry_delay,
            sleep=self._sleep,
        )
        store.create_player(profile)
        logger.debug(f"Created player {player_id} ({profile.display_name})")
        return True

    def dispatch(
        self, handle: ApiHandle, store: MatchStore, player_id: str
    ) -> Future:
        """Start the crawl unit for ``player_id``; blocks while no permit is free."""
        self.ensure_player(handle, store, player_id)
        self.limiter.acquire()
        try:
            future = handle.fetch_match_history(
                player_id,
                lambda history: self.process_history(player_id, history),
            )
        except BaseException:
            self.limiter.release()
            raise
        return self.limiter.release_when_done(future)

    def process_history(
        self, player_id: str, history: list[HistoryEntry]
    ) -> int:
        """Persist one fetched history; returns the number of games stored."""
        entries = [e for e in history if e.opponent_id]
        skipped = len(history) - len(entries)
        if skipped:
            logger.debug(
                f"Skipping {skipped} entries without an opponent for {player_id}"
            )

        store = self.store_factory()
        try:
            queued = 0
            checked: set[str] = set()
            for entry in entries:
                opponent = entry.opponent_id
                if opponent in checked:
                    continue
                checked.add(opponent)
                if not store.player_exists(opponent) and self.frontier.enqueue(
                    opponent
                ):
                    queued += 1
            stored = store.insert_games(entries, player_id)
            store.mark_player_updated(player_id)
        finally:
            store.close()

        logger.debug(
            f"Stored {stored} games for {player_id}; queued {queued} opponents"
        )
        return stored
