"""Main crawl loop: drain, rate, refill, refresh."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy.engine import Engine

from matchgraph.algorithms.elo import EloRatingEngine
from matchgraph.continuous.frontier import Frontier
from matchgraph.continuous.limiter import ConcurrencyLimiter
from matchgraph.continuous.strategies import RefillScheduler
from matchgraph.continuous.worker import CrawlWorker
from matchgraph.core.config import CrawlStrategy
from matchgraph.core.errors import FatalStorageError
from matchgraph.core.logging import ProgressLogger, log_timing
from matchgraph.core.protocols import ApiHandle, SessionProvider
from matchgraph.core.retry import retry_request
from matchgraph.sql.store import MatchStore

logger = logging.getLogger(__name__)


class MatchHistoryCrawler:
    """
    Crawls the match-history graph and keeps ratings current.

    Each cycle:
    - drains the frontier, dispatching one crawl unit per player under the
      concurrency limiter and joining all of them
    - rates the games that drain left unrated
    - refills the frontier according to the cycle's staleness tier
    - every ``relogin_every`` cycles, cools down and logs in again
    """

    def __init__(
        self,
        provider: SessionProvider,
        engine: Engine,
        seed_ids: Iterable[str] = (),
        strategy: CrawlStrategy | None = None,
        *,
        rating_engine: EloRatingEngine | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the crawler.

        Args:
            provider: Source of authenticated API handles
            engine: SQLAlchemy engine shared by all stores
            seed_ids: Player ids to crawl first
            strategy: Crawl tuning (uses defaults if None)
            rating_engine: Rating pass run after every drain
            sleep: Sleep function for cool-downs and retries
            clock: Returns the current UTC time for refill windows
        """
        self.provider = provider
        self.engine = engine
        self.strategy = strategy or CrawlStrategy()
        self._sleep = sleep

        self.store = self.create_store()
        self.frontier = Frontier(seed_ids)
        self.limiter = ConcurrencyLimiter(self.strategy.max_concurrency)
        self.worker = CrawlWorker(
            self.frontier,
            self.limiter,
            self.create_store,
            api_retry_delay=self.strategy.api_retry_delay,
            sleep=sleep,
        )
        self.refill_scheduler = RefillScheduler(
            self.frontier, self.strategy.refill_batch_size, clock=clock
        )
        self.rating_engine = rating_engine or EloRatingEngine(
            progress_every=self.strategy.progress_every,
            show_progress_bar=self.strategy.show_progress_bar,
        )

        self.cycle = 0
        self.handle: ApiHandle | None = None
        self.session_refreshes = 0

    def create_store(self) -> MatchStore:
        return MatchStore(
            self.engine,
            retry_delay=self.strategy.storage_retry_delay,
            sleep=self._sleep,
        )

    def _login(self) -> ApiHandle:
        return retry_request(
            self.provider.get_handle,
            description="API login",
            delay=self.strategy.api_retry_delay,
            sleep=self._sleep,
        )

    def start(self) -> None:
        """Prepare the schema, log in and make sure there is work queued."""
        if self.handle is not None:
            return
        self.store.ensure_schema()
        self.handle = self._login()
        if not self.frontier:
            self.refill_scheduler.refill(self.store, self.cycle)
            self.cycle += 1

    def run_once(self) -> dict[str, int]:
        """
        Run a single crawl cycle.

        Returns:
            Summary of the cycle
        """
        self.start()
        cycle = self.cycle
        logger.info(
            f"Starting cycle {cycle} with {len(self.frontier)} queued players"
        )

        with log_timing(logger, f"frontier drain (cycle {cycle})"):
            drained = self.drain()
        with log_timing(logger, f"rating pass (cycle {cycle})"):
            rated = self.rating_engine.run(self.store)

        queued = self.refill_scheduler.refill(self.store, cycle)
        self.cycle += 1

        if self.cycle % self.strategy.relogin_every == 0:
            self.refresh_session()

        results = {
            "cycle": cycle,
            "crawled": drained["crawled"],
            "failed": drained["failed"],
            "rated": rated,
            "queued": queued,
        }
        logger.info(
            f"Cycle {cycle} complete: crawled={results['crawled']}, "
            f"failed={results['failed']}, rated={rated}, queued={queued}"
        )
        return results

    def drain(self) -> dict[str, int]:
        """Crawl until the frontier stays empty after a full join."""
        crawled = 0
        failed = 0
        dispatched = 0
        with ProgressLogger(
            logger, "frontier drain", update_interval=self.strategy.progress_every
        ) as progress:
            while True:
                pending = []
                while True:
                    player_id = self.frontier.dequeue()
                    if player_id is None:
                        break
                    pending.append(
                        (
                            player_id,
                            self.worker.dispatch(
                                self.handle, self.store, player_id
                            ),
                        )
                    )
                    dispatched += 1
                    progress.update(
                        dispatched, f"{len(self.frontier)} queued"
                    )

                for player_id, future in pending:
                    try:
                        future.result()
                    except FatalStorageError:
                        raise
                    except Exception as e:
                        logger.warning(
                            f"Crawl of {player_id} failed: {e}; requeueing"
                        )
                        self.frontier.requeue(player_id)
                        failed += 1
                    else:
                        self.frontier.complete(player_id)
                        crawled += 1

                if not self.frontier:
                    break
        return {"crawled": crawled, "failed": failed}

    def refresh_session(self) -> None:
        """Cool down, log in again and retire the previous handle."""
        cooldown = self.strategy.relogin_cooldown
        logger.info(
            f"Refreshing API session after cycle {self.cycle - 1} "
            f"(cool-down {cooldown:.0f}s)"
        )
        self._sleep(cooldown)
        new_handle = self._login()
        old_handle, self.handle = self.handle, new_handle
        if old_handle is not None:
            old_handle.close()
        self.session_refreshes += 1

    def run_continuous(self, max_cycles: int | None = None) -> int:
        """
        Run crawl cycles until interrupted.

        Args:
            max_cycles: Maximum cycles to run (None for infinite)

        Returns:
            Number of cycles completed
        """
        logger.info("Starting continuous crawl")
        cycles = 0
        try:
            while max_cycles is None or cycles < max_cycles:
                self.run_once()
                cycles += 1
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self.close()

        logger.info(f"Continuous crawl stopped after {cycles} cycles")
        return cycles

    def get_status(self) -> dict:
        summary = self.store.summary()
        summary.update(
            {
                "cycle": self.cycle,
                "queued": len(self.frontier),
                "in_flight": self.frontier.in_flight(),
            }
        )
        return summary

    def close(self) -> None:
        handle, self.handle = self.handle, None
        if handle is not None:
            handle.close()
        self.store.close()
