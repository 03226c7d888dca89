"""
Refill strategy for the crawl frontier.

Each completed drain advances a cycle counter. The counter decides how far
back a player's most recent game may lie for the player to be re-crawled:
every 8th cycle sweeps all players, every 4th those active within a month,
every 2nd those active within a week, and the rest those active within the
last day.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from matchgraph.continuous.frontier import Frontier
from matchgraph.core.constants import DEFAULT_REFILL_BATCH_SIZE, MIN_DATETIME

logger = logging.getLogger(__name__)


class StalenessTier(Enum):
    ALL = "all"
    MONTH = "month"
    WEEK = "week"
    DAY = "day"


def tier_for_cycle(cycle: int) -> StalenessTier:
    if cycle % 8 == 0:
        return StalenessTier.ALL
    if cycle % 4 == 0:
        return StalenessTier.MONTH
    if cycle % 2 == 0:
        return StalenessTier.WEEK
    return StalenessTier.DAY


def subtract_month(moment: datetime) -> datetime:
    """Same wall-clock time one calendar month earlier.

    The day is clamped to the length of the target month (31 March becomes
    28 or 29 February).
    """
    year, month = moment.year, moment.month - 1
    if month == 0:
        year, month = year - 1, 12
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def staleness_lower_bound(cycle: int, now: datetime) -> datetime:
    """Earliest last-game time that qualifies a player on ``cycle``."""
    tier = tier_for_cycle(cycle)
    if tier is StalenessTier.ALL:
        return MIN_DATETIME
    if tier is StalenessTier.MONTH:
        return subtract_month(now)
    if tier is StalenessTier.WEEK:
        return now - timedelta(weeks=1)
    return now - timedelta(days=1)


class RefillScheduler:
    """Repopulates the frontier from the store between drains."""

    def __init__(
        self,
        frontier: Frontier,
        batch_size: int = DEFAULT_REFILL_BATCH_SIZE,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.frontier = frontier
        self.batch_size = batch_size
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def refill(self, store, cycle: int) -> int:
        """
        Enqueue every player due on ``cycle``.

        Args:
            store: MatchStore to query
            cycle: Cycle counter value for this refill

        Returns:
            Number of ids newly added to the frontier
        """
        tier = tier_for_cycle(cycle)
        lower_bound = staleness_lower_bound(cycle, self._clock())
        ids = store.get_players_to_update(self.batch_size, lower_bound)
        added = self.frontier.seed(ids)
        logger.info(
            f"Refill for cycle {cycle} ({tier.value}, last game >= "
            f"{lower_bound.isoformat()}): {added} of {len(ids)} players queued"
        )
        return added
