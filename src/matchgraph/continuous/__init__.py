"""Continuous match-history crawling module."""

from __future__ import annotations

from matchgraph.continuous.frontier import Frontier
from matchgraph.continuous.limiter import ConcurrencyLimiter
from matchgraph.continuous.manager import MatchHistoryCrawler
from matchgraph.continuous.strategies import (
    RefillScheduler,
    StalenessTier,
    staleness_lower_bound,
    tier_for_cycle,
)
from matchgraph.continuous.worker import CrawlWorker

__all__ = [
    "MatchHistoryCrawler",
    "Frontier",
    "ConcurrencyLimiter",
    "CrawlWorker",
    "RefillScheduler",
    "StalenessTier",
    "staleness_lower_bound",
    "tier_for_cycle",
]
