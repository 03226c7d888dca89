"""Match-history graph crawler with incremental Elo ratings."""

from __future__ import annotations

from matchgraph.algorithms import EloRatingEngine
from matchgraph.continuous import Frontier, MatchHistoryCrawler
from matchgraph.core.config import CrawlerConfig, CrawlStrategy, load_config
from matchgraph.sql import MatchStore

__version__ = "0.1.0"

__all__ = [
    "MatchHistoryCrawler",
    "Frontier",
    "MatchStore",
    "EloRatingEngine",
    "CrawlerConfig",
    "CrawlStrategy",
    "load_config",
]
