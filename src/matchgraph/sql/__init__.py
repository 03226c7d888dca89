"""SQL layer for the crawler.

This package defines:
- Table name constants
- SQLAlchemy models for players, games and player-game edges
- Engine helpers
- ``MatchStore``, the retry-until-commit store used by the crawl loop
- Loaders that return Polars DataFrames for the rating pass

Environment variables:
- MATCHGRAPH_DATABASE_URL or DATABASE_URL: SQLAlchemy URL for the DB engine
"""

from __future__ import annotations

from matchgraph.sql import models
from matchgraph.sql.engine import (
    Base,
    create_engine,
    resolve_database_url,
)
from matchgraph.sql.load import unresolved_games_frame, unresolved_games_query
from matchgraph.sql.store import MatchStore

__all__ = [
    # Engine helpers
    "Base",
    "create_engine",
    "resolve_database_url",
    # Store
    "MatchStore",
    # Loaders
    "unresolved_games_frame",
    "unresolved_games_query",
    # Models submodule
    "models",
]
