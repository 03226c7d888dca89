"""Game API access: data models, rate limiting and the HTTP adapter."""

from __future__ import annotations

from matchgraph.scraping.api import (
    HttpApiHandle,
    HttpSessionProvider,
    build_api_url,
    parse_history_entry,
    parse_timestamp,
    parse_user_profile,
)
from matchgraph.scraping.models import EndResult, HistoryEntry, UserProfile
from matchgraph.scraping.ratelimit import TokenBucket

__all__ = [
    # Models
    "EndResult",
    "HistoryEntry",
    "UserProfile",
    # Rate limiting
    "TokenBucket",
    # HTTP adapter
    "HttpApiHandle",
    "HttpSessionProvider",
    "build_api_url",
    "parse_history_entry",
    "parse_timestamp",
    "parse_user_profile",
]
