"""Exception hierarchy shared by the crawler, the store and the rating pass."""

from __future__ import annotations


class MatchgraphError(Exception):
    """Base class for all errors raised by matchgraph."""


class ConfigError(MatchgraphError):
    """Raised when the crawler configuration is missing or invalid."""


class ApiRequestError(MatchgraphError):
    """A request against the game API failed and may be retried."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FatalStorageError(MatchgraphError):
    """An I/O-level storage failure that must not be retried."""


class RatingInvariantError(MatchgraphError):
    """A game that cannot be rated reached the rating pass."""
