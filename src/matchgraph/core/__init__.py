"""Core components shared by the crawler, the store and the rating pass."""

from matchgraph.core.config import (
    CrawlerConfig,
    CrawlStrategy,
    config_from_dict,
    load_config,
)
from matchgraph.core.errors import (
    ApiRequestError,
    ConfigError,
    FatalStorageError,
    MatchgraphError,
    RatingInvariantError,
)
from matchgraph.core.logging import (
    ProgressLogger,
    get_logger,
    log_timing,
    setup_logging,
)
from matchgraph.core.protocols import ApiHandle, SessionProvider
from matchgraph.core.retry import (
    StorageErrorKind,
    classify_storage_error,
    retry_request,
)

__all__ = [
    # Config
    "CrawlerConfig",
    "CrawlStrategy",
    "config_from_dict",
    "load_config",
    # Errors
    "MatchgraphError",
    "ConfigError",
    "ApiRequestError",
    "FatalStorageError",
    "RatingInvariantError",
    # Logging
    "setup_logging",
    "get_logger",
    "log_timing",
    "ProgressLogger",
    # Protocols
    "ApiHandle",
    "SessionProvider",
    # Retry
    "retry_request",
    "classify_storage_error",
    "StorageErrorKind",
]
