"""Configuration dataclasses and loading for the crawler process."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from matchgraph.core.constants import (
    DEFAULT_API_RETRY_DELAY_SECONDS,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_PROGRESS_EVERY,
    DEFAULT_RATELIMIT_BURST,
    DEFAULT_RATELIMIT_PER_SECOND,
    DEFAULT_REFILL_BATCH_SIZE,
    DEFAULT_RELOGIN_COOLDOWN_SECONDS,
    DEFAULT_RELOGIN_EVERY,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_STORAGE_RETRY_DELAY_SECONDS,
)
from matchgraph.core.errors import ConfigError


@dataclass
class CrawlStrategy:
    """
    Tuning knobs for the crawl loop.

    Defines concurrency, refill and session-refresh cadence.
    """

    # Concurrency
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    # Refill
    refill_batch_size: int = DEFAULT_REFILL_BATCH_SIZE

    # Session refresh
    relogin_every: int = DEFAULT_RELOGIN_EVERY
    relogin_cooldown: float = DEFAULT_RELOGIN_COOLDOWN_SECONDS

    # Retry delays (seconds)
    api_retry_delay: float = DEFAULT_API_RETRY_DELAY_SECONDS
    storage_retry_delay: float = DEFAULT_STORAGE_RETRY_DELAY_SECONDS

    # Reporting
    progress_every: int = DEFAULT_PROGRESS_EVERY
    show_progress_bar: bool = False

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigError("max_concurrency must be at least 1")
        if self.refill_batch_size < 1:
            raise ConfigError("refill_batch_size must be at least 1")
        if self.relogin_every < 1:
            raise ConfigError("relogin_every must be at least 1")


@dataclass
class CrawlerConfig:
    """Process-level settings: API credentials, rate limits and database."""

    api_base_url: str = ""
    username: str = ""
    password: str = ""
    ratelimit_burst: int = DEFAULT_RATELIMIT_BURST
    ratelimit_per_second: float = DEFAULT_RATELIMIT_PER_SECOND
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    database_url: Optional[str] = None
    debug: bool = False
    debug_rate: int = DEFAULT_PROGRESS_EVERY
    strategy: CrawlStrategy = field(default_factory=CrawlStrategy)

    def validate(self) -> None:
        """Raise ConfigError if settings required to crawl are missing."""
        missing = [
            name
            for name in ("api_base_url", "username", "password")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(
                f"Missing required settings: {', '.join(missing)}"
            )
        if self.ratelimit_burst < 1 or self.ratelimit_per_second <= 0:
            raise ConfigError(
                "ratelimit_burst must be >= 1 and ratelimit_per_second > 0"
            )


def build_database_url_from_env() -> str | None:
    """Construct a Postgres URL from component env vars.

    Recognized variables:
      - MATCHGRAPH_DB_HOST, MATCHGRAPH_DB_PORT (default 5432)
      - MATCHGRAPH_DB_NAME (default 'matchgraph')
      - MATCHGRAPH_DB_USER, MATCHGRAPH_DB_PASSWORD
      - MATCHGRAPH_DB_SSLMODE (optional)
    """
    host = os.getenv("MATCHGRAPH_DB_HOST") or os.getenv("POSTGRES_HOST")
    user = os.getenv("MATCHGRAPH_DB_USER") or os.getenv("POSTGRES_USER")
    if not host or not user:
        return None
    port = (
        os.getenv("MATCHGRAPH_DB_PORT") or os.getenv("POSTGRES_PORT") or "5432"
    )
    name = (
        os.getenv("MATCHGRAPH_DB_NAME")
        or os.getenv("POSTGRES_DB")
        or "matchgraph"
    )
    password = (
        os.getenv("MATCHGRAPH_DB_PASSWORD")
        or os.getenv("POSTGRES_PASSWORD")
        or ""
    )
    sslmode = os.getenv("MATCHGRAPH_DB_SSLMODE")

    auth = f"{user}:{password}" if password != "" else f"{user}"
    url = f"postgresql://{auth}@{host}:{port}/{name}"
    if sslmode:
        url = f"{url}?sslmode={sslmode}"
    return url


def _reject_unknown(cls, raw: dict[str, Any], section: str) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(
            f"Unknown {section} settings: {', '.join(unknown)}"
        )


def config_from_dict(raw: dict[str, Any]) -> CrawlerConfig:
    """Build a CrawlerConfig from a parsed mapping (e.g. YAML)."""
    raw = dict(raw or {})
    strategy_raw = raw.pop("strategy", None) or {}
    if not isinstance(strategy_raw, dict):
        raise ConfigError("'strategy' must be a mapping")
    _reject_unknown(CrawlStrategy, strategy_raw, "strategy")
    _reject_unknown(CrawlerConfig, raw, "crawler")
    try:
        return CrawlerConfig(strategy=CrawlStrategy(**strategy_raw), **raw)
    except TypeError as e:
        raise ConfigError(str(e)) from e


def load_config(path: str | Path | None = None) -> CrawlerConfig:
    """Load crawler settings from a YAML file and environment overrides.

    Resolution order for each overridable value:
    - environment (MATCHGRAPH_DATABASE_URL / DATABASE_URL / component envs,
      MATCHGRAPH_API_USERNAME, MATCHGRAPH_API_PASSWORD)
    - the YAML file at ``path`` (if given and present)
    - dataclass defaults
    """
    raw: dict[str, Any] = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "r") as f:
                loaded = yaml.safe_load(f)
            if loaded is not None and not isinstance(loaded, dict):
                raise ConfigError(f"{p} must contain a mapping at top level")
            raw = loaded or {}

    config = config_from_dict(raw)

    config.database_url = (
        os.getenv("MATCHGRAPH_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.database_url
        or build_database_url_from_env()
    )
    config.username = os.getenv("MATCHGRAPH_API_USERNAME") or config.username
    config.password = os.getenv("MATCHGRAPH_API_PASSWORD") or config.password
    return config
