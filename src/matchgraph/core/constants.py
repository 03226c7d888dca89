"""
Configuration constants for the match-history crawler and the Elo pass.

This module centralizes the default parameters used by the crawl loop, the
refill scheduler, the retry helpers and the rating engine so that they stay
consistent and easy to tune.
"""

from datetime import datetime, timezone

# =============================================================================
# Time Parameters
# =============================================================================

# Postgres cannot represent datetime.min with an offset, so use our own floor
MIN_DATETIME = datetime(2000, 1, 1, tzinfo=timezone.utc)

# =============================================================================
# Crawl Configuration
# =============================================================================

# Upper bound on concurrently in-flight match-history requests
DEFAULT_MAX_CONCURRENCY: int = 100

# Maximum number of ids pulled from the store per refill
DEFAULT_REFILL_BATCH_SIZE: int = 1024 * 1024

# Session refresh cadence (in completed cycles) and cool-down before it
DEFAULT_RELOGIN_EVERY: int = 8
DEFAULT_RELOGIN_COOLDOWN_SECONDS: float = 60.0

# Fixed delay between API retries; no cap and no backoff growth
DEFAULT_API_RETRY_DELAY_SECONDS: float = 1.0

# Pause between storage retries (0 retries immediately)
DEFAULT_STORAGE_RETRY_DELAY_SECONDS: float = 0.0

# Progress is reported every N players / rated games
DEFAULT_PROGRESS_EVERY: int = 1000

# =============================================================================
# API Defaults
# =============================================================================

DEFAULT_RATELIMIT_BURST: int = 10
DEFAULT_RATELIMIT_PER_SECOND: float = 5.0
DEFAULT_REQUEST_TIMEOUT: float = 30.0

# =============================================================================
# Elo Parameters
# =============================================================================

# Rating of a player with no history ("mean/unrated")
DEFAULT_ELO: int = 0

# Maximum rating change per game
ELO_K_FACTOR: float = 40.0

# Every 400 points of difference is roughly a 10x difference in skill
ELO_SCALE: float = 400.0

# =============================================================================
# Store Parameters
# =============================================================================

# Placeholder row that absorbs foreign keys of removed players
DELETED_PLAYER_ID = "#deleted#"
DELETED_PLAYER_NAME = "User Hidden"

# Substring of driver messages that mark unrecoverable I/O failures
FATAL_STORAGE_MARKER = "I/O error"
