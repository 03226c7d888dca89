"""
Retry helpers for API calls and storage transactions.

Both loops retry indefinitely with a fixed delay. The API side retries any
request failure; the storage side classifies SQLAlchemy errors so the store
can decide between rolling back, reconnecting, or giving up.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, TypeVar

import requests
from sqlalchemy import exc as sa_exc

from matchgraph.core.constants import (
    DEFAULT_API_RETRY_DELAY_SECONDS,
    FATAL_STORAGE_MARKER,
)
from matchgraph.core.errors import ApiRequestError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_API_ERRORS = (ApiRequestError, requests.RequestException)


def retry_request(
    call: Callable[[], T],
    *,
    description: str = "API request",
    delay: float = DEFAULT_API_RETRY_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Invoke ``call`` until it succeeds.

    Request failures are logged and retried after a fixed ``delay``; there is
    no attempt cap and the delay never grows. Any other exception propagates.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return call()
        except RETRYABLE_API_ERRORS as e:
            logger.warning(
                f"{description} failed (attempt {attempt}): {e}; "
                f"retrying in {delay:.1f}s"
            )
            sleep(delay)


class StorageErrorKind(Enum):
    """How the store must react to a failed transaction."""

    STATEMENT = "statement"  # roll back and rerun the unit
    CONNECTION = "connection"  # reopen the connection and rerun the unit
    FATAL = "fatal"  # propagate


def classify_storage_error(error: BaseException) -> StorageErrorKind:
    """Classify a SQLAlchemy error raised inside a store transaction."""
    if isinstance(error, sa_exc.DBAPIError):
        if FATAL_STORAGE_MARKER in str(error.orig):
            return StorageErrorKind.FATAL
        if error.connection_invalidated or isinstance(
            error, (sa_exc.OperationalError, sa_exc.InterfaceError)
        ):
            return StorageErrorKind.CONNECTION
        return StorageErrorKind.STATEMENT
    if isinstance(
        error, (sa_exc.TimeoutError, sa_exc.DisconnectionError)
    ):
        return StorageErrorKind.CONNECTION
    if isinstance(error, sa_exc.ResourceClosedError):
        return StorageErrorKind.CONNECTION
    return StorageErrorKind.STATEMENT
