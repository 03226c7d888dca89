"""Tests for API retry and storage error classification."""

import pytest
import requests
from sqlalchemy import exc as sa_exc

from matchgraph.core.errors import ApiRequestError
from matchgraph.core.retry import (
    StorageErrorKind,
    classify_storage_error,
    retry_request,
)


def test_retry_request_sleeps_fixed_delay_between_attempts():
    sleeps = []
    attempts = {"n": 0}

    def flaky():
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise ApiRequestError("503", status_code=503)
        if attempts["n"] == 2:
            raise requests.ConnectionError("reset")
        return "ok"

    assert retry_request(flaky, sleep=sleeps.append) == "ok"
    assert attempts["n"] == 3
    assert sleeps == [1.0, 1.0]


def test_retry_request_propagates_other_errors():
    sleeps = []

    def broken():
        raise KeyError("not a request failure")

    with pytest.raises(KeyError):
        retry_request(broken, delay=5.0, sleep=sleeps.append)
    assert sleeps == []


def _dbapi(cls, message):
    return cls("SELECT 1", {}, Exception(message))


@pytest.mark.parametrize(
    "error,kind",
    [
        (
            _dbapi(sa_exc.OperationalError, "disk I/O error"),
            StorageErrorKind.FATAL,
        ),
        (
            _dbapi(sa_exc.DatabaseError, "I/O error while reading"),
            StorageErrorKind.FATAL,
        ),
        (
            _dbapi(sa_exc.OperationalError, "database is locked"),
            StorageErrorKind.CONNECTION,
        ),
        (
            _dbapi(sa_exc.InterfaceError, "connection already closed"),
            StorageErrorKind.CONNECTION,
        ),
        (
            sa_exc.TimeoutError("QueuePool limit reached"),
            StorageErrorKind.CONNECTION,
        ),
        (sa_exc.DisconnectionError("gone"), StorageErrorKind.CONNECTION),
        (
            _dbapi(sa_exc.IntegrityError, "duplicate key"),
            StorageErrorKind.STATEMENT,
        ),
        (
            _dbapi(sa_exc.ProgrammingError, "syntax error"),
            StorageErrorKind.STATEMENT,
        ),
        (sa_exc.InvalidRequestError("bad state"), StorageErrorKind.STATEMENT),
    ],
)
def test_classify_storage_error(error, kind):
    assert classify_storage_error(error) is kind


def test_invalidated_connection_is_connection_level():
    error = sa_exc.DBAPIError(
        "SELECT 1", {}, Exception("server closed"), connection_invalidated=True
    )
    assert classify_storage_error(error) is StorageErrorKind.CONNECTION
