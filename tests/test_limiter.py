"""Tests for the concurrency limiter."""

from concurrent.futures import Future

import pytest

from matchgraph.continuous.limiter import ConcurrencyLimiter


def test_acquire_blocks_at_capacity():
    limiter = ConcurrencyLimiter(2)
    assert limiter.acquire()
    assert limiter.acquire()
    assert limiter.in_use == 2
    assert limiter.available == 0
    assert limiter.acquire(timeout=0.01) is False

    limiter.release()
    assert limiter.acquire(timeout=0.01) is True


def test_release_without_acquire_raises():
    limiter = ConcurrencyLimiter(1)
    with pytest.raises(ValueError):
        limiter.release()

    limiter.acquire()
    limiter.release()
    with pytest.raises(ValueError):
        limiter.release()


def test_release_when_done_on_success_and_failure():
    limiter = ConcurrencyLimiter(2)
    ok, failed = Future(), Future()
    for future in (ok, failed):
        limiter.acquire()
        limiter.release_when_done(future)
    assert limiter.in_use == 2

    ok.set_result(None)
    assert limiter.in_use == 1
    failed.set_exception(RuntimeError("boom"))
    assert limiter.in_use == 0


def test_invalid_capacity():
    with pytest.raises(ValueError):
        ConcurrencyLimiter(0)
