import pytest

from matchgraph.scraping.ratelimit import TokenBucket


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_burst_then_refill():
    clock = FakeClock()
    bucket = TokenBucket(3, 2.0, clock=clock, sleep=clock.sleep)

    assert [bucket.try_consume() for _ in range(4)] == [True, True, True, False]
    clock.now += 1.0
    assert bucket.available == pytest.approx(2.0)
    clock.now += 10.0
    assert bucket.available == pytest.approx(3.0)


def test_consume_sleeps_until_token_available():
    clock = FakeClock()
    bucket = TokenBucket(1, 4.0, clock=clock, sleep=clock.sleep)

    bucket.consume()
    bucket.consume()
    assert clock.sleeps == [pytest.approx(0.25)]
    assert bucket.available == pytest.approx(0.0)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        TokenBucket(0, 1.0)
    with pytest.raises(ValueError):
        TokenBucket(1, 0)
    with pytest.raises(ValueError):
        TokenBucket(2, 1.0).consume(3)
