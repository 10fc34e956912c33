import pytest

from leadgen.core.cache import TTLCache
from leadgen.core.retry import retry_with_backoff


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_cache_returns_value_until_expiry():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("ibge:SP", ("Guarujá",), ttl=10)

    assert cache.get("ibge:SP") == ("Guarujá",)
    clock.now += 9.9
    assert cache.get("ibge:SP") == ("Guarujá",)
    clock.now += 0.2
    assert cache.get("ibge:SP") is None
    assert len(cache) == 0


def test_cache_miss_and_clear():
    cache = TTLCache()
    assert cache.get("missing") is None
    cache.set("a", 1, ttl=60)
    cache.clear()
    assert cache.get("a") is None


def test_retry_stops_when_result_is_ready():
    results = iter(["wait", "wait", "ready"])
    sleeps = []

    outcome = retry_with_backoff(
        lambda: next(results),
        max_attempts=5,
        delay=2.5,
        should_retry=lambda r: r == "wait",
        sleep=sleeps.append,
    )

    assert outcome == "ready"
    assert sleeps == [2.5, 2.5]


def test_retry_returns_last_result_when_exhausted():
    calls = []
    sleeps = []

    def operation():
        calls.append(1)
        return "wait"

    outcome = retry_with_backoff(
        operation, max_attempts=3, delay=1.0, should_retry=lambda r: r == "wait", sleep=sleeps.append
    )

    assert outcome == "wait"
    assert len(calls) == 3
    assert sleeps == [1.0, 1.0]


def test_retry_propagates_exceptions():
    def boom():
        raise RuntimeError("down")

    with pytest.raises(RuntimeError):
        retry_with_backoff(boom, max_attempts=3, delay=0, should_retry=lambda r: True, sleep=lambda _: None)


def test_retry_rejects_zero_attempts():
    with pytest.raises(ValueError):
        retry_with_backoff(lambda: 1, max_attempts=0, delay=0, should_retry=lambda r: False)
