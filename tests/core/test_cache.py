"""Tests for TimedCache."""

import pytest

from blackjack.cache import TimedCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TimedCache(ttl=10, clock=clock)


class TestTimedCache:
    def test_get_and_set(self, cache):
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert "a" in cache
        assert len(cache) == 1

    def test_missing_key_default(self, cache):
        assert cache.get("missing") is None
        assert cache.get("missing", 5) == 5

    def test_entries_expire(self, cache, clock):
        cache.set("a", 1)
        clock.now = 9.9
        assert cache.get("a") == 1
        clock.now = 10.0
        assert cache.get("a") is None
        assert "a" not in cache
        assert len(cache) == 0

    def test_get_or_compute_caches(self, cache, clock):
        calls = []

        def factory():
            calls.append(1)
            return len(calls)

        assert cache.get_or_compute("k", factory) == 1
        assert cache.get_or_compute("k", factory) == 1
        clock.now = 11
        assert cache.get_or_compute("k", factory) == 2
        assert len(calls) == 2

    def test_invalidate(self, cache):
        cache.set("a", 1)
        cache.invalidate("a")
        cache.invalidate("never-set")
        assert cache.get("a") is None

    def test_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_len_evicts_expired(self, cache, clock):
        cache.set("old", 1)
        clock.now = 5
        cache.set("new", 2)
        clock.now = 12
        assert len(cache) == 1
        assert cache.get("new") == 2

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_ttl_must_be_positive(self, ttl):
        with pytest.raises(ValueError):
            TimedCache(ttl=ttl)
