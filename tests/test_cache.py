"""Unit tests for the TTL cache."""

import pytest

from property_import.utils.cache import TTLCache


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def test_get_missing_returns_none(clock):
    assert TTLCache(60, clock=clock).get("nope") is None


def test_value_available_until_expiry(clock):
    cache = TTLCache(60, clock=clock)
    cache.set("k", "v")

    clock.advance(59.9)
    assert cache.get("k") == "v"

    clock.advance(0.1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_set_refreshes_expiry(clock):
    cache = TTLCache(60, clock=clock)
    cache.set("k", 1)
    clock.advance(50)
    cache.set("k", 2)
    clock.advance(50)

    assert cache.get("k") == 2


def test_oldest_entry_evicted_when_full(clock):
    cache = TTLCache(60, clock=clock, max_entries=2)
    cache.set("a", 1)
    clock.advance(1)
    cache.set("b", 2)
    clock.advance(1)
    cache.set("c", 3)

    assert "a" not in cache
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_expired_entries_purged_before_eviction(clock):
    cache = TTLCache(10, clock=clock, max_entries=2)
    cache.set("old", 1)
    clock.advance(5)
    cache.set("fresh", 2)
    clock.advance(6)

    cache.set("new", 3)

    assert cache.get("fresh") == 2
    assert cache.get("new") == 3


def test_unbounded_cache(clock):
    cache = TTLCache(60, clock=clock, max_entries=0)
    for i in range(100):
        cache.set(i, i)
    assert len(cache) == 100


def test_purge_and_clear(clock):
    cache = TTLCache(10, clock=clock)
    cache.set("a", 1)
    clock.advance(20)
    cache.set("b", 2)

    assert cache.purge_expired() == 1
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


@pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"ttl_seconds": 10, "max_entries": -1}])
def test_invalid_arguments(kwargs):
    with pytest.raises(ValueError):
        TTLCache(**kwargs)
