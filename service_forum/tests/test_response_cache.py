"""
Unit tests for the forum response cache.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_forum.app.caching import MISS, ResponseCache, make_key
from service_forum.app.caching.response_cache import CATEGORIES_TTL


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class DummyMetrics:
    """Minimal metrics collector stub."""

    def __init__(self):
        self.lookups = []

    def record_cache_lookup(self, cache_type: str, hit: bool):
        self.lookups.append((cache_type, hit))


class TestResponseCache:
    """Test cases for ResponseCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return ResponseCache(clock=clock)

    def test_missing_key_is_miss(self, cache):
        assert cache.get("categories") is MISS
        assert not MISS

    def test_hit_within_ttl(self, cache, clock):
        cache.set("categories", ["general"], CATEGORIES_TTL)
        clock.advance(CATEGORIES_TTL)

        assert cache.get("categories") == ["general"]

    def test_expired_entry_is_removed_on_read(self, cache, clock):
        cache.set("categories", ["general"], CATEGORIES_TTL)
        clock.advance(CATEGORIES_TTL + 1)

        assert cache.get("categories") is MISS
        assert "categories" not in cache
        assert len(cache) == 0

    def test_set_after_expiry_starts_fresh_ttl(self, cache, clock):
        cache.set("thread:7", "old", 60)
        clock.advance(61)
        cache.set("thread:7", "new", 60)
        clock.advance(30)

        assert cache.get("thread:7") == "new"

    def test_falsy_values_are_cached(self, cache):
        cache.set("search:nothing:20:", [], 60)
        assert cache.get("search:nothing:20:") == []

    def test_delete_and_clear(self, cache):
        cache.set("a", 1, 60)
        cache.set("b", 2, 60)

        cache.delete("a")
        cache.delete("missing")
        assert cache.get("a") is MISS
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0

    def test_lookups_recorded_by_key_prefix(self, clock):
        metrics = DummyMetrics()
        cache = ResponseCache(clock=clock, metrics=metrics)

        cache.get("threads:DIC_1:20::UPDATED_AT")
        cache.set("threads:DIC_1:20::UPDATED_AT", "page", 60)
        cache.get("threads:DIC_1:20::UPDATED_AT")

        assert metrics.lookups == [("threads", False), ("threads", True)]


class TestMakeKey:
    """Test cases for cache key construction."""

    def test_includes_every_part(self):
        assert make_key("threads", "DIC_1", 20, "abc", "CREATED_AT") == "threads:DIC_1:20:abc:CREATED_AT"

    def test_none_parts_are_empty(self):
        assert make_key("threads", "DIC_1", 20, None, "UPDATED_AT") == "threads:DIC_1:20::UPDATED_AT"

    def test_distinct_parameters_give_distinct_keys(self):
        assert make_key("threads", "DIC_1", 20, None, "UPDATED_AT") != make_key("threads", "DIC_1", 20, None, "CREATED_AT")
        assert make_key("categories") == "categories"
