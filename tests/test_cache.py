"""Tests for the bounded result cache."""

import pytest

from conditionx.core.cache import ResultCache, cache_key
from conditionx.schemas.context import WorkflowExecutionContext


class TestResultCache:
    """Test LRU eviction and counters."""

    def test_evicts_least_recently_used(self):
        cache = ResultCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.get("a") == 1  # "b" is now least recently used
        cache.set("c", 3)

        assert len(cache) == 2
        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3
        assert cache.stats().evictions == 1

    def test_hit_rate(self):
        cache = ResultCache(max_entries=4)
        cache.set("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("missing")

        stats = cache.stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.hit_rate == pytest.approx(2 / 3)
        assert stats.to_dict()["maxEntries"] == 4

    def test_clear_keeps_counters(self):
        cache = ResultCache()
        cache.set("a", 1)
        cache.get("a")
        cache.clear()

        assert len(cache) == 0
        assert cache.stats().hits == 1

    def test_empty_stats(self):
        assert ResultCache().stats().hit_rate == 0.0


class TestCacheKey:
    """Test cache key composition."""

    def test_key_is_order_insensitive(self):
        a = WorkflowExecutionContext(variables={"x": 1, "y": 2}, current_step_index=1)
        b = WorkflowExecutionContext(variables={"y": 2, "x": 1}, current_step_index=1)
        assert cache_key("c1", a) == cache_key("c1", b)

    def test_key_covers_step_and_condition(self):
        a = WorkflowExecutionContext(variables={"x": 1}, current_step_index=1)
        b = WorkflowExecutionContext(variables={"x": 1}, current_step_index=2)
        assert cache_key("c1", a) != cache_key("c1", b)
        assert cache_key("c1", a) != cache_key("c2", a)

    def test_unserializable_variables_have_no_key(self):
        mixed = WorkflowExecutionContext(variables={"a": 1, 2: "b"})
        assert cache_key("c1", mixed) is None
