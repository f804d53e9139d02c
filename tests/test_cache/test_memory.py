"""Tests for the in-memory LRU cache."""

import time

import pytest

from trackgate.cache.memory import MemoryCache


class TestMemoryCache:
    def test_get_set(self):
        cache = MemoryCache()
        cache.set("k1", {"url": "https://a"})
        entry = cache.get("k1")
        assert entry is not None
        assert entry.value == {"url": "https://a"}

    def test_get_miss(self):
        assert MemoryCache().get("nonexistent") is None

    def test_default_ttl_applied(self):
        cache = MemoryCache(default_ttl=42)
        assert cache.set("k", 1).ttl_seconds == 42

    def test_expired_entry_returns_none(self):
        cache = MemoryCache()
        entry = cache.set("k1", "v", ttl_seconds=1)
        entry.created_at = time.time() - 5
        assert cache.get("k1") is None
        assert len(cache) == 0

    def test_lru_eviction(self):
        cache = MemoryCache(max_items=2)
        cache.set("k1", 1)
        cache.set("k2", 2)
        cache.set("k3", 3)
        assert cache.get("k1") is None
        assert cache.get("k2") is not None
        assert cache.get("k3") is not None

    def test_lru_order_preserved(self):
        cache = MemoryCache(max_items=2)
        cache.set("k1", 1)
        cache.set("k2", 2)
        cache.get("k1")
        cache.set("k3", 3)
        assert cache.get("k1") is not None
        assert cache.get("k2") is None

    def test_contains_does_not_refresh_recency(self):
        cache = MemoryCache(max_items=2)
        cache.set("k1", 1)
        cache.set("k2", 2)
        assert cache.contains("k1")
        cache.set("k3", 3)
        assert "k1" not in cache

    def test_get_resets_age(self):
        cache = MemoryCache()
        entry = cache.set("k", 1, ttl_seconds=10)
        entry.created_at = time.time() - 8
        cache.get("k")
        assert entry.expires_at - time.time() > 9

    def test_get_keeps_age_when_disabled(self):
        cache = MemoryCache(update_age_on_get=False)
        entry = cache.set("k", 1, ttl_seconds=10)
        entry.created_at = time.time() - 8
        cache.get("k")
        assert entry.expires_at - time.time() < 3

    def test_overwrite_replaces_value(self):
        cache = MemoryCache(max_items=2)
        cache.set("k", 1)
        cache.set("k", 2)
        assert len(cache) == 1
        assert cache.get("k").value == 2

    def test_delete(self):
        cache = MemoryCache()
        cache.set("k", 1)
        assert cache.delete("k") is True
        assert cache.delete("k") is False

    def test_delete_by_prefix(self):
        cache = MemoryCache()
        cache.set("song:1", 1)
        cache.set("song:1:kugou", 2)
        cache.set("source:1", 3)
        assert cache.delete_by_prefix("song:") == 2
        assert list(cache.keys()) == ["source:1"]

    def test_purge_expired(self):
        cache = MemoryCache()
        cache.set("old", 1, ttl_seconds=1).created_at = time.time() - 5
        cache.set("new", 2, ttl_seconds=60)
        assert cache.purge_expired() == 1
        assert list(cache.keys()) == ["new"]

    def test_clear(self):
        cache = MemoryCache()
        cache.set("k1", 1)
        cache.set("k2", 2)
        cache.clear()
        assert len(cache) == 0

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            MemoryCache(max_items=0)
