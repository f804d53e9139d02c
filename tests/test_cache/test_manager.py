"""Tests for the two-tier cache manager."""

import asyncio
import json

from trackgate.cache.manager import PRIORITY_TTL, CacheManager, resolve_ttl
from trackgate.types import CacheLevel, CacheOptions, CachePriority


class TestResolveTtl:
    def test_priority_defaults(self):
        assert PRIORITY_TTL[CachePriority.LOW] == 900
        assert PRIORITY_TTL[CachePriority.NORMAL] == 3600
        assert PRIORITY_TTL[CachePriority.HIGH] == 21600

    def test_explicit_ttl_wins(self):
        opts = CacheOptions(ttl_seconds=5, priority=CachePriority.HIGH)
        assert resolve_ttl(opts) == 5

    def test_falls_back_to_priority(self):
        assert resolve_ttl(CacheOptions(priority=CachePriority.LOW)) == 900


class TestLocalOnly:
    async def test_round_trip(self):
        mgr = CacheManager()
        await mgr.set("k", {"url": "https://a", "br": 320})
        assert await mgr.get("k") == {"url": "https://a", "br": 320}

    async def test_miss(self):
        mgr = CacheManager()
        assert await mgr.get("missing") is None
        assert mgr.stats().misses == 1

    async def test_hit_rate_scenario(self):
        mgr = CacheManager()
        await mgr.set("a", 1)
        await mgr.get("a")
        await mgr.get("b")
        stats = mgr.stats()
        assert (stats.hits, stats.misses) == (1, 1)
        assert stats.hit_rate_display == "50.00%"

    async def test_ttl_expiry(self):
        mgr = CacheManager()
        await mgr.set("k", "v", ttl_seconds=1)
        assert await mgr.get("k") == "v"
        await asyncio.sleep(1.1)
        assert await mgr.get("k") is None

    async def test_set_uses_priority_ttl(self):
        mgr = CacheManager()
        await mgr.set("k", "v", CacheOptions(priority=CachePriority.HIGH))
        assert mgr.local.get("k").ttl_seconds == 21600

    async def test_has_does_not_count(self):
        mgr = CacheManager()
        await mgr.set("k", "v")
        assert await mgr.has("k")
        assert not await mgr.has("other")
        stats = mgr.stats()
        assert stats.hits == 0
        assert stats.misses == 0

    async def test_delete(self):
        mgr = CacheManager()
        await mgr.set("k", "v")
        await mgr.delete("k")
        assert await mgr.get("k") is None

    async def test_delete_by_prefix(self):
        mgr = CacheManager()
        await mgr.set("song:1", "a")
        await mgr.set("song:1:kugou", "b")
        await mgr.set("song:2", "c")
        await mgr.set("source:1", "d")
        assert await mgr.delete_by_prefix("song:1") == 2
        assert await mgr.has("song:2")
        assert await mgr.has("source:1")

    async def test_clear_resets_stats(self):
        mgr = CacheManager()
        await mgr.set("k", "v")
        await mgr.get("k")
        await mgr.clear()
        stats = mgr.stats()
        assert stats.size == 0
        assert stats.hits == 0

    async def test_shared_absent(self):
        mgr = CacheManager()
        assert await mgr.connect() is False
        assert not mgr.shared_available


class TestTwoTier:
    async def test_memory_level_stays_local(self, shared_cache, fake_redis):
        mgr = CacheManager(shared=shared_cache)
        await mgr.set("k", "v")
        assert "k" not in fake_redis.data

    async def test_shared_level_writes_json(self, shared_cache, fake_redis):
        mgr = CacheManager(shared=shared_cache)
        await mgr.set("k", {"name": "歌曲"}, level=CacheLevel.SHARED, ttl_seconds=120)
        assert json.loads(fake_redis.data["k"]) == {"name": "歌曲"}
        assert fake_redis.expiry["k"] == 120

    async def test_promotion_from_shared(self, shared_cache, fake_redis):
        fake_redis.data["k"] = json.dumps({"a": 1})
        fake_redis.expiry["k"] = 90
        mgr = CacheManager(shared=shared_cache)
        assert await mgr.get("k") == {"a": 1}
        assert mgr.local.contains("k")
        assert mgr.local.get("k").ttl_seconds == 90
        assert mgr.stats().hits == 1

    async def test_corrupt_shared_value_is_miss(self, shared_cache, fake_redis):
        fake_redis.data["k"] = "{not json"
        mgr = CacheManager(shared=shared_cache)
        assert await mgr.get("k") is None
        assert "k" not in fake_redis.data
        assert mgr.stats().misses == 1

    async def test_has_checks_shared(self, shared_cache, fake_redis):
        fake_redis.data["k"] = "1"
        mgr = CacheManager(shared=shared_cache)
        assert await mgr.has("k")

    async def test_delete_by_prefix_both_tiers(self, shared_cache, fake_redis):
        mgr = CacheManager(shared=shared_cache)
        await mgr.set("song:1", "a", level=CacheLevel.SHARED)
        fake_redis.data["song:9"] = '"z"'
        count = await mgr.delete_by_prefix("song:")
        assert count == 3
        assert fake_redis.data == {}
        assert len(mgr.local) == 0

    async def test_non_serialisable_value_stays_local(self, shared_cache, fake_redis):
        mgr = CacheManager(shared=shared_cache)
        await mgr.set("k", {1, 2}, level=CacheLevel.SHARED)
        assert "k" not in fake_redis.data
        assert await mgr.get("k") == {1, 2}

    async def test_shared_outage_falls_back_to_local(self, shared_cache, fake_redis):
        from redis.exceptions import ConnectionError as RedisConnectionError

        mgr = CacheManager(shared=shared_cache)
        await mgr.set("k", "v", level=CacheLevel.SHARED)
        fake_redis.fail_with = RedisConnectionError("down")
        assert await mgr.get("missing") is None
        assert not mgr.shared_available
        await mgr.set("k2", "v2", level=CacheLevel.SHARED)
        assert await mgr.get("k2") == "v2"

    async def test_clear_leaves_shared(self, shared_cache, fake_redis):
        mgr = CacheManager(shared=shared_cache)
        await mgr.set("k", "v", level=CacheLevel.SHARED)
        await mgr.clear()
        assert "k" in fake_redis.data
