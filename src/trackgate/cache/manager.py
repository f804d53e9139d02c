"""Cache manager — orchestrates the local (memory) and shared (Redis) tiers."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from trackgate.cache.memory import MemoryCache
from trackgate.cache.shared import SharedCache
from trackgate.cache.stats import CacheStats
from trackgate.types import CacheLevel, CacheOptions, CachePriority

logger = logging.getLogger(__name__)

# Default TTL per priority (seconds)
PRIORITY_TTL: dict[CachePriority, int] = {
    CachePriority.LOW: 15 * 60,
    CachePriority.NORMAL: 60 * 60,
    CachePriority.HIGH: 6 * 60 * 60,
}


def resolve_ttl(options: CacheOptions) -> int:
    """Explicit ttl_seconds wins; otherwise the priority's default."""
    if options.ttl_seconds:
        return options.ttl_seconds
    return PRIORITY_TTL[options.priority]


class CacheManager:
    """Two-tier cache: local LRU → shared Redis.

    Values must be JSON-serialisable. Consistency across processes sharing
    the Redis tier is best-effort: there is no read-your-own-write guarantee.
    """

    def __init__(
        self,
        max_items: int = 1000,
        default_ttl: float = 300,
        shared: SharedCache | None = None,
    ) -> None:
        self._local = MemoryCache(max_items=max_items, default_ttl=default_ttl)
        self._shared = shared
        self._hits = 0
        self._misses = 0

    @property
    def local(self) -> MemoryCache:
        return self._local

    @property
    def shared(self) -> SharedCache | None:
        return self._shared

    @property
    def shared_available(self) -> bool:
        return self._shared is not None and self._shared.available

    async def connect(self) -> bool:
        """Connect the shared tier, if one is configured."""
        if self._shared is None:
            logger.info("No shared cache configured, using local cache only")
            return False
        return await self._shared.connect()

    async def get(self, key: str) -> Any | None:
        """Look up a key. Local tier first, then shared (with promotion)."""
        entry = self._local.get(key)
        if entry is not None:
            self._hits += 1
            return entry.value

        if self.shared_available:
            raw = await self._shared.get(key)
            if raw is not None:
                try:
                    value = json.loads(raw)
                except (json.JSONDecodeError, TypeError) as exc:
                    logger.error("Corrupt shared cache value for %s: %s", key, exc)
                    await self._shared.delete(key)
                else:
                    remaining = await self._shared.ttl(key)
                    # Promote to local tier; last write wins
                    self._local.set(key, value, ttl_seconds=remaining)
                    self._hits += 1
                    logger.debug("Promoted %s from shared cache", key)
                    return value

        self._misses += 1
        return None

    async def set(
        self,
        key: str,
        value: Any,
        options: CacheOptions | None = None,
        **overrides: Any,
    ) -> None:
        """Store locally, and in Redis when the level asks for it.

        Shared-tier failures are logged, never raised.
        """
        opts = options or CacheOptions()
        if overrides:
            opts = CacheOptions(**{**opts.model_dump(), **overrides})
        ttl = resolve_ttl(opts)

        self._local.set(key, value, ttl_seconds=ttl)

        if opts.level == CacheLevel.SHARED and self.shared_available:
            try:
                serialized = json.dumps(value, ensure_ascii=False)
            except (TypeError, ValueError) as exc:
                logger.error("Value for %s is not JSON-serialisable: %s", key, exc)
                return
            await self._shared.set(key, serialized, ttl)

    async def has(self, key: str) -> bool:
        """Existence check. Does not count as a hit or miss."""
        if self._local.contains(key):
            return True
        if self.shared_available:
            return await self._shared.exists(key)
        return False

    async def delete(self, key: str) -> None:
        self._local.delete(key)
        if self.shared_available:
            await self._shared.delete(key)

    async def delete_by_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix`` from both tiers."""
        count = self._local.delete_by_prefix(prefix)
        if self.shared_available:
            count += await self._delete_shared_pattern(f"{prefix}*")
        return count

    async def delete_matching(self, pattern: str, local_match: Callable[[str], bool]) -> int:
        """Remove keys matching a Redis glob remotely and a predicate locally."""
        count = self._local.delete_where(local_match)
        if self.shared_available:
            count += await self._delete_shared_pattern(pattern)
        return count

    def purge_expired(self) -> int:
        return self._local.purge_expired()

    async def clear(self) -> None:
        """Clear the local tier and reset counters. The shared tier is left alone."""
        self._local.clear()
        self.reset_stats()

    def stats(self) -> CacheStats:
        """Return aggregate cache statistics."""
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            size=len(self._local),
            memory_items=len(self._local),
            shared_available=self.shared_available,
        )

    def reset_stats(self) -> None:
        self._hits = 0
        self._misses = 0

    def log_stats(self) -> None:
        stats = self.stats()
        logger.info(
            "Cache stats: lookups=%d, hit rate=%s, items=%d, shared=%s",
            stats.hits + stats.misses,
            stats.hit_rate_display,
            stats.size,
            "up" if stats.shared_available else "down",
        )

    async def close(self) -> None:
        if self._shared is not None:
            await self._shared.close()

    async def _delete_shared_pattern(self, pattern: str) -> int:
        keys = await self._shared.keys(pattern)
        if not keys:
            return 0
        return await self._shared.delete(*keys)
