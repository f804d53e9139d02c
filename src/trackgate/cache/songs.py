"""Song cache — domain-level facade over the cache manager."""

from __future__ import annotations

import logging
from typing import Any

from trackgate.cache.keys import (
    SONG_PREFIX,
    SOURCE_PREFIX,
    is_song_source_key,
    song_key,
    song_source_pattern,
    source_key,
)
from trackgate.cache.manager import CacheManager
from trackgate.cache.stats import CacheStats
from trackgate.types import CacheLevel, CacheOptions, CachePriority, SongCacheOptions

logger = logging.getLogger(__name__)

# Source availability is more volatile than song metadata
DEFAULT_SOURCE_MATCH_TTL = 3600


class SongCache:
    """Caches song info and source match results under namespaced keys."""

    def __init__(
        self,
        cache: CacheManager,
        default_options: SongCacheOptions | None = None,
        source_match_ttl: int = DEFAULT_SOURCE_MATCH_TTL,
    ) -> None:
        self._cache = cache
        self._defaults = default_options or SongCacheOptions()
        self._source_match_ttl = source_match_ttl

    @property
    def cache(self) -> CacheManager:
        return self._cache

    async def cache_song_info(
        self, song_id: str, data: Any, options: SongCacheOptions | None = None
    ) -> None:
        opts = options or self._defaults
        await self._cache.set(song_key(song_id), _to_payload(data), self._write_options(opts))

    async def cache_song_source_info(
        self, song_id: str, source: str, data: Any, options: SongCacheOptions | None = None
    ) -> None:
        opts = options or self._defaults
        await self._cache.set(
            song_key(song_id, source), _to_payload(data), self._write_options(opts)
        )

    async def cache_source_match_result(
        self, song_id: str, sources: list[str], options: SongCacheOptions | None = None
    ) -> None:
        opts = options or self._defaults
        write = CacheOptions(
            ttl_seconds=min(opts.duration_seconds, self._source_match_ttl),
            level=CacheLevel.SHARED if opts.use_shared else CacheLevel.MEMORY,
            priority=CachePriority.LOW,
        )
        await self._cache.set(source_key(song_id), list(sources), write)

    async def get_song_info(self, song_id: str) -> dict[str, Any] | None:
        return await self._cache.get(song_key(song_id))

    async def get_song_source_info(self, song_id: str, source: str) -> dict[str, Any] | None:
        return await self._cache.get(song_key(song_id, source))

    async def get_source_match_result(self, song_id: str) -> list[str] | None:
        return await self._cache.get(source_key(song_id))

    async def has_song_info(self, song_id: str) -> bool:
        return await self._cache.has(song_key(song_id))

    async def has_song_source_info(self, song_id: str, source: str) -> bool:
        return await self._cache.has(song_key(song_id, source))

    async def clear_song_cache(self, song_id: str) -> int:
        """Drop the song's info, its per-source info and its match result."""
        base = song_key(song_id)
        count = 1 if await self._cache.has(base) else 0
        await self._cache.delete(base)
        count += await self._cache.delete_by_prefix(f"{base}:")
        await self._cache.delete(source_key(song_id))
        logger.info("Cleared cache for song %s", song_id)
        return count

    async def clear_source_cache(self, source: str) -> int:
        """Drop every ``song:{id}:{source}`` entry."""
        count = await self._cache.delete_matching(
            song_source_pattern(source),
            lambda key: is_song_source_key(key, source),
        )
        logger.info("Cleared %d cached entries for source %s", count, source)
        return count

    async def clear_all(self) -> int:
        count = await self._cache.delete_by_prefix(SONG_PREFIX)
        count += await self._cache.delete_by_prefix(SOURCE_PREFIX)
        self._cache.reset_stats()
        return count

    def stats(self) -> CacheStats:
        return self._cache.stats()

    @staticmethod
    def _write_options(opts: SongCacheOptions) -> CacheOptions:
        return CacheOptions(
            ttl_seconds=opts.duration_seconds,
            level=CacheLevel.SHARED if opts.use_shared else CacheLevel.MEMORY,
            priority=opts.priority,
        )


def _to_payload(data: Any) -> Any:
    """Pydantic models are stored as plain JSON-compatible dicts."""
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json", exclude_none=True)
    return data
