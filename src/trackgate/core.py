"""Top-level entry point: Gateway wires every service once from settings."""

from __future__ import annotations

import logging
from typing import Any

import redis.asyncio as aioredis

from trackgate.cache.manager import CacheManager
from trackgate.cache.shared import SharedCache
from trackgate.cache.songs import SongCache
from trackgate.config.settings import GatewaySettings
from trackgate.errors.exceptions import TrackgateError
from trackgate.maintenance import MaintenanceScheduler
from trackgate.quality.assessment import QualityAssessor
from trackgate.resolver.base import Resolver
from trackgate.resolver.http import HttpResolver
from trackgate.resolver.service import ResolutionService
from trackgate.sources.ranking import SourceRanker
from trackgate.sources.registry import SourceStatsRegistry
from trackgate.sources.store import (
    JsonFileStatsStore,
    MemoryStatsStore,
    RedisStatsStore,
    StatsStore,
)
from trackgate.types import NetworkClass, ResolutionResult, SongCacheOptions, StatsBackend

logger = logging.getLogger(__name__)


class Gateway:
    """Owns the cache, stats registry, ranker, resolver and maintenance jobs."""

    def __init__(
        self,
        settings: GatewaySettings | None = None,
        resolver: Resolver | None = None,
        shared: SharedCache | None = None,
        stats_store: StatsStore | None = None,
    ) -> None:
        self._settings = settings or GatewaySettings.load()
        s = self._settings

        if shared is None and s.shared_cache_enabled:
            shared = SharedCache(url=s.redis_url)
        self._cache = CacheManager(
            max_items=s.memory_cache_size,
            default_ttl=s.memory_cache_ttl,
            shared=shared,
        )
        self._songs = SongCache(
            self._cache,
            SongCacheOptions(duration_seconds=s.song_cache_ttl, use_shared=shared is not None),
            source_match_ttl=s.source_cache_ttl,
        )

        self._stats_client: aioredis.Redis | None = None
        self._registry = SourceStatsRegistry(stats_store or self._build_store())
        self._ranker = SourceRanker(self._registry, s.default_sources)
        self._assessor = QualityAssessor()

        # A resolver built here is closed here
        self._owns_resolver = resolver is None and bool(s.music_api_url)
        if self._owns_resolver:
            resolver = HttpResolver(
                s.music_api_url, user_agent=s.user_agent, timeout=s.request_timeout
            )
        self._resolver = resolver
        self._service = (
            ResolutionService(
                resolver,
                self._ranker,
                self._registry,
                self._songs,
                assessor=self._assessor,
                timeout=s.request_timeout,
                is_source_enabled=s.is_source_enabled,
            )
            if resolver is not None
            else None
        )

        self._scheduler = MaintenanceScheduler(
            self._cache,
            self._registry,
            cleanup_interval=s.cleanup_interval,
            stats_log_interval=s.stats_log_interval,
            flush_interval=s.stats_flush_interval,
        )
        self._started = False

    @property
    def settings(self) -> GatewaySettings:
        return self._settings

    @property
    def cache(self) -> CacheManager:
        return self._cache

    @property
    def songs(self) -> SongCache:
        return self._songs

    @property
    def registry(self) -> SourceStatsRegistry:
        return self._registry

    @property
    def ranker(self) -> SourceRanker:
        return self._ranker

    @property
    def assessor(self) -> QualityAssessor:
        return self._assessor

    @property
    def scheduler(self) -> MaintenanceScheduler:
        return self._scheduler

    @property
    def service(self) -> ResolutionService:
        if self._service is None:
            raise TrackgateError("No resolver configured, set music_api_url")
        return self._service

    async def start(self, maintenance: bool = True) -> None:
        """Connect the shared tier, load stats and start maintenance jobs."""
        if self._started:
            return
        await self._cache.connect()
        await self._registry.load()
        if maintenance:
            self._scheduler.start()
        self._started = True
        logger.info(
            "Gateway started (shared cache %s, stats backend %s)",
            "up" if self._cache.shared_available else "off",
            self._settings.stats_backend,
        )

    async def match_song(
        self,
        track_id: Any,
        sources: list[str] | None = None,
        network: NetworkClass | str | None = None,
    ) -> ResolutionResult:
        return await self.service.match_song(track_id, sources=sources, network=network)

    async def close(self) -> None:
        await self._scheduler.stop()
        if self._started:
            await self._registry.flush()
        await self._cache.close()
        if self._owns_resolver and isinstance(self._resolver, HttpResolver):
            await self._resolver.close()
        if self._stats_client is not None:
            await self._stats_client.aclose()
        self._started = False

    async def __aenter__(self) -> Gateway:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _build_store(self) -> StatsStore:
        s = self._settings
        if s.stats_backend == StatsBackend.REDIS:
            if not s.redis_url:
                raise ValueError("stats_backend 'redis' needs redis_url")
            self._stats_client = aioredis.from_url(s.redis_url, decode_responses=True)
            return RedisStatsStore(self._stats_client)
        if s.stats_backend == StatsBackend.MEMORY:
            return MemoryStatsStore()
        return JsonFileStatsStore(s.stats_path)
