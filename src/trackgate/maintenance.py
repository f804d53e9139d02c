"""Background maintenance: cache sweeps, cache stats logging, stats snapshot flushes."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from trackgate.cache.manager import CacheManager
from trackgate.sources.registry import SourceStatsRegistry

logger = logging.getLogger(__name__)


class MaintenanceScheduler:
    """Runs the recurring jobs as asyncio tasks until ``stop()``."""

    def __init__(
        self,
        cache: CacheManager,
        registry: SourceStatsRegistry,
        cleanup_interval: float = 600,
        stats_log_interval: float = 3600,
        flush_interval: float = 300,
    ) -> None:
        self._cache = cache
        self._registry = registry
        self._jobs: list[tuple[str, float, Callable[[], Awaitable[None]]]] = [
            ("cache-cleanup", cleanup_interval, self.run_cleanup),
            ("cache-stats", stats_log_interval, self.run_stats_log),
            ("stats-flush", flush_interval, self.run_flush),
        ]
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self) -> None:
        """Start every job. Must be called from a running event loop."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._every(interval, job), name=f"trackgate-{name}")
            for name, interval, job in self._jobs
        ]
        logger.debug("Started %d maintenance jobs", len(self._tasks))

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []

    async def run_cleanup(self) -> None:
        removed = self._cache.purge_expired()
        if removed:
            logger.info("Removed %d expired cache entries", removed)

    async def run_stats_log(self) -> None:
        # Counters are cumulative; logging does not reset them
        self._cache.log_stats()

    async def run_flush(self) -> None:
        await self._registry.flush()

    async def _every(self, interval: float, job: Callable[[], Awaitable[None]]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except Exception:
                logger.exception("Maintenance job %s failed", job.__name__)
