"""Source statistics registry — per-source outcome history with write-through persistence."""

from __future__ import annotations

import logging
import time

from pydantic import ValidationError

from trackgate.errors.exceptions import TransientError
from trackgate.sources.catalog import DEFAULT_QUALITY_SCORES, seed_quality
from trackgate.sources.store import MemoryStatsStore, StatsStore
from trackgate.types import SourceStats

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _seeded(source: str) -> SourceStats:
    return SourceStats(quality_score=seed_quality(source))


class SourceStatsRegistry:
    """Owns the ``SourceStats`` table. Single writer per source.

    Every mutation happens synchronously, before the persistence await, so
    interleaved ``record_result`` calls never lose an increment.
    """

    def __init__(self, store: StatsStore | None = None) -> None:
        self._store: StatsStore = store or MemoryStatsStore()
        self._stats: dict[str, SourceStats] = self._seed_table()

    @property
    def store(self) -> StatsStore:
        return self._store

    @property
    def known_sources(self) -> list[str]:
        return list(self._stats)

    async def load(self) -> None:
        """Seed the catalog table, then overlay the persisted snapshot."""
        table = self._seed_table()
        try:
            persisted = await self._store.load()
        except (TransientError, ValueError) as exc:
            logger.warning("Could not load source stats, using seeds: %s", exc)
            self._stats = table
            return

        for source, raw in persisted.items():
            try:
                table[source] = SourceStats.model_validate(raw)
            except ValidationError as exc:
                logger.warning("Ignoring corrupt stats for source %s: %s", source, exc)
        self._stats = table
        logger.info("Loaded stats for %d sources", len(persisted))

    async def record_result(self, source: str, success: bool, response_time_ms: float = 0) -> None:
        """Record one resolution outcome for ``source`` and persist the table."""
        stats = self._stats.get(source)
        if stats is None:
            stats = _seeded(source)
            self._stats[source] = stats

        stats.total_requests += 1
        now = _now_ms()
        if success:
            stats.available_count += 1
            stats.last_success_at = now
            n = stats.available_count
            elapsed = max(0.0, float(response_time_ms))
            stats.avg_response_time_ms = (stats.avg_response_time_ms * (n - 1) + elapsed) / n
        else:
            stats.last_failure_at = now
        stats.success_rate = stats.available_count / stats.total_requests

        logger.debug(
            "Recorded %s for %s (%d/%d)",
            "success" if success else "failure",
            source,
            stats.available_count,
            stats.total_requests,
        )
        await self._persist()

    def get_stats(self, source: str | None = None) -> SourceStats | dict[str, SourceStats] | None:
        """One source's stats (``None`` if unknown) or a copy of the whole table."""
        if source is None:
            return self.snapshot()
        stats = self._stats.get(source)
        return stats.model_copy() if stats is not None else None

    async def reset_stats(self, source: str | None = None) -> None:
        """Reset one known source to its seed, or reseed every source."""
        if source is None:
            self._stats = self._seed_table()
            logger.info("Reset stats for all sources")
        elif source in self._stats:
            self._stats[source] = _seeded(source)
            logger.info("Reset stats for source %s", source)
        else:
            return
        await self._persist()

    async def flush(self) -> None:
        await self._persist()

    def snapshot(self) -> dict[str, SourceStats]:
        return {source: stats.model_copy() for source, stats in self._stats.items()}

    async def _persist(self) -> None:
        mapping = {source: stats.to_dict() for source, stats in self._stats.items()}
        try:
            await self._store.save(mapping)
        except TransientError as exc:
            logger.warning("Could not persist source stats: %s", exc)

    @staticmethod
    def _seed_table() -> dict[str, SourceStats]:
        return {source: _seeded(source) for source in DEFAULT_QUALITY_SCORES}
