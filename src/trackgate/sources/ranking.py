"""Source ranking — orders candidate sources by past reliability, quality and speed."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from trackgate.sources.catalog import DEFAULT_SOURCES, NEUTRAL_QUALITY_SCORE
from trackgate.sources.registry import SourceStatsRegistry
from trackgate.types import NetworkClass, SourceStats

logger = logging.getLogger(__name__)

# A source is dropped once it has enough history and keeps failing
MIN_REQUESTS_FOR_FILTER = 5
MIN_SUCCESS_RATE = 0.2

_SUCCESS_WEIGHT = 0.4
_QUALITY_WEIGHT = 0.4
_SPEED_WEIGHT = 0.2
_SLOW_RESPONSE_MS = 1000

# Cellular tuning
_HIGH_QUALITY_4G = 90
_SLOW_4G_MS = 500
_HIGH_QUALITY_4G_FACTOR = 0.8
_HIGH_QUALITY_SLOW_NET = 85
_SLOW_NET_MS = 300


def composite_score(stats: SourceStats) -> float:
    """Weighted blend of success rate, quality and response speed (0-1)."""
    speed = max(0.0, (_SLOW_RESPONSE_MS - stats.avg_response_time_ms) / _SLOW_RESPONSE_MS)
    return (
        stats.success_rate * _SUCCESS_WEIGHT
        + (stats.quality_score / 100) * _QUALITY_WEIGHT
        + speed * _SPEED_WEIGHT
    )


def is_unreliable(stats: SourceStats) -> bool:
    return stats.total_requests > MIN_REQUESTS_FOR_FILTER and stats.success_rate < MIN_SUCCESS_RATE


class SourceRanker:
    """Pure ranking over a fresh registry snapshot on every call."""

    def __init__(
        self,
        registry: SourceStatsRegistry,
        default_sources: Sequence[str] | None = None,
    ) -> None:
        self._registry = registry
        self._defaults = list(default_sources or DEFAULT_SOURCES)

    @property
    def default_sources(self) -> list[str]:
        return list(self._defaults)

    def rank_sources(self, candidates: Iterable[str] | None = None) -> list[str]:
        """Filter unreliable sources, then sort best-first.

        ``None`` ranks the default source order; an empty list ranks to ``[]``.
        """
        pool = list(self._defaults) if candidates is None else list(candidates)
        return self._rank(pool, self._registry.snapshot())

    def adjust_sources_for_network(
        self,
        candidates: Iterable[str] | None,
        network: NetworkClass | str | None,
    ) -> list[str]:
        """Rank, then reorder or prune for the client's network class."""
        snapshot = self._registry.snapshot()
        pool = list(self._defaults) if candidates is None else list(candidates)
        ranked = self._rank(pool, snapshot)
        net = NetworkClass(network) if network is not None else NetworkClass.UNKNOWN

        if net == NetworkClass.CELLULAR_4G:
            # sorted() is stable, so equal scores keep ranked order
            return sorted(ranked, key=lambda s: -self._score_4g(snapshot.get(s)))

        if net in (NetworkClass.CELLULAR_3G, NetworkClass.CELLULAR_2G):
            kept = [s for s in ranked if not self._too_heavy(snapshot.get(s))]
            if len(kept) < len(ranked):
                logger.debug("Dropped %d heavy sources for %s", len(ranked) - len(kept), net)
            return kept

        return ranked

    def get_best_source(self, candidates: Iterable[str] | None = None) -> str | None:
        ranked = self.rank_sources(candidates)
        return ranked[0] if ranked else None

    def score(self, source: str) -> float | None:
        """Composite score for ``source``, or ``None`` without stats."""
        stats = self._registry.get_stats(source)
        return composite_score(stats) if stats is not None else None

    def _rank(self, pool: list[str], snapshot: dict[str, SourceStats]) -> list[str]:
        kept = []
        for source in dict.fromkeys(pool):
            stats = snapshot.get(source)
            if stats is not None and is_unreliable(stats):
                logger.debug(
                    "Filtered %s (success rate %.2f over %d requests)",
                    source,
                    stats.success_rate,
                    stats.total_requests,
                )
                continue
            kept.append(source)
        return sorted(kept, key=lambda s: self._sort_key(s, snapshot.get(s)))

    def _sort_key(self, source: str, stats: SourceStats | None) -> tuple[int, float]:
        # Scored sources first (best score first), then the rest in default order
        if stats is not None:
            return (0, -composite_score(stats))
        try:
            index = self._defaults.index(source)
        except ValueError:
            index = len(self._defaults)
        return (1, float(index))

    @staticmethod
    def _score_4g(stats: SourceStats | None) -> float:
        if stats is None:
            return NEUTRAL_QUALITY_SCORE
        if stats.quality_score > _HIGH_QUALITY_4G and stats.avg_response_time_ms > _SLOW_4G_MS:
            return stats.quality_score * _HIGH_QUALITY_4G_FACTOR
        return stats.quality_score

    @staticmethod
    def _too_heavy(stats: SourceStats | None) -> bool:
        if stats is None:
            return False
        return (
            stats.quality_score > _HIGH_QUALITY_SLOW_NET
            and stats.avg_response_time_ms > _SLOW_NET_MS
        )
