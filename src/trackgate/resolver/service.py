"""Resolution service — ranks sources, checks the cache, calls the resolver, records outcomes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError

from trackgate.cache.songs import SongCache
from trackgate.errors.exceptions import (
    InvalidRequestError,
    ResolutionError,
    ResolutionTimeoutError,
)
from trackgate.quality.assessment import QualityAssessor
from trackgate.resolver.base import Resolver
from trackgate.sources.catalog import is_known_source
from trackgate.sources.ranking import SourceRanker
from trackgate.sources.registry import SourceStatsRegistry
from trackgate.types import NetworkClass, ResolutionResult, SongInfo

logger = logging.getLogger(__name__)

MAX_TRACK_ID_LENGTH = 20


def validate_track_id(track_id: Any) -> str:
    """Strip and check a track id: digits only, at most 20 characters."""
    if track_id is None or str(track_id).strip() == "":
        raise InvalidRequestError("Missing required parameter: id", field="id")
    cleaned = str(track_id).strip()
    if not cleaned.isascii() or not cleaned.isdigit():
        raise InvalidRequestError("Invalid id, expected digits only", field="id")
    if len(cleaned) > MAX_TRACK_ID_LENGTH:
        raise InvalidRequestError(
            f"id is longer than {MAX_TRACK_ID_LENGTH} characters", field="id"
        )
    return cleaned


class ResolutionService:
    """Thin orchestrator over ranking, the song cache and the resolver.

    No distributed locking: concurrent misses for one id may both reach
    the resolver.
    """

    def __init__(
        self,
        resolver: Resolver,
        ranker: SourceRanker,
        registry: SourceStatsRegistry,
        songs: SongCache,
        assessor: QualityAssessor | None = None,
        timeout: float = 15.0,
        is_source_enabled: Callable[[str], bool] | None = None,
    ) -> None:
        self._resolver = resolver
        self._ranker = ranker
        self._registry = registry
        self._songs = songs
        self._assessor = assessor or QualityAssessor()
        self._timeout = timeout
        self._is_enabled = is_source_enabled or (lambda source: True)

    async def match_song(
        self,
        track_id: Any,
        sources: Iterable[str] | None = None,
        network: NetworkClass | str | None = None,
    ) -> ResolutionResult:
        song_id = validate_track_id(track_id)
        candidates = self._validate_sources(sources)

        if network is None:
            ranked = self._ranker.rank_sources(candidates)
        else:
            ranked = self._ranker.adjust_sources_for_network(candidates, network)
        if not ranked:
            raise InvalidRequestError("No usable sources after ranking", field="sources")

        hit = await self._cached_match(song_id, ranked)
        if hit is not None:
            logger.debug("Cache hit for %s via %s", song_id, hit.source)
            return ResolutionResult(
                track_id=song_id,
                data=hit,
                source=hit.source,
                cached=True,
                quality=self._assessor.assess(hit),
                sources=ranked,
            )

        return await self._resolve(song_id, ranked, network)

    async def _cached_match(self, song_id: str, ranked: list[str]) -> SongInfo | None:
        """Cached match from one of ``ranked``; the song-level entry first, then per source."""
        data = self._read_cached(song_id, await self._songs.get_song_info(song_id))
        if data is not None and data.source in ranked:
            return data
        for source in ranked:
            data = self._read_cached(
                song_id, await self._songs.get_song_source_info(song_id, source)
            )
            if data is not None:
                data.source = source
                return data
        return None

    @staticmethod
    def _read_cached(song_id: str, cached: Any) -> SongInfo | None:
        if cached is None:
            return None
        try:
            return SongInfo.model_validate(cached)
        except ValidationError as exc:
            logger.warning("Ignoring unreadable cached entry for %s: %s", song_id, exc)
            return None

    async def _resolve(
        self, song_id: str, ranked: list[str], network: NetworkClass | str | None = None
    ) -> ResolutionResult:
        started = time.perf_counter()
        try:
            raw = await asyncio.wait_for(
                self._resolver.resolve(song_id, list(ranked)), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            await self._record_failures(ranked)
            raise ResolutionTimeoutError(
                f"Resolver timed out after {self._timeout:g}s",
                track_id=song_id,
                sources=ranked,
                original=exc,
            ) from exc
        except ResolutionError:
            await self._record_failures(ranked)
            raise
        except Exception as exc:
            await self._record_failures(ranked)
            raise ResolutionError(
                "Music resolver is unavailable", track_id=song_id, sources=ranked, original=exc
            ) from exc

        elapsed_ms = (time.perf_counter() - started) * 1000

        data = self._pick_match(raw, ranked, network)
        if data is None or not data.url:
            await self._record_failures(ranked)
            raise ResolutionError("No match found", track_id=song_id, sources=ranked)

        source = data.source if data.source in ranked else ranked[0]
        data.source = source
        await self._registry.record_result(source, True, elapsed_ms)

        quality = self._assessor.assess(data)
        await self._songs.cache_song_info(song_id, data)
        await self._songs.cache_song_source_info(song_id, source, data)
        await self._songs.cache_source_match_result(song_id, [source])

        logger.info("Resolved %s via %s in %.0f ms", song_id, source, elapsed_ms)
        return ResolutionResult(
            track_id=song_id,
            data=data,
            source=source,
            cached=False,
            quality=quality,
            sources=ranked,
        )

    def _validate_sources(self, sources: Iterable[str] | None) -> list[str] | None:
        """Normalise and check requested sources; ``None`` means the defaults."""
        if sources is None:
            requested = self._ranker.default_sources
        else:
            if isinstance(sources, str):
                sources = sources.split(",")
            requested = [s.strip().lower() for s in sources if s and s.strip()]
            invalid = [s for s in requested if not is_known_source(s)]
            if invalid:
                raise InvalidRequestError(
                    f"Unknown sources: {', '.join(invalid)}", field="sources"
                )
            if not requested:
                requested = self._ranker.default_sources

        enabled = [s for s in requested if self._is_enabled(s)]
        if not enabled:
            raise InvalidRequestError("No enabled sources to query", field="sources")
        return enabled

    async def _record_failures(self, sources: list[str]) -> None:
        for source in sources:
            await self._registry.record_result(source, False, 0)

    def _pick_match(
        self, raw: Any, ranked: list[str], network: NetworkClass | str | None
    ) -> SongInfo | None:
        """One match from the resolver's answer; a list is narrowed by quality."""
        if not isinstance(raw, (list, tuple)):
            return self._to_song_info(raw)
        matches = [m for m in (self._to_song_info(r) for r in raw) if m is not None and m.url]
        pairs = [(m.source if m.source in ranked else ranked[0], m) for m in matches]
        if network is None:
            best = self._assessor.select_best(pairs)
        else:
            best = self._assessor.select_for_network(pairs, network)
        if best is None:
            return None
        best.data.source = best.source
        return best.data

    @staticmethod
    def _to_song_info(raw: Any) -> SongInfo | None:
        if raw is None or isinstance(raw, SongInfo):
            return raw
        try:
            return SongInfo.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Resolver returned an unreadable match: %s", exc)
            return None
