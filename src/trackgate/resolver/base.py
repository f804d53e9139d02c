"""Resolver protocol — the upstream that turns a track id into a playable match."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from trackgate.types import SongInfo


@runtime_checkable
class Resolver(Protocol):
    async def resolve(
        self, track_id: str, sources: list[str]
    ) -> SongInfo | dict[str, Any] | list[SongInfo | dict[str, Any]] | None:
        """Return a usable match from ``sources``, tried in order.

        A resolver that queries several sources at once may return every
        match; the caller keeps the best one by quality.
        """
        ...
