"""Cache key scheme for songs and source match results.

Only this module builds raw cache keys:

    song:{id}            song info, source-agnostic
    song:{id}:{source}   song info resolved from one source
    source:{id}          sources known to resolve the song
"""

from __future__ import annotations

SONG_PREFIX = "song:"
SOURCE_PREFIX = "source:"


def song_key(song_id: str, source: str | None = None) -> str:
    if source:
        return f"{SONG_PREFIX}{song_id}:{source}"
    return f"{SONG_PREFIX}{song_id}"


def source_key(song_id: str) -> str:
    return f"{SOURCE_PREFIX}{song_id}"


def song_source_pattern(source: str) -> str:
    """Glob matching every source-specific song key for ``source``."""
    return f"{SONG_PREFIX}*:{source}"


def is_song_source_key(key: str, source: str) -> bool:
    """True when ``key`` is a ``song:{id}:{source}`` key for ``source``."""
    if not key.startswith(SONG_PREFIX):
        return False
    parts = key[len(SONG_PREFIX):].split(":")
    return len(parts) == 2 and parts[1] == source
