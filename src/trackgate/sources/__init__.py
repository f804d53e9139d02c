"""Source catalog, statistics registry, persistence and ranking."""

from trackgate.sources.catalog import DEFAULT_SOURCES, MUSIC_SOURCES, SourceInfo
from trackgate.sources.ranking import SourceRanker
from trackgate.sources.registry import SourceStatsRegistry
from trackgate.sources.store import (
    JsonFileStatsStore,
    MemoryStatsStore,
    RedisStatsStore,
    StatsStore,
)

__all__ = [
    "DEFAULT_SOURCES",
    "JsonFileStatsStore",
    "MUSIC_SOURCES",
    "MemoryStatsStore",
    "RedisStatsStore",
    "SourceInfo",
    "SourceRanker",
    "SourceStatsRegistry",
    "StatsStore",
]
