"""Cache subsystem — two-tier (local LRU + shared Redis) with namespaced song keys."""

from trackgate.cache.keys import song_key, source_key
from trackgate.cache.manager import PRIORITY_TTL, CacheManager
from trackgate.cache.shared import SharedCache
from trackgate.cache.songs import SongCache
from trackgate.cache.stats import CacheEntry, CacheStats

__all__ = [
    "CacheManager",
    "CacheEntry",
    "CacheStats",
    "PRIORITY_TTL",
    "SharedCache",
    "SongCache",
    "song_key",
    "source_key",
]
