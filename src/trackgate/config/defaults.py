"""Package-level default configuration values."""

from __future__ import annotations

from pathlib import Path
from typing import Any

# Shared (Redis) cache tier
DEFAULT_REDIS_URL = None
DEFAULT_ENABLE_REDIS_CACHE = False

# Local cache tier
DEFAULT_MEMORY_CACHE_SIZE = 1000
DEFAULT_MEMORY_CACHE_TTL = 300  # seconds

# Domain cache TTLs
DEFAULT_SONG_CACHE_TTL = 86400
DEFAULT_SOURCE_CACHE_TTL = 3600

# Upstream resolution
DEFAULT_REQUEST_TIMEOUT_MS = 15000
DEFAULT_MUSIC_API_URL = None
DEFAULT_USER_AGENT = "trackgate/0.1"

# Source statistics persistence
DEFAULT_STATS_BACKEND = "file"
DEFAULT_STATS_PATH = Path.home() / ".trackgate" / "source-stats.json"

# Background maintenance (seconds)
DEFAULT_CLEANUP_INTERVAL = 10 * 60
DEFAULT_STATS_LOG_INTERVAL = 60 * 60
DEFAULT_STATS_FLUSH_INTERVAL = 5 * 60

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "redis_url": DEFAULT_REDIS_URL,
        "enable_redis_cache": DEFAULT_ENABLE_REDIS_CACHE,
        "memory_cache_size": DEFAULT_MEMORY_CACHE_SIZE,
        "memory_cache_ttl": DEFAULT_MEMORY_CACHE_TTL,
        "song_cache_ttl": DEFAULT_SONG_CACHE_TTL,
        "source_cache_ttl": DEFAULT_SOURCE_CACHE_TTL,
        "request_timeout_ms": DEFAULT_REQUEST_TIMEOUT_MS,
        "music_api_url": DEFAULT_MUSIC_API_URL,
        "user_agent": DEFAULT_USER_AGENT,
        "stats_backend": DEFAULT_STATS_BACKEND,
        "stats_path": str(DEFAULT_STATS_PATH),
        "cleanup_interval": DEFAULT_CLEANUP_INTERVAL,
        "stats_log_interval": DEFAULT_STATS_LOG_INTERVAL,
        "stats_flush_interval": DEFAULT_STATS_FLUSH_INTERVAL,
        "log_level": DEFAULT_LOG_LEVEL,
    }
