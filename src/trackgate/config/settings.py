"""Typed gateway settings built from the merged configuration hierarchy."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trackgate.config import defaults
from trackgate.config.hierarchy import load_config_hierarchy
from trackgate.sources.catalog import DEFAULT_SOURCES
from trackgate.types import StatsBackend

logger = logging.getLogger(__name__)

_MIN_MEMORY_CACHE_SIZE = 10
_MIN_REQUEST_TIMEOUT_MS = 1000


class GatewaySettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    redis_url: str | None = defaults.DEFAULT_REDIS_URL
    enable_redis_cache: bool = defaults.DEFAULT_ENABLE_REDIS_CACHE

    memory_cache_size: int = defaults.DEFAULT_MEMORY_CACHE_SIZE
    memory_cache_ttl: int = Field(default=defaults.DEFAULT_MEMORY_CACHE_TTL, gt=0)
    song_cache_ttl: int = Field(default=defaults.DEFAULT_SONG_CACHE_TTL, gt=0)
    source_cache_ttl: int = Field(default=defaults.DEFAULT_SOURCE_CACHE_TTL, gt=0)

    request_timeout_ms: int = defaults.DEFAULT_REQUEST_TIMEOUT_MS
    music_api_url: str | None = defaults.DEFAULT_MUSIC_API_URL
    user_agent: str = defaults.DEFAULT_USER_AGENT

    default_sources: list[str] = Field(default_factory=lambda: list(DEFAULT_SOURCES))
    enabled_sources: dict[str, bool] = Field(default_factory=dict)

    stats_backend: StatsBackend = StatsBackend.FILE
    stats_path: Path = defaults.DEFAULT_STATS_PATH

    cleanup_interval: float = Field(default=defaults.DEFAULT_CLEANUP_INTERVAL, gt=0)
    stats_log_interval: float = Field(default=defaults.DEFAULT_STATS_LOG_INTERVAL, gt=0)
    stats_flush_interval: float = Field(default=defaults.DEFAULT_STATS_FLUSH_INTERVAL, gt=0)

    log_level: str = defaults.DEFAULT_LOG_LEVEL

    @classmethod
    def load(cls, **runtime_overrides: Any) -> GatewaySettings:
        """Resolve the configuration hierarchy into validated settings."""
        return cls(**load_config_hierarchy(**runtime_overrides))

    @field_validator("memory_cache_size")
    @classmethod
    def _clamp_cache_size(cls, value: int) -> int:
        if value < _MIN_MEMORY_CACHE_SIZE:
            logger.warning(
                "memory_cache_size %d is too small, using %d", value, _MIN_MEMORY_CACHE_SIZE
            )
            return _MIN_MEMORY_CACHE_SIZE
        return value

    @field_validator("request_timeout_ms")
    @classmethod
    def _clamp_timeout(cls, value: int) -> int:
        if value < _MIN_REQUEST_TIMEOUT_MS:
            logger.warning(
                "request_timeout_ms %d is too short, using %d", value, _MIN_REQUEST_TIMEOUT_MS
            )
            return _MIN_REQUEST_TIMEOUT_MS
        return value

    @field_validator("default_sources", mode="before")
    @classmethod
    def _split_sources(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("enabled_sources", mode="before")
    @classmethod
    def _normalise_toggles(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k).lower(): bool(v) for k, v in value.items()}
        return value

    @property
    def shared_cache_enabled(self) -> bool:
        return bool(self.enable_redis_cache and self.redis_url)

    @property
    def request_timeout(self) -> float:
        """Resolver timeout in seconds."""
        return self.request_timeout_ms / 1000

    def is_source_enabled(self, source: str) -> bool:
        return self.enabled_sources.get(source, True)
