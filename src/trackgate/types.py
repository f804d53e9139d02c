"""Shared Pydantic models for trackgate."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── Enums ──


class NetworkClass(StrEnum):
    WIFI = "wifi"
    CELLULAR_4G = "4g"
    CELLULAR_3G = "3g"
    CELLULAR_2G = "2g"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> NetworkClass:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


class CacheLevel(StrEnum):
    MEMORY = "memory"  # local tier only
    SHARED = "shared"  # local tier + Redis


class CachePriority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class StatsBackend(StrEnum):
    FILE = "file"
    REDIS = "redis"
    MEMORY = "memory"


# ── Option models ──


class CacheOptions(BaseModel):
    """Options for a single cache write.

    An explicit ``ttl_seconds`` always wins over the priority-derived TTL.
    """

    ttl_seconds: int | None = Field(default=None, gt=0)
    level: CacheLevel = CacheLevel.MEMORY
    priority: CachePriority = CachePriority.NORMAL


class SongCacheOptions(BaseModel):
    duration_seconds: int = Field(default=86400, gt=0)
    use_shared: bool = True
    priority: CachePriority = CachePriority.NORMAL


# ── Source statistics ──


class SourceStats(BaseModel):
    """Outcome history of one source.

    Serialises with the camelCase names used by persisted snapshots.
    """

    model_config = ConfigDict(populate_by_name=True)

    total_requests: int = Field(default=0, ge=0, alias="totalRequests")
    available_count: int = Field(default=0, ge=0, alias="availableCount")
    avg_response_time_ms: float = Field(default=0.0, ge=0, alias="avgResponseTime")
    last_success_at: int | None = Field(default=None, alias="lastSuccess")
    last_failure_at: int | None = Field(default=None, alias="lastFailure")
    success_rate: float = Field(default=0.0, ge=0, le=1, alias="successRate")
    quality_score: int = Field(default=70, ge=0, le=100, alias="qualityScore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# ── Resolution models ──


class SongInfo(BaseModel):
    """A playable match returned by a resolver. Unknown upstream fields are kept."""

    model_config = ConfigDict(extra="allow")

    url: str | None = None
    br: int | str | None = None
    size: int | None = None
    md5: str | None = None
    format: str | None = None
    duration: int | None = None
    source: str | None = None

    @field_validator("size", "duration", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return int(float(value))
            except ValueError:
                return None
        return value


class QualityProfile(BaseModel):
    bitrate: int = 0
    format: str = "unknown"
    size: int = 0
    duration: int = 0
    score: float = 0.0


class ResolutionResult(BaseModel):
    track_id: str
    data: SongInfo
    source: str | None = None
    cached: bool = False
    quality: QualityProfile | None = None
    sources: list[str] = Field(default_factory=list)
