"""Cache entry and statistics models."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """A cached value held by the local tier."""

    key: str
    value: Any = None
    created_at: float = Field(default_factory=time.time)
    ttl_seconds: float = 300

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl_seconds

    @property
    def is_expired(self) -> bool:
        return time.time() >= self.expires_at

    def touch(self) -> None:
        """Reset the entry's age; its TTL starts over."""
        self.created_at = time.time()


class CacheStats(BaseModel):
    """Aggregate cache statistics."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    memory_items: int = 0
    shared_available: bool = False

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    @property
    def hit_rate_display(self) -> str:
        if self.hits + self.misses == 0:
            return "0%"
        return f"{self.hit_rate * 100:.2f}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "size": self.size,
            "memoryItems": self.memory_items,
            "sharedAvailable": self.shared_available,
            "hitRate": self.hit_rate_display,
        }
