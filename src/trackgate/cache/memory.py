"""Local in-process LRU cache with per-entry TTL."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable, Iterator
from typing import Any

from trackgate.cache.stats import CacheEntry

logger = logging.getLogger(__name__)

_DEFAULT_MAX_ITEMS = 1000
_DEFAULT_TTL_SECONDS = 300


class MemoryCache:
    """In-memory LRU cache bounded by item count.

    At capacity the least-recently-used entry is evicted whatever its
    remaining TTL. Expired entries are dropped when touched and by
    ``purge_expired``.
    """

    def __init__(
        self,
        max_items: int = _DEFAULT_MAX_ITEMS,
        default_ttl: float = _DEFAULT_TTL_SECONDS,
        update_age_on_get: bool = True,
    ) -> None:
        if max_items < 1:
            raise ValueError("max_items must be positive")
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_items = max_items
        self._default_ttl = default_ttl
        self._update_age_on_get = update_age_on_get

    @property
    def max_items(self) -> int:
        return self._max_items

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def get(self, key: str) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired:
            self._remove(key)
            return None
        # Move to end (most recently used)
        self._store.move_to_end(key)
        if self._update_age_on_get:
            entry.touch()
        return entry

    def contains(self, key: str) -> bool:
        """Presence check that leaves recency and age untouched."""
        entry = self._store.get(key)
        if entry is None:
            return False
        if entry.is_expired:
            self._remove(key)
            return False
        return True

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> CacheEntry:
        if key in self._store:
            self._remove(key)
        # Evict until there's room
        while len(self._store) >= self._max_items:
            self._evict_oldest()
        entry = CacheEntry(key=key, value=value, ttl_seconds=ttl_seconds or self._default_ttl)
        self._store[key] = entry
        return entry

    def delete(self, key: str) -> bool:
        return self._remove(key)

    def delete_where(self, match: Callable[[str], bool]) -> int:
        """Remove every entry whose key satisfies ``match``. Returns count deleted."""
        to_remove = [key for key in self._store if match(key)]
        for key in to_remove:
            self._remove(key)
        return len(to_remove)

    def delete_by_prefix(self, prefix: str) -> int:
        return self.delete_where(lambda key: key.startswith(prefix))

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns count purged."""
        expired = [key for key, entry in self._store.items() if entry.is_expired]
        for key in expired:
            self._remove(key)
        if expired:
            logger.debug("Purged %d expired entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._store.clear()

    def keys(self) -> Iterator[str]:
        return iter(list(self._store))

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def _remove(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def _evict_oldest(self) -> None:
        if self._store:
            key, _ = self._store.popitem(last=False)
            logger.debug("Evicted least recently used entry: %s", key)
