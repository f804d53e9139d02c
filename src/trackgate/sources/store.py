"""Persistence backends for the source statistics table."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from trackgate.errors.exceptions import TransientError

logger = logging.getLogger(__name__)

_DEFAULT_REDIS_KEY = "trackgate:source-stats"


@runtime_checkable
class StatsStore(Protocol):
    """Loads and saves the whole stats table as a JSON-compatible mapping."""

    async def load(self) -> dict[str, dict[str, Any]]:
        ...

    async def save(self, mapping: dict[str, dict[str, Any]]) -> None:
        ...


class MemoryStatsStore:
    """Keeps the last saved snapshot in memory only."""

    def __init__(self, initial: dict[str, dict[str, Any]] | None = None) -> None:
        self._data = copy.deepcopy(initial) if initial else {}
        self.save_count = 0

    async def load(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._data)

    async def save(self, mapping: dict[str, dict[str, Any]]) -> None:
        self._data = copy.deepcopy(mapping)
        self.save_count += 1


class JsonFileStatsStore:
    """JSON file store. Each save atomically replaces the whole file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> dict[str, dict[str, Any]]:
        """Read the snapshot. A missing file is an empty table."""
        if not self._path.exists():
            return {}
        try:
            raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except OSError as exc:
            raise TransientError(
                f"Cannot read stats file {self._path}", error_type="read_error", original=exc
            ) from exc
        if not raw.strip():
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Stats file {self._path} does not hold a mapping")
        return data

    async def save(self, mapping: dict[str, dict[str, Any]]) -> None:
        payload = json.dumps(mapping, ensure_ascii=False, indent=2)
        async with self._lock:
            try:
                await asyncio.to_thread(self._write_atomic, payload)
            except OSError as exc:
                raise TransientError(
                    f"Cannot write stats file {self._path}", error_type="write_error", original=exc
                ) from exc

    def _write_atomic(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class RedisStatsStore:
    """Stores the table as one JSON blob under a single Redis key."""

    def __init__(self, client: aioredis.Redis, key: str = _DEFAULT_REDIS_KEY) -> None:
        self._client = client
        self._key = key

    async def load(self) -> dict[str, dict[str, Any]]:
        try:
            raw = await self._client.get(self._key)
        except (RedisError, OSError) as exc:
            raise TransientError(
                "Cannot load stats from Redis", error_type="read_error", original=exc
            ) from exc
        if not raw:
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Redis key {self._key} does not hold a mapping")
        return data

    async def save(self, mapping: dict[str, dict[str, Any]]) -> None:
        try:
            # A single SET replaces the blob atomically
            await self._client.set(self._key, json.dumps(mapping, ensure_ascii=False))
        except (RedisError, OSError) as exc:
            raise TransientError(
                "Cannot save stats to Redis", error_type="write_error", original=exc
            ) from exc
