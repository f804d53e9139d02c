"""Shared cache tier backed by Redis."""

from __future__ import annotations

import asyncio
import contextlib
import logging

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

logger = logging.getLogger(__name__)

_MAX_RECONNECT_ATTEMPTS = 10
_BASE_DELAY = 0.1  # seconds
_MAX_DELAY = 30.0  # seconds

# Errors that mean the server is unreachable, not that one command was bad
_CONNECTION_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


def reconnect_delay(
    attempt: int,
    base_delay: float = _BASE_DELAY,
    max_delay: float = _MAX_DELAY,
) -> float:
    """Exponential backoff for reconnect attempt ``attempt`` (1-based)."""
    return min((2**attempt) * base_delay, max_delay)


class SharedCache:
    """Redis tier with an availability flag and bounded reconnection.

    When the server is unreachable every operation returns an empty result
    without I/O; a background task retries with exponential backoff and gives
    up silently after ``max_reconnect_attempts``.
    """

    def __init__(
        self,
        url: str | None = None,
        client: aioredis.Redis | None = None,
        max_reconnect_attempts: int = _MAX_RECONNECT_ATTEMPTS,
        base_delay: float = _BASE_DELAY,
        max_delay: float = _MAX_DELAY,
    ) -> None:
        if url is None and client is None:
            raise ValueError("SharedCache needs a Redis URL or a client")
        self._url = url
        self._client = client
        self._max_reconnect_attempts = max_reconnect_attempts
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._available = False
        self._closed = False
        self._reconnect_attempts = 0
        self._reconnect_task: asyncio.Task[None] | None = None

    @property
    def available(self) -> bool:
        return self._available

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        return self._client

    async def connect(self) -> bool:
        """Ping the server. On failure, start the reconnect loop."""
        self._closed = False
        try:
            await self.client.ping()
        except ValueError as exc:
            # malformed URL; retrying cannot help
            logger.error("Invalid Redis URL, running local-only: %s", exc)
            self._available = False
            return False
        except (RedisError, OSError) as exc:
            logger.warning("Redis initial connection failed: %s", exc)
            self._mark_unavailable()
            return False
        self._on_connect()
        return True

    async def get(self, key: str) -> str | None:
        if not self._available:
            return None
        try:
            return await self.client.get(key)
        except (RedisError, OSError) as exc:
            self._handle_error("GET", key, exc)
            return None

    async def ttl(self, key: str) -> int | None:
        """Remaining TTL in seconds, or None when unknown or not set."""
        if not self._available:
            return None
        try:
            remaining = await self.client.ttl(key)
        except (RedisError, OSError) as exc:
            self._handle_error("TTL", key, exc)
            return None
        return remaining if remaining and remaining > 0 else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        if not self._available:
            return False
        try:
            await self.client.set(key, value, ex=ttl_seconds)
        except (RedisError, OSError) as exc:
            self._handle_error("SET", key, exc)
            return False
        return True

    async def delete(self, *keys: str) -> int:
        if not self._available or not keys:
            return 0
        try:
            return int(await self.client.delete(*keys))
        except (RedisError, OSError) as exc:
            self._handle_error("DEL", ",".join(keys), exc)
            return 0

    async def exists(self, key: str) -> bool:
        if not self._available:
            return False
        try:
            return bool(await self.client.exists(key))
        except (RedisError, OSError) as exc:
            self._handle_error("EXISTS", key, exc)
            return False

    async def keys(self, pattern: str) -> list[str]:
        if not self._available:
            return []
        try:
            return list(await self.client.keys(pattern))
        except (RedisError, OSError) as exc:
            self._handle_error("KEYS", pattern, exc)
            return []

    async def close(self) -> None:
        self._closed = True
        self._available = False
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reconnect_task
        self._reconnect_task = None
        if self._client is not None:
            try:
                await self._client.aclose()
            except (RedisError, OSError) as exc:
                logger.debug("Error closing Redis client: %s", exc)
        logger.info("Redis connection closed")

    def _on_connect(self) -> None:
        self._available = True
        self._reconnect_attempts = 0
        logger.info("Redis connected")

    def _handle_error(self, op: str, key: str, exc: Exception) -> None:
        logger.error("Redis %s failed for %s: %s", op, key, exc)
        if isinstance(exc, _CONNECTION_ERRORS):
            self._mark_unavailable()

    def _mark_unavailable(self) -> None:
        self._available = False
        if not self._closed:
            self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._reconnect_task and not self._reconnect_task.done():
            return
        if self._reconnect_attempts >= self._max_reconnect_attempts:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._reconnect_task = loop.create_task(self._reconnect_loop())

    async def _reconnect_loop(self) -> None:
        while not self._closed and not self._available:
            if self._reconnect_attempts >= self._max_reconnect_attempts:
                logger.error(
                    "Redis reconnect gave up after %d attempts; running local-only",
                    self._reconnect_attempts,
                )
                return
            self._reconnect_attempts += 1
            delay = reconnect_delay(self._reconnect_attempts, self._base_delay, self._max_delay)
            logger.info(
                "Redis reconnect attempt #%d in %.1fs", self._reconnect_attempts, delay
            )
            await asyncio.sleep(delay)
            try:
                await self.client.ping()
            except (RedisError, OSError) as exc:
                logger.warning("Redis reconnect failed: %s", exc)
                continue
            self._on_connect()
