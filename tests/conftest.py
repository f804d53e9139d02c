import fnmatch

import pytest

from trackgate.cache.shared import SharedCache
from trackgate.sources.registry import SourceStatsRegistry
from trackgate.sources.store import MemoryStatsStore


class FakeRedis:
    """Dict-backed stand-in for ``redis.asyncio.Redis`` (decode_responses=True)."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.fail_with: Exception | None = None
        self.closed = False

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return True

    async def ttl(self, key):
        self._check()
        if key not in self.data:
            return -2
        return self.expiry.get(key, -1)

    async def delete(self, *keys):
        self._check()
        count = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                count += 1
            self.expiry.pop(key, None)
        return count

    async def exists(self, key):
        self._check()
        return int(key in self.data)

    async def keys(self, pattern):
        self._check()
        return [k for k in self.data if fnmatch.fnmatchcase(k, pattern)]

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
async def shared_cache(fake_redis):
    """A connected SharedCache over the fake client."""
    shared = SharedCache(client=fake_redis, max_reconnect_attempts=0)
    assert await shared.connect()
    yield shared
    await shared.close()


@pytest.fixture
def stats_store():
    return MemoryStatsStore()


@pytest.fixture
def registry(stats_store):
    return SourceStatsRegistry(stats_store)


@pytest.fixture
def sample_song():
    return {
        "url": "https://cdn.example.com/audio/12345.mp3",
        "br": 320,
        "size": 8_000_000,
        "md5": "d41d8cd98f00b204e9800998ecf8427e",
        "format": "mp3",
        "duration": 200_000,
        "source": "kugou",
    }


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    """Keep the user's global config and trackgate env vars out of every test."""
    import os

    home = tmp_path_factory.mktemp("home")
    monkeypatch.setattr(
        "trackgate.config.hierarchy._GLOBAL_CONFIG_PATH", home / ".trackgate" / "config.yaml"
    )
    for key in list(os.environ):
        if key.startswith(("TRACKGATE_", "ENABLE_")) or key == "REDIS_URL":
            monkeypatch.delenv(key)
