# tests/unit/cache/test_redis_store.py - v2
"""Tests for cache/redis_store.py: in-memory stand-in for the Redis client."""

from __future__ import annotations

import sys
from unittest.mock import patch

import pytest

from flyola_offline.core.models import HttpRequest, HttpResponse

AIRPORT = HttpRequest(url="https://flyola.test/airport")


class FakeRedis:
    """The handful of Redis commands the store uses, on plain dicts."""

    def __init__(self):
        self.strings: dict[str, int] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.closed = False

    def incr(self, key):
        self.strings[key] = self.strings.get(key, 0) + 1
        return self.strings[key]

    def zscore(self, key, member):
        return self.zsets.get(key, {}).get(member)

    def zadd(self, key, mapping, nx=False):
        zset = self.zsets.setdefault(key, {})
        added = 0
        for member, score in mapping.items():
            if nx and member in zset:
                continue
            added += member not in zset
            zset[member] = score
        return added

    def zrem(self, key, member):
        return 1 if self.zsets.get(key, {}).pop(member, None) is not None else 0

    def zrange(self, key, start, end):
        zset = self.zsets.get(key, {})
        return [m for m, _ in sorted(zset.items(), key=lambda kv: kv[1])]

    def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value
        return 1

    def hdel(self, key, field):
        return 1 if self.hashes.get(key, {}).pop(field, None) is not None else 0

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def delete(self, key):
        return 1 if self.hashes.pop(key, None) is not None else 0

    def close(self):
        self.closed = True


@pytest.fixture
def store():
    with patch("flyola_offline.cache.redis_store.RedisCacheStorage.__init__", return_value=None):
        from flyola_offline.cache.redis_store import RedisCacheStorage
        s = RedisCacheStorage.__new__(RedisCacheStorage)
        s._client = FakeRedis()
    return s


class TestRedisCacheStorage:
    def test_import_error_without_redis(self):
        """Clear ImportError when redis is not available."""
        redis_mod = sys.modules.get("redis")
        sys.modules["redis"] = None  # type: ignore[assignment]
        try:
            from flyola_offline.cache.redis_store import RedisCacheStorage
            with pytest.raises(ImportError, match="redis"):
                RedisCacheStorage(redis_url="redis://localhost")
        finally:
            if redis_mod is not None:
                sys.modules["redis"] = redis_mod
            else:
                sys.modules.pop("redis", None)

    @pytest.mark.asyncio
    async def test_put_and_match(self, store):
        ns = await store.open("api")
        await ns.put(AIRPORT, HttpResponse(status=200, body=b"[]"))
        result = await ns.match(AIRPORT)
        assert result is not None
        assert result.body == b"[]"

    @pytest.mark.asyncio
    async def test_open_is_idempotent(self, store):
        await store.open("a")
        await store.open("b")
        await store.open("a")
        assert await store.keys() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_delete_namespace(self, store):
        ns = await store.open("old")
        await ns.put(AIRPORT, HttpResponse(status=200))
        assert await store.delete("old") is True
        assert await store.has("old") is False
        assert "flyola:cache:ns:old" not in store._client.hashes

    @pytest.mark.asyncio
    async def test_entry_delete(self, store):
        ns = await store.open("api")
        await ns.put(AIRPORT, HttpResponse(status=200))
        assert await ns.delete(AIRPORT) is True
        assert await ns.match(AIRPORT) is None

    @pytest.mark.asyncio
    async def test_corrupt_entry_skipped(self, store):
        ns = await store.open("api")
        store._client.hset("flyola:cache:ns:api", AIRPORT.cache_key, "{broken")
        assert await ns.match(AIRPORT) is None
        assert await ns.entries() == []

    @pytest.mark.asyncio
    async def test_storage_match(self, store):
        await store.open("static")
        api = await store.open("api")
        await api.put(AIRPORT, HttpResponse(status=200, body=b"x"))
        assert (await store.match(AIRPORT)).body == b"x"

    def test_close(self, store):
        store.close()
        assert store._client.closed is True
