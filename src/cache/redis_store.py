# src/cache/redis_store.py - v2
"""Redis-based cache storage (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for sharing one cache between several worker processes.

Keys:
    flyola:cache:__namespaces__   sorted set, namespace name -> creation seq
    flyola:cache:__seq__          counter feeding the sorted-set scores
    flyola:cache:ns:<name>        hash, request cache key -> CacheEntry JSON
"""

from __future__ import annotations

import logging

from flyola_offline.cache.base_cache_store import BaseCacheNamespace, BaseCacheStorage
from flyola_offline.cache.models import CacheEntry
from flyola_offline.core.models import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

_KEY_PREFIX = "flyola:cache:"
_INDEX_KEY = f"{_KEY_PREFIX}__namespaces__"
_SEQ_KEY = f"{_KEY_PREFIX}__seq__"


def _hash_key(name: str) -> str:
    return f"{_KEY_PREFIX}ns:{name}"


class RedisCacheNamespace(BaseCacheNamespace):
    """Namespace stored as one Redis hash."""

    def __init__(self, name: str, client) -> None:
        super().__init__(name)
        self._client = client

    async def match(self, request: HttpRequest) -> HttpResponse | None:
        if not request.is_cacheable:
            return None
        data = self._client.hget(_hash_key(self.name), request.cache_key)
        if data is None:
            return None
        entry = _load_entry(data, request.cache_key)
        return None if entry is None else entry.response

    async def put(self, request: HttpRequest, response: HttpResponse) -> None:
        self._check_cacheable(request)
        entry = CacheEntry(request=request, response=response)
        self._client.hset(_hash_key(self.name), entry.key, entry.model_dump_json())

    async def delete(self, request: HttpRequest) -> bool:
        return bool(self._client.hdel(_hash_key(self.name), request.cache_key))

    async def entries(self) -> list[CacheEntry]:
        raw = self._client.hgetall(_hash_key(self.name))
        entries: list[CacheEntry] = []
        for key, data in raw.items():
            entry = _load_entry(data, key)
            if entry is not None:
                entries.append(entry)
        entries.sort(key=lambda e: e.stored_at)
        return entries


class RedisCacheStorage(BaseCacheStorage):
    """Redis-backed cache storage."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def open(self, name: str) -> RedisCacheNamespace:
        if self._client.zscore(_INDEX_KEY, name) is None:
            seq = self._client.incr(_SEQ_KEY)
            self._client.zadd(_INDEX_KEY, {name: seq}, nx=True)
        return RedisCacheNamespace(name, self._client)

    async def has(self, name: str) -> bool:
        return self._client.zscore(_INDEX_KEY, name) is not None

    async def delete(self, name: str) -> bool:
        self._client.delete(_hash_key(name))
        return bool(self._client.zrem(_INDEX_KEY, name))

    async def keys(self) -> list[str]:
        return list(self._client.zrange(_INDEX_KEY, 0, -1))

    def close(self) -> None:
        self._client.close()


def _load_entry(data: str, key: str) -> CacheEntry | None:
    try:
        return CacheEntry.model_validate_json(data)
    except ValueError as e:
        logger.warning("Failed to deserialize cache entry %s: %s", key, e)
        return None
