# src/cache/memory_store.py - v2
"""In-process cache storage (default CACHE_BACKEND=memory).

Entries live in plain dicts and vanish with the process. Used by the test
suite as the injected fake store.
"""

from __future__ import annotations

from datetime import datetime, timezone

from flyola_offline.cache.base_cache_store import BaseCacheNamespace, BaseCacheStorage
from flyola_offline.cache.models import CacheEntry, NamespaceInfo
from flyola_offline.core.models import HttpRequest, HttpResponse


class MemoryCacheNamespace(BaseCacheNamespace):
    """Namespace backed by a dict keyed on the request cache key."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.created_at = datetime.now(timezone.utc)
        self._entries: dict[str, CacheEntry] = {}

    async def match(self, request: HttpRequest) -> HttpResponse | None:
        if not request.is_cacheable:
            return None
        entry = self._entries.get(request.cache_key)
        return None if entry is None else entry.response.model_copy(deep=True)

    async def put(self, request: HttpRequest, response: HttpResponse) -> None:
        self._check_cacheable(request)
        # Snapshot, so later changes by the caller never reach the cache.
        entry = CacheEntry(request=request, response=response.model_copy(deep=True))
        self._entries[entry.key] = entry

    async def delete(self, request: HttpRequest) -> bool:
        return self._entries.pop(request.cache_key, None) is not None

    async def entries(self) -> list[CacheEntry]:
        return [entry.model_copy(deep=True) for entry in self._entries.values()]


class MemoryCacheStorage(BaseCacheStorage):
    """Process-local cache storage."""

    def __init__(self) -> None:
        self._namespaces: dict[str, MemoryCacheNamespace] = {}

    async def open(self, name: str) -> MemoryCacheNamespace:
        namespace = self._namespaces.get(name)
        if namespace is None:
            namespace = MemoryCacheNamespace(name)
            self._namespaces[name] = namespace
        return namespace

    async def has(self, name: str) -> bool:
        return name in self._namespaces

    async def delete(self, name: str) -> bool:
        return self._namespaces.pop(name, None) is not None

    async def keys(self) -> list[str]:
        return list(self._namespaces)

    async def describe(self) -> list[NamespaceInfo]:
        return [
            NamespaceInfo(
                name=ns.name,
                entry_count=len(ns._entries),
                created_at=ns.created_at,
            )
            for ns in self._namespaces.values()
        ]
