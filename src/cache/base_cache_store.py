# src/cache/base_cache_store.py - v2
"""Abstract cache storage interfaces.

A storage holds named namespaces; a namespace maps requests to responses.
Only GET requests are stored or matched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from flyola_offline.cache.models import CacheEntry, NamespaceInfo
from flyola_offline.core.models import HttpRequest, HttpResponse


class UnsupportedRequestError(ValueError):
    """Raised when a request that cannot be cached is put into a namespace."""


class BaseCacheNamespace(ABC):
    """One named partition of request -> response entries."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    async def match(self, request: HttpRequest) -> HttpResponse | None:
        """Return the stored response for ``request`` or None."""

    @abstractmethod
    async def put(self, request: HttpRequest, response: HttpResponse) -> None:
        """Store (or overwrite) the response for ``request``."""

    @abstractmethod
    async def delete(self, request: HttpRequest) -> bool:
        """Remove the entry for ``request``. Returns True if one existed."""

    @abstractmethod
    async def entries(self) -> list[CacheEntry]:
        """List all entries in this namespace."""

    async def keys(self) -> list[HttpRequest]:
        """List the cached requests."""
        return [entry.request for entry in await self.entries()]

    @staticmethod
    def _check_cacheable(request: HttpRequest) -> None:
        if not request.is_cacheable:
            raise UnsupportedRequestError(
                f"Request method {request.method!r} is unsupported"
            )


class BaseCacheStorage(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def open(self, name: str) -> BaseCacheNamespace:
        """Return the namespace called ``name``, creating it if missing."""

    @abstractmethod
    async def has(self, name: str) -> bool:
        """Whether a namespace called ``name`` exists."""

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Drop a namespace and all its entries. Returns True if it existed."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """Namespace names in creation order."""

    async def match(self, request: HttpRequest) -> HttpResponse | None:
        """Search every namespace in creation order, first hit wins."""
        if not request.is_cacheable:
            return None
        for name in await self.keys():
            namespace = await self.open(name)
            response = await namespace.match(request)
            if response is not None:
                return response
        return None

    async def describe(self) -> list[NamespaceInfo]:
        """Namespace names with entry counts."""
        infos: list[NamespaceInfo] = []
        for name in await self.keys():
            namespace = await self.open(name)
            infos.append(
                NamespaceInfo(name=name, entry_count=len(await namespace.entries()))
            )
        return infos

    def close(self) -> None:
        """Release backend resources. No-op by default."""
