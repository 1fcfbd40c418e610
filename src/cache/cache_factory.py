# src/cache/cache_factory.py - v3
"""Factory for cache storage instantiation."""

from __future__ import annotations

from flyola_offline.cache.base_cache_store import BaseCacheStorage
from flyola_offline.config.settings import Settings


def create_cache_storage(settings: Settings | None = None) -> BaseCacheStorage:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseCacheStorage implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from flyola_offline.cache.memory_store import MemoryCacheStorage
        return MemoryCacheStorage()

    if backend == "json":
        from flyola_offline.cache.json_store import JsonCacheStorage
        return JsonCacheStorage(cache_root=settings.cache_root)

    if backend == "sqlite":
        from flyola_offline.cache.sqlite_store import SqliteCacheStorage
        db_path = settings.cache_root.expanduser() / "flyola_cache.db"
        return SqliteCacheStorage(db_path=db_path)

    if backend == "redis":
        from flyola_offline.cache.redis_store import RedisCacheStorage
        if not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStorage(redis_url=settings.cache_redis_url)

    raise ValueError(f"Unsupported cache backend: {backend!r}")
