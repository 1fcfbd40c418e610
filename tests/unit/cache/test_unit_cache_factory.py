# tests/unit/cache/test_cache_factory.py - v4
"""Tests for cache/cache_factory.py."""

from __future__ import annotations

import pytest

from flyola_offline.cache.cache_factory import create_cache_storage
from flyola_offline.cache.json_store import JsonCacheStorage
from flyola_offline.cache.memory_store import MemoryCacheStorage
from flyola_offline.cache.sqlite_store import SqliteCacheStorage
from flyola_offline.config.settings import Settings


class TestCreateCacheStorage:
    def test_default_memory(self):
        assert isinstance(create_cache_storage(), MemoryCacheStorage)

    def test_memory_backend(self):
        s = Settings(_env_file=None, cache_backend="memory")
        assert isinstance(create_cache_storage(s), MemoryCacheStorage)

    def test_json_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="json", cache_root=tmp_path)
        assert isinstance(create_cache_storage(s), JsonCacheStorage)

    def test_sqlite_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="sqlite", cache_root=tmp_path)
        storage = create_cache_storage(s)
        try:
            assert isinstance(storage, SqliteCacheStorage)
            assert (tmp_path / "flyola_cache.db").exists()
        finally:
            storage.close()

    def test_redis_missing_url(self):
        s = Settings.model_construct(cache_backend="redis", cache_redis_url="")
        with pytest.raises(ValueError, match="CACHE_REDIS_URL"):
            create_cache_storage(s)

    def test_unsupported_backend(self):
        """Settings validation rejects invalid backends before factory is reached."""
        with pytest.raises(ValueError):
            Settings(_env_file=None, cache_backend="nonexistent")

    def test_unsupported_backend_bypassing_validation(self):
        s = Settings.model_construct(cache_backend="memcached")
        with pytest.raises(ValueError, match="Unsupported cache backend"):
            create_cache_storage(s)
