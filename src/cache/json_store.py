# src/cache/json_store.py - v3
"""JSON file-based cache storage (CACHE_BACKEND=json).

Layout under CACHE_ROOT::

    <namespace-dir>/_namespace.json    name, creation sequence and time
    <namespace-dir>/<fingerprint>.json one CacheEntry per request
"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path

from flyola_offline.cache.base_cache_store import BaseCacheNamespace, BaseCacheStorage
from flyola_offline.cache.fingerprint import namespace_dirname, request_fingerprint
from flyola_offline.cache.models import CacheEntry, NamespaceInfo
from flyola_offline.core.models import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

_META_FILE = "_namespace.json"


class JsonCacheNamespace(BaseCacheNamespace):
    """Namespace stored as a directory of JSON files."""

    def __init__(self, name: str, directory: Path) -> None:
        super().__init__(name)
        self._dir = directory

    async def match(self, request: HttpRequest) -> HttpResponse | None:
        if not request.is_cacheable:
            return None
        entry = self._read(self._entry_path(request))
        return None if entry is None else entry.response

    async def put(self, request: HttpRequest, response: HttpResponse) -> None:
        self._check_cacheable(request)
        entry = CacheEntry(request=request, response=response)
        path = self._entry_path(request)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so readers never see a half-written entry.
        tmp = path.with_suffix(".tmp")
        tmp.write_text(entry.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)

    async def delete(self, request: HttpRequest) -> bool:
        path = self._entry_path(request)
        if path.exists():
            path.unlink()
            return True
        return False

    async def entries(self) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        if not self._dir.is_dir():
            return entries
        for path in sorted(self._dir.glob("*.json")):
            if path.name == _META_FILE:
                continue
            entry = self._read(path)
            if entry is not None:
                entries.append(entry)
        return entries

    def _entry_path(self, request: HttpRequest) -> Path:
        return self._dir / f"{request_fingerprint(request)}.json"

    @staticmethod
    def _read(path: Path) -> CacheEntry | None:
        if not path.exists():
            return None
        try:
            return CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to read cache entry %s: %s", path.name, e)
            return None


class JsonCacheStorage(BaseCacheStorage):
    """File-based cache storage using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def open(self, name: str) -> JsonCacheNamespace:
        directory = self._root / namespace_dirname(name)
        meta = directory / _META_FILE
        if not meta.exists():
            directory.mkdir(parents=True, exist_ok=True)
            meta.write_text(
                json.dumps(
                    {
                        "name": name,
                        "seq": self._next_seq(),
                        "created_at": datetime.now(timezone.utc).isoformat(),
                    }
                ),
                encoding="utf-8",
            )
        return JsonCacheNamespace(name, directory)

    async def has(self, name: str) -> bool:
        return (self._root / namespace_dirname(name) / _META_FILE).exists()

    async def delete(self, name: str) -> bool:
        directory = self._root / namespace_dirname(name)
        if not directory.is_dir():
            return False
        shutil.rmtree(directory)
        return True

    async def keys(self) -> list[str]:
        return [info.name for info in self._read_meta()]

    async def describe(self) -> list[NamespaceInfo]:
        infos = self._read_meta()
        for info in infos:
            namespace = await self.open(info.name)
            info.entry_count = len(await namespace.entries())
        return infos

    def _next_seq(self) -> int:
        return max((seq for seq, _ in self._load_meta()), default=0) + 1

    def _read_meta(self) -> list[NamespaceInfo]:
        """Namespace metadata in creation order."""
        return [info for _, info in sorted(self._load_meta(), key=lambda item: item[0])]

    def _load_meta(self) -> list[tuple[int, NamespaceInfo]]:
        loaded: list[tuple[int, NamespaceInfo]] = []
        for meta in self._root.glob(f"*/{_META_FILE}"):
            try:
                data = json.loads(meta.read_text(encoding="utf-8"))
                info = NamespaceInfo(
                    name=data["name"],
                    created_at=datetime.fromisoformat(data["created_at"]),
                )
                loaded.append((int(data["seq"]), info))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping unreadable namespace %s: %s", meta.parent.name, e)
        return loaded
