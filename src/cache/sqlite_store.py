# src/cache/sqlite_store.py - v2
"""SQLite-based cache storage (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. All namespaces share one
database file.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from flyola_offline.cache.base_cache_store import BaseCacheNamespace, BaseCacheStorage
from flyola_offline.cache.models import CacheEntry, NamespaceInfo
from flyola_offline.core.models import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_namespaces (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS cache_entries (
    namespace TEXT NOT NULL,
    key TEXT NOT NULL,
    data TEXT NOT NULL,
    stored_at TEXT NOT NULL,
    PRIMARY KEY (namespace, key),
    FOREIGN KEY (namespace) REFERENCES cache_namespaces(name) ON DELETE CASCADE
);
"""


class SqliteCacheNamespace(BaseCacheNamespace):
    """Namespace stored as rows of the shared ``cache_entries`` table."""

    def __init__(self, name: str, conn: sqlite3.Connection) -> None:
        super().__init__(name)
        self._conn = conn

    async def match(self, request: HttpRequest) -> HttpResponse | None:
        if not request.is_cacheable:
            return None
        row = self._conn.execute(
            "SELECT data FROM cache_entries WHERE namespace = ? AND key = ?",
            (self.name, request.cache_key),
        ).fetchone()
        if row is None:
            return None
        entry = _load_entry(row[0], request.cache_key)
        return None if entry is None else entry.response

    async def put(self, request: HttpRequest, response: HttpResponse) -> None:
        """Store a cache entry (upsert)."""
        self._check_cacheable(request)
        entry = CacheEntry(request=request, response=response)
        self._conn.execute(
            """INSERT OR REPLACE INTO cache_entries
               (namespace, key, data, stored_at)
               VALUES (?, ?, ?, ?)""",
            (self.name, entry.key, entry.model_dump_json(), entry.stored_at.isoformat()),
        )
        self._conn.commit()

    async def delete(self, request: HttpRequest) -> bool:
        cursor = self._conn.execute(
            "DELETE FROM cache_entries WHERE namespace = ? AND key = ?",
            (self.name, request.cache_key),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    async def entries(self) -> list[CacheEntry]:
        cursor = self._conn.execute(
            "SELECT key, data FROM cache_entries WHERE namespace = ? ORDER BY stored_at",
            (self.name,),
        )
        entries: list[CacheEntry] = []
        for key, data in cursor.fetchall():
            entry = _load_entry(data, key)
            if entry is not None:
                entries.append(entry)
        return entries


class SqliteCacheStorage(BaseCacheStorage):
    """SQLite-backed cache storage, persistent across processes."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)

    async def open(self, name: str) -> SqliteCacheNamespace:
        self._conn.execute(
            "INSERT OR IGNORE INTO cache_namespaces (name, created_at) VALUES (?, ?)",
            (name, datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()
        return SqliteCacheNamespace(name, self._conn)

    async def has(self, name: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM cache_namespaces WHERE name = ?", (name,)
        ).fetchone()
        return row is not None

    async def delete(self, name: str) -> bool:
        self._conn.execute("DELETE FROM cache_entries WHERE namespace = ?", (name,))
        cursor = self._conn.execute(
            "DELETE FROM cache_namespaces WHERE name = ?", (name,)
        )
        self._conn.commit()
        return cursor.rowcount > 0

    async def keys(self) -> list[str]:
        cursor = self._conn.execute("SELECT name FROM cache_namespaces ORDER BY seq")
        return [row[0] for row in cursor.fetchall()]

    async def describe(self) -> list[NamespaceInfo]:
        cursor = self._conn.execute(
            """SELECT n.name, n.created_at, COUNT(e.key)
               FROM cache_namespaces n
               LEFT JOIN cache_entries e ON e.namespace = n.name
               GROUP BY n.seq ORDER BY n.seq"""
        )
        return [
            NamespaceInfo(
                name=name,
                created_at=datetime.fromisoformat(created_at),
                entry_count=count,
            )
            for name, created_at, count in cursor.fetchall()
        ]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()


def _load_entry(data: str, key: str) -> CacheEntry | None:
    try:
        return CacheEntry.model_validate_json(data)
    except ValueError as e:
        logger.warning("Failed to deserialize cache entry %s: %s", key, e)
        return None
