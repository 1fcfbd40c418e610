# src/cache/models.py - v2
"""Cache domain models: CacheEntry, NamespaceInfo."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from flyola_offline.core.models import HttpRequest, HttpResponse


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntry(BaseModel):
    """A stored request -> response pair inside one namespace."""

    request: HttpRequest
    response: HttpResponse
    stored_at: datetime = Field(default_factory=_utcnow)

    @property
    def key(self) -> str:
        return self.request.cache_key


class NamespaceInfo(BaseModel):
    """Summary of a cache namespace (for listings)."""

    name: str
    entry_count: int = 0
    created_at: datetime | None = None
