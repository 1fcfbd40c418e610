# src/core/models.py - v2
"""HTTP request/response snapshots shared by the cache stores, the fetcher and the worker."""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

CACHEABLE_METHODS = frozenset({"GET"})


class HttpRequest(BaseModel):
    """Identity of an intercepted request: method + URL."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    url: str
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        return v.upper()

    @field_validator("url")
    @classmethod
    def _valid_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("url must not be empty")
        try:
            urlsplit(v)
        except ValueError as e:
            raise ValueError(f"invalid url {v!r}: {e}") from e
        return v

    @property
    def path(self) -> str:
        """URL path, used for API fragment matching."""
        return urlsplit(self.url).path or "/"

    @property
    def cache_key(self) -> str:
        """Key under which the request is cached. Fragments are ignored."""
        parts = urlsplit(self.url)
        return f"{self.method} {urlunsplit(parts._replace(fragment=''))}"

    @property
    def is_cacheable(self) -> bool:
        return self.method in CACHEABLE_METHODS

    def resolve(self, origin: str) -> HttpRequest:
        """Return a copy whose URL is absolute against ``origin``."""
        if urlsplit(self.url).scheme:
            return self
        base = origin if origin.endswith("/") else origin + "/"
        return self.model_copy(update={"url": urljoin(base, self.url)})


class HttpResponse(BaseModel):
    """Response snapshot: status, headers and the full body."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    url: str = ""
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def served_from_cache(self) -> HttpResponse:
        """Copy flagged as answered by a cache namespace."""
        return self.model_copy(update={"from_cache": True}, deep=True)
