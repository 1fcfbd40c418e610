# src/worker/config.py - v1
"""Explicit worker configuration, injected at initialization."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from flyola_offline.core.models import HttpRequest


class WorkerConfig(BaseModel):
    """Namespace names, precache list and API routing for one worker version."""

    model_config = ConfigDict(frozen=True)

    origin: str = "https://flyola.in"
    static_cache_name: str = "flyola-cache-v1"
    api_cache_name: str = "flyola-api-cache-v1"
    precache_urls: list[str] = Field(
        default_factory=lambda: ["/", "/logoo-04.png", "/manifest.json"]
    )
    api_path_fragments: list[str] = Field(default_factory=lambda: ["/airport"])
    revalidation: Literal["last_write_wins", "single_flight"] = "last_write_wins"

    @model_validator(mode="after")
    def _distinct_namespaces(self) -> WorkerConfig:
        if self.static_cache_name == self.api_cache_name:
            raise ValueError("static and API namespace names must differ")
        return self

    @property
    def namespace_names(self) -> frozenset[str]:
        """Names that survive activation."""
        return frozenset({self.static_cache_name, self.api_cache_name})

    def is_api_request(self, request: HttpRequest) -> bool:
        """Substring match of the URL path against the API fragments."""
        path = request.path
        return any(fragment in path for fragment in self.api_path_fragments)
