# src/network/base_fetcher.py - v1
"""Abstract network fetcher: the worker's only way to reach the origin."""

from __future__ import annotations

from abc import ABC, abstractmethod

from flyola_offline.core.models import HttpRequest, HttpResponse


class NetworkError(Exception):
    """Transport-level failure: the request produced no response at all."""

    def __init__(self, request: HttpRequest, reason: str) -> None:
        self.request = request
        self.reason = reason
        super().__init__(f"{request.method} {request.url} failed: {reason}")


class BaseFetcher(ABC):
    """Unified interface for network access."""

    @abstractmethod
    async def fetch(self, request: HttpRequest) -> HttpResponse:
        """Perform ``request`` and return the full response.

        Non-2xx responses are returned normally.

        Raises:
            NetworkError: If no response could be obtained.
        """

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""
