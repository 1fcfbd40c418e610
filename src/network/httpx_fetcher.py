# src/network/httpx_fetcher.py - v1
"""httpx-based fetcher.

Relative URLs are resolved against the origin. No timeout is applied unless
one is configured; a hung request blocks only its own caller.
"""

from __future__ import annotations

import logging

import httpx

from flyola_offline.core.models import HttpRequest, HttpResponse
from flyola_offline.network.base_fetcher import BaseFetcher, NetworkError

logger = logging.getLogger(__name__)


class HttpxFetcher(BaseFetcher):
    """Fetcher backed by a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        origin: str,
        timeout_s: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._origin = origin
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_s),
            follow_redirects=True,
        )

    async def fetch(self, request: HttpRequest) -> HttpResponse:
        resolved = request.resolve(self._origin)
        try:
            response = await self._client.request(
                resolved.method,
                resolved.url,
                headers=resolved.headers or None,
            )
        except httpx.HTTPError as e:
            logger.debug("Network failure for %s: %s", resolved.cache_key, e)
            raise NetworkError(resolved, f"{type(e).__name__}: {e}") from e

        return HttpResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
            url=str(response.url),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
