# tests/unit/network/test_httpx_fetcher.py - v1
"""Tests for network/httpx_fetcher.py using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from flyola_offline.core.models import HttpRequest
from flyola_offline.network.base_fetcher import BaseFetcher, NetworkError
from flyola_offline.network.httpx_fetcher import HttpxFetcher

ORIGIN = "https://flyola.test"


def _fetcher(handler) -> HttpxFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxFetcher(origin=ORIGIN, client=client)


class TestBaseFetcher:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseFetcher()  # type: ignore[abstract]


class TestHttpxFetcher:
    @pytest.mark.asyncio
    async def test_relative_url_resolved(self):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=[{"code": "BHO"}])

        fetcher = _fetcher(handler)
        response = await fetcher.fetch(HttpRequest(url="/airport"))
        assert seen == ["https://flyola.test/airport"]
        assert response.status == 200
        assert response.ok
        assert b"BHO" in response.body
        assert response.url == "https://flyola.test/airport"
        assert response.headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_method_and_headers_forwarded(self):
        captured: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["auth"] = request.headers.get("authorization", "")
            return httpx.Response(201)

        fetcher = _fetcher(handler)
        request = HttpRequest(
            method="POST", url="/bookings", headers={"Authorization": "Bearer t"},
        )
        response = await fetcher.fetch(request)
        assert response.status == 201
        assert captured == {"method": "POST", "auth": "Bearer t"}

    @pytest.mark.asyncio
    async def test_error_status_returned_not_raised(self):
        fetcher = _fetcher(lambda request: httpx.Response(503, text="down"))
        response = await fetcher.fetch(HttpRequest(url="/airport"))
        assert response.status == 503
        assert not response.ok
        assert response.text == "down"

    @pytest.mark.asyncio
    async def test_transport_error_raises_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = _fetcher(handler)
        with pytest.raises(NetworkError) as exc_info:
            await fetcher.fetch(HttpRequest(url="/airport"))
        assert exc_info.value.request.url == "https://flyola.test/airport"
        assert "ConnectError" in exc_info.value.reason
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        fetcher = HttpxFetcher(origin=ORIGIN, client=client)
        await fetcher.aclose()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        fetcher = HttpxFetcher(origin=ORIGIN, timeout_s=5.0)
        await fetcher.aclose()
        assert fetcher._client.is_closed
