# tests/conftest.py - v2
"""Shared test fixtures: scripted fake network, in-memory storage, worker config.

No network access; every response comes from ScriptedFetcher.
"""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio

from flyola_offline.cache.memory_store import MemoryCacheStorage
from flyola_offline.core.models import HttpRequest, HttpResponse
from flyola_offline.network.base_fetcher import BaseFetcher, NetworkError
from flyola_offline.worker.config import WorkerConfig
from flyola_offline.worker.offline_worker import OfflineCacheWorker

ORIGIN = "https://flyola.test"


def url(path: str) -> str:
    return f"{ORIGIN}{path}"


def ok(body: str, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=body.encode(), headers={"content-type": "text/plain"})


class ScriptedFetcher(BaseFetcher):
    """Fake network keyed on absolute URL.

    - ``responses[url]``: a response, or a list consumed one per call;
    - ``failing``: URLs that raise NetworkError;
    - ``gates[url]``: an asyncio.Event the fetch waits on before answering.
    """

    def __init__(self, origin: str = ORIGIN) -> None:
        self.origin = origin
        self.responses: dict[str, HttpResponse | list[HttpResponse]] = {}
        self.failing: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []
        self.closed = False

    def respond(self, path: str, *responses: HttpResponse) -> None:
        self.responses[url(path)] = list(responses) if len(responses) > 1 else responses[0]

    def fail(self, path: str) -> None:
        self.failing.add(url(path))

    def hold(self, path: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[url(path)] = gate
        return gate

    async def fetch(self, request: HttpRequest) -> HttpResponse:
        request = request.resolve(self.origin)
        self.calls.append(request.url)
        gate = self.gates.get(request.url)
        if gate is not None:
            await gate.wait()
        if request.url in self.failing:
            raise NetworkError(request, "connection refused")
        scripted = self.responses.get(request.url)
        if scripted is None:
            return HttpResponse(status=404, body=b"not found", url=request.url)
        if isinstance(scripted, list):
            response = scripted.pop(0) if len(scripted) > 1 else scripted[0]
        else:
            response = scripted
        return response.model_copy(update={"url": request.url})

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fetcher() -> ScriptedFetcher:
    f = ScriptedFetcher()
    f.respond("/", ok("<html>home</html>"))
    f.respond("/logoo-04.png", ok("PNG"))
    f.respond("/manifest.json", ok('{"name": "Flyola"}'))
    return f


@pytest.fixture
def storage() -> MemoryCacheStorage:
    return MemoryCacheStorage()


@pytest.fixture
def config() -> WorkerConfig:
    return WorkerConfig(origin=ORIGIN)


@pytest.fixture
def worker(config, storage, fetcher) -> OfflineCacheWorker:
    return OfflineCacheWorker(config, storage, fetcher)


@pytest_asyncio.fixture
async def active_worker(worker) -> OfflineCacheWorker:
    await worker.install()
    await worker.activate()
    yield worker
    await worker.close()
