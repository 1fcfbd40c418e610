# src/worker/strategies.py - v1
"""Request-handling strategies: cache-first and stale-while-revalidate."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Literal

from flyola_offline.cache.base_cache_store import BaseCacheStorage
from flyola_offline.core.models import HttpRequest, HttpResponse
from flyola_offline.logging.context import set_request_context
from flyola_offline.network.base_fetcher import BaseFetcher, NetworkError
from flyola_offline.worker.background import BackgroundTasks

logger = logging.getLogger(__name__)

SuccessPolicy = Callable[[HttpResponse], bool]


def default_success_policy(response: HttpResponse) -> bool:
    """Store only 2xx responses."""
    return response.ok


class Strategy(ABC):
    """Turns an intercepted request into a response."""

    name: str = "strategy"

    def __init__(self, storage: BaseCacheStorage, fetcher: BaseFetcher) -> None:
        self._storage = storage
        self._fetcher = fetcher

    @abstractmethod
    async def handle(self, request: HttpRequest) -> HttpResponse:
        """Answer ``request``. Raises NetworkError when nothing can answer it."""


class NetworkOnly(Strategy):
    """Straight to the network; used for uncontrolled and non-GET requests."""

    name = "network-only"

    async def handle(self, request: HttpRequest) -> HttpResponse:
        return await self._fetcher.fetch(request)


class CacheFirst(Strategy):
    """Any namespace hit wins; a miss goes to the network and is not stored."""

    name = "cache-first"

    async def handle(self, request: HttpRequest) -> HttpResponse:
        cached = await self._storage.match(request)
        if cached is not None:
            logger.debug("Cache hit")
            return cached.served_from_cache()
        logger.debug("Cache miss, going to network")
        return await self._fetcher.fetch(request)


class StaleWhileRevalidate(Strategy):
    """Serve the cached entry now, refresh it in the background for next time.

    On a miss the network response is returned and stored if the success
    policy accepts it. Two refreshes of one key race under ``last_write_wins``
    (whichever completes last is stored); ``single_flight`` skips starting a
    refresh while one for the same key is still running.
    """

    name = "stale-while-revalidate"

    def __init__(
        self,
        storage: BaseCacheStorage,
        fetcher: BaseFetcher,
        namespace: str,
        background: BackgroundTasks,
        is_cacheable: SuccessPolicy = default_success_policy,
        revalidation: Literal["last_write_wins", "single_flight"] = "last_write_wins",
    ) -> None:
        super().__init__(storage, fetcher)
        self._namespace = namespace
        self._background = background
        self._is_cacheable = is_cacheable
        self._revalidation = revalidation
        self._inflight: dict[str, asyncio.Task[None]] = {}

    async def handle(self, request: HttpRequest) -> HttpResponse:
        cache = await self._storage.open(self._namespace)
        cached = await cache.match(request)
        if cached is not None:
            logger.debug("Serving stale entry, revalidating in background")
            self._schedule_refresh(request)
            return cached.served_from_cache()

        response = await self._fetcher.fetch(request)
        if self._is_cacheable(response):
            await cache.put(request, response)
        else:
            logger.debug("Not caching response with status %d", response.status)
        return response

    def _schedule_refresh(self, request: HttpRequest) -> None:
        key = request.cache_key
        if self._revalidation == "single_flight":
            running = self._inflight.get(key)
            if running is not None and not running.done():
                logger.debug("Refresh already in flight, not starting another")
                return
        task = self._background.spawn(self._refresh(request), name=f"revalidate {key}")
        if self._revalidation == "single_flight":
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))

    def _forget(self, key: str, task: asyncio.Task[None]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _refresh(self, request: HttpRequest) -> None:
        # Runs in its own task, so the context change stays local to it.
        set_request_context(request.cache_key)
        try:
            response = await self._fetcher.fetch(request)
        except NetworkError as e:
            # The stale entry stays authoritative until a later refresh succeeds.
            logger.info("Background refresh failed, keeping cached entry: %s", e.reason)
            return

        if not self._is_cacheable(response):
            logger.info(
                "Background refresh returned %d, keeping cached entry", response.status
            )
            return
        cache = await self._storage.open(self._namespace)
        await cache.put(request, response)
        logger.debug("Cached entry refreshed")
