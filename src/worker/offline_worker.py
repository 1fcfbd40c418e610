# src/worker/offline_worker.py - v2
"""Offline cache worker: lifecycle state machine plus request routing.

The worker is built from explicit configuration and injected collaborators
(cache storage, network fetcher), and driven through ``dispatch``:

    parsed --install--> installing --> installed --activate--> activating --> active
                                  \\--> redundant (precache failed)

Fetch events received while the worker is not active are passed straight to
the network, as for a page the worker does not control yet.
"""

from __future__ import annotations

import logging

from flyola_offline.cache.base_cache_store import BaseCacheNamespace, BaseCacheStorage
from flyola_offline.core.models import HttpRequest, HttpResponse
from flyola_offline.logging.context import (
    reset_request_context,
    set_request_context,
    set_worker_context,
)
from flyola_offline.network.base_fetcher import BaseFetcher, NetworkError
from flyola_offline.worker.background import BackgroundTasks
from flyola_offline.worker.config import WorkerConfig
from flyola_offline.worker.events import (
    ActivateEvent,
    FetchEvent,
    InstallError,
    InstallEvent,
    WorkerEvent,
    WorkerState,
    WorkerStateError,
)
from flyola_offline.worker.strategies import (
    CacheFirst,
    NetworkOnly,
    StaleWhileRevalidate,
    Strategy,
    SuccessPolicy,
    default_success_policy,
)

logger = logging.getLogger(__name__)


class OfflineCacheWorker:
    """Intercepts requests and answers them from cache namespaces or the network."""

    def __init__(
        self,
        config: WorkerConfig,
        storage: BaseCacheStorage,
        fetcher: BaseFetcher,
        is_cacheable: SuccessPolicy | None = None,
    ) -> None:
        self.config = config
        self._storage = storage
        self._fetcher = fetcher
        self._background = BackgroundTasks()
        self._state = WorkerState.PARSED

        self._network_only = NetworkOnly(storage, fetcher)
        self._cache_first = CacheFirst(storage, fetcher)
        self._stale_while_revalidate = StaleWhileRevalidate(
            storage,
            fetcher,
            namespace=config.api_cache_name,
            background=self._background,
            is_cacheable=is_cacheable or default_success_policy,
            revalidation=config.revalidation,
        )

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def pending_refreshes(self) -> int:
        """Background refreshes currently running."""
        return len(self._background)

    # --- Dispatch ---

    async def dispatch(self, event: WorkerEvent) -> HttpResponse | None:
        """Route a lifecycle or fetch event to its handler.

        Returns the response for fetch events, None otherwise.
        """
        if isinstance(event, InstallEvent):
            await self.install()
            return None
        if isinstance(event, ActivateEvent):
            await self.activate()
            return None
        if isinstance(event, FetchEvent):
            return await self.handle_fetch(event.request)
        raise TypeError(f"Unknown worker event: {event!r}")

    # --- Lifecycle ---

    async def install(self) -> None:
        """Open both namespaces and precache the required resources.

        All-or-nothing: every resource is fetched before anything is stored,
        and entries already written are removed again if storing fails.

        Raises:
            InstallError: A resource failed to load or store; the worker is
                now redundant.
            WorkerStateError: The worker was already installed.
        """
        self._require("install", WorkerState.PARSED)
        self._transition(WorkerState.INSTALLING)

        static_cache: BaseCacheNamespace | None = None
        written: list[HttpRequest] = []
        url = ""
        try:
            static_cache = await self._storage.open(self.config.static_cache_name)
            await self._storage.open(self.config.api_cache_name)

            fetched: list[tuple[str, HttpRequest, HttpResponse]] = []
            for url in self.config.precache_urls:
                request = HttpRequest(url=url).resolve(self.config.origin)
                response = await self._fetcher.fetch(request)
                if not response.ok:
                    raise InstallError(url, f"HTTP {response.status}")
                fetched.append((url, request, response))

            for url, request, response in fetched:
                await static_cache.put(request, response)
                written.append(request)
        except Exception as e:
            reason = _failure_reason(e)
            self._fail_install(url, reason)
            if static_cache is not None:
                await self._discard(static_cache, written)
            if isinstance(e, InstallError):
                raise
            raise InstallError(url, reason) from e

        logger.info(
            "Precached %d resources into %s", len(written), self.config.static_cache_name
        )
        self._transition(WorkerState.INSTALLED)

    async def activate(self) -> list[str]:
        """Delete every namespace not owned by this worker version.

        Returns:
            Names of the namespaces that were deleted.
        """
        self._require("activate", WorkerState.INSTALLED)
        self._transition(WorkerState.ACTIVATING)

        keep = self.config.namespace_names
        deleted: list[str] = []
        for name in await self._storage.keys():
            if name not in keep:
                await self._storage.delete(name)
                deleted.append(name)

        if deleted:
            logger.info("Deleted stale namespaces: %s", ", ".join(deleted))
        self._transition(WorkerState.ACTIVE)
        return deleted

    # --- Fetch ---

    async def handle_fetch(self, request: HttpRequest) -> HttpResponse:
        """Answer an intercepted request.

        Raises:
            NetworkError: Nothing cached and the network failed.
        """
        request = request.resolve(self.config.origin)
        token = set_request_context(request.cache_key)
        try:
            strategy = self.route(request)
            logger.debug("Handling with %s", strategy.name)
            return await strategy.handle(request)
        finally:
            reset_request_context(token)

    def route(self, request: HttpRequest) -> Strategy:
        """Pick the strategy for ``request`` given the current state."""
        if self._state is not WorkerState.ACTIVE or not request.is_cacheable:
            return self._network_only
        if self.config.is_api_request(request):
            return self._stale_while_revalidate
        return self._cache_first

    async def wait_for_background(self) -> None:
        """Wait for in-flight background refreshes to finish."""
        await self._background.wait()

    async def close(self) -> None:
        """Cancel leftover refreshes and release the fetcher."""
        await self._background.cancel()
        await self._fetcher.aclose()

    # --- Internals ---

    def _require(self, event_type: str, expected: WorkerState) -> None:
        if self._state is not expected:
            raise WorkerStateError(event_type, self._state)

    def _transition(self, state: WorkerState) -> None:
        logger.debug("State %s -> %s", self._state.value, state.value)
        self._state = state
        set_worker_context(self.config.static_cache_name, state.value)

    def _fail_install(self, url: str, reason: str) -> None:
        logger.error("Install failed on %s: %s", url, reason)
        self._transition(WorkerState.REDUNDANT)

    async def _discard(self, cache: BaseCacheNamespace, written: list[HttpRequest]) -> None:
        for request in written:
            try:
                await cache.delete(request)
            except Exception as e:
                logger.warning("Could not remove precached %s: %s", request.url, e)


def _failure_reason(error: Exception) -> str:
    if isinstance(error, (InstallError, NetworkError)):
        return error.reason
    return f"{type(error).__name__}: {error}"
