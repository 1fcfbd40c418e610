# src/main.py - v3
"""CLI entry point: install, fetch, namespaces, purge commands.

Usage:
    flyola-offline install
    flyola-offline fetch <url> [<url> ...]
    flyola-offline namespaces
    flyola-offline purge [<name> ...]

Configuration comes from .env / environment (see config.settings); use a
persistent CACHE_BACKEND (json, sqlite, redis) for the cache to outlive the
process.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from flyola_offline.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        from flyola_offline.config.settings import load_settings
        from flyola_offline.logging.logger import setup_logging_from_settings

        overrides = {}
        if args.origin:
            overrides["origin"] = args.origin
        if args.backend:
            overrides["cache_backend"] = args.backend
        settings = load_settings(**overrides)
        setup_logging_from_settings(settings, verbose=args.verbose)
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="flyola-offline",
        description=f"flyola-offline v{__version__}: offline cache worker for the Flyola site",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--origin", default=None,
        help="Origin URL (overrides ORIGIN)",
    )
    parser.add_argument(
        "--backend", choices=["memory", "json", "sqlite", "redis"], default=None,
        help="Cache backend (overrides CACHE_BACKEND)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- install ---
    p_install = subparsers.add_parser(
        "install", help="Precache static resources and activate",
    )
    p_install.set_defaults(func=_cmd_install)

    # --- fetch ---
    p_fetch = subparsers.add_parser(
        "fetch", help="Fetch URLs through the worker",
    )
    p_fetch.add_argument("urls", nargs="+", help="Absolute or origin-relative URLs")
    p_fetch.add_argument(
        "--method", default="GET",
        help="HTTP method (default: GET)",
    )
    p_fetch.add_argument(
        "--body", action="store_true",
        help="Print response bodies",
    )
    p_fetch.set_defaults(func=_cmd_fetch)

    # --- namespaces ---
    p_namespaces = subparsers.add_parser(
        "namespaces", help="List cache namespaces",
    )
    p_namespaces.set_defaults(func=_cmd_namespaces)

    # --- purge ---
    p_purge = subparsers.add_parser(
        "purge", help="Delete cache namespaces (all when none named)",
    )
    p_purge.add_argument("names", nargs="*", help="Namespace names")
    p_purge.set_defaults(func=_cmd_purge)

    return parser


def _build_worker(settings):
    """Assemble a worker from settings."""
    from flyola_offline.cache.cache_factory import create_cache_storage
    from flyola_offline.network.httpx_fetcher import HttpxFetcher
    from flyola_offline.worker.offline_worker import OfflineCacheWorker

    storage = create_cache_storage(settings)
    fetcher = HttpxFetcher(origin=settings.origin, timeout_s=settings.fetch_timeout_s)
    return OfflineCacheWorker(settings.worker_config(), storage, fetcher), storage


async def _start(worker) -> None:
    from flyola_offline.worker.events import ActivateEvent, InstallEvent

    await worker.dispatch(InstallEvent())
    await worker.dispatch(ActivateEvent())


async def _cmd_install(args: argparse.Namespace, settings) -> int:
    """Install and activate, then show the resulting namespaces."""
    worker, storage = _build_worker(settings)
    try:
        await _start(worker)
        _print_namespaces(await storage.describe())
    finally:
        await worker.close()
        storage.close()
    return 0


async def _cmd_fetch(args: argparse.Namespace, settings) -> int:
    """Fetch each URL through an active worker."""
    from pydantic import ValidationError

    from flyola_offline.core.models import HttpRequest
    from flyola_offline.network.base_fetcher import NetworkError
    from flyola_offline.worker.events import FetchEvent

    worker, storage = _build_worker(settings)
    failures = 0
    try:
        await _start(worker)
        for url in args.urls:
            try:
                request = HttpRequest(method=args.method, url=url)
            except ValidationError:
                failures += 1
                print(f"{args.method.upper()} {url}: invalid url")
                continue
            try:
                response = await worker.dispatch(FetchEvent(request=request))
            except NetworkError as e:
                failures += 1
                print(f"{request.method} {url}: network error ({e.reason})")
                continue
            source = "cache" if response.from_cache else "network"
            print(f"{request.method} {url}: {response.status} [{source}] {len(response.body)} bytes")
            if args.body:
                print(response.text)
        await worker.wait_for_background()
    finally:
        await worker.close()
        storage.close()
    return 1 if failures else 0


async def _cmd_namespaces(args: argparse.Namespace, settings) -> int:
    """List namespaces of the configured store."""
    from flyola_offline.cache.cache_factory import create_cache_storage

    storage = create_cache_storage(settings)
    try:
        _print_namespaces(await storage.describe())
    finally:
        storage.close()
    return 0


async def _cmd_purge(args: argparse.Namespace, settings) -> int:
    """Delete the named namespaces, or all of them."""
    from flyola_offline.cache.cache_factory import create_cache_storage

    storage = create_cache_storage(settings)
    try:
        names = args.names or await storage.keys()
        missing = 0
        for name in names:
            if await storage.delete(name):
                print(f"Deleted {name}")
            else:
                missing += 1
                print(f"No such namespace: {name}")
    finally:
        storage.close()
    return 1 if missing else 0


def _print_namespaces(infos) -> None:
    if not infos:
        print("No cache namespaces.")
        return
    print(f"\nCache namespaces:")
    for info in infos:
        print(f"  {info.name:32s} {info.entry_count:6d} entries")


if __name__ == "__main__":
    sys.exit(main())
