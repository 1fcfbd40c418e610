# src/cache/fingerprint.py - v3
"""Stable fingerprints for cache keys and namespace names.

File and key-value backends cannot use raw URLs as identifiers, so both the
request key and the namespace name are hashed.
"""

from __future__ import annotations

import hashlib
import re

from flyola_offline.core.models import HttpRequest

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def request_fingerprint(request: HttpRequest) -> str:
    """SHA-256 of the request cache key (method + URL without fragment)."""
    return hashlib.sha256(request.cache_key.encode("utf-8")).hexdigest()


def namespace_dirname(name: str) -> str:
    """Filesystem-safe, collision-free directory name for a namespace.

    Keeps a readable prefix and appends a short hash of the exact name, so
    ``a/b`` and ``a_b`` never share a directory.
    """
    readable = _UNSAFE.sub("_", name).strip("._") or "ns"
    digest = hashlib.sha256(name.encode("utf-8")).hexdigest()[:12]
    return f"{readable[:64]}-{digest}"
