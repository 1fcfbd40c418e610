# src/logging/context.py - v2
"""Contextual logging support: attach worker, state and request to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging. Each fetch runs in its own task,
# so the request variable never leaks between concurrent requests.
_worker: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "worker", default=None
)
_state: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "state", default=None
)
_request: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    worker: str | None = None
    state: str | None = None
    request: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        worker=_worker.get(),
        state=_state.get(),
        request=_request.get(),
    )


def set_worker_context(worker: str, state: str | None = None) -> None:
    """Set worker-level context (version label and lifecycle state)."""
    _worker.set(worker)
    _state.set(state)


def set_request_context(request: str | None) -> contextvars.Token[str | None]:
    """Set the request being handled. Returns a token for ``reset_request_context``."""
    return _request.set(request)


def reset_request_context(token: contextvars.Token[str | None]) -> None:
    _request.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _worker.set(None)
    _state.set(None)
    _request.set(None)
