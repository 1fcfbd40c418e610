# src/worker/events.py - v1
"""Worker lifecycle states and the events that drive them."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel

from flyola_offline.core.models import HttpRequest


class WorkerState(str, Enum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVE = "active"
    REDUNDANT = "redundant"


class InstallEvent(BaseModel):
    type: Literal["install"] = "install"


class ActivateEvent(BaseModel):
    type: Literal["activate"] = "activate"


class FetchEvent(BaseModel):
    type: Literal["fetch"] = "fetch"
    request: HttpRequest


WorkerEvent = Union[InstallEvent, ActivateEvent, FetchEvent]


class WorkerStateError(RuntimeError):
    """An event arrived in a state that does not accept it."""

    def __init__(self, event_type: str, state: WorkerState) -> None:
        self.event_type = event_type
        self.state = state
        super().__init__(f"Cannot handle '{event_type}' in state '{state.value}'")


class InstallError(Exception):
    """A precache resource could not be fetched; the install is abandoned."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Install failed, could not precache {url}: {reason}")
