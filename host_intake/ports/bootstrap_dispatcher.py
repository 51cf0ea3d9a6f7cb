# /host_intake/ports/bootstrap_dispatcher.py
from __future__ import annotations

from typing import Protocol


class BootstrapDispatchError(Exception):
    """The bootstrap service could not be reached or rejected the request."""


class BootstrapDispatcherPort(Protocol):
    async def launch_bootstrap(self, payload: str) -> str:
        """POST the JSON payload; return the request id ("0" when a registration is already running)."""
