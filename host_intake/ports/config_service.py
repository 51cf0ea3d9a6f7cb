# /host_intake/ports/config_service.py
from __future__ import annotations

from typing import Protocol


class ConfigServicePort(Protocol):
    async def fetch_property(self, name: str) -> str:
        """Return a server property value (e.g. "java.home"); raise on any failure."""
