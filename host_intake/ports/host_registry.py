# /host_intake/ports/host_registry.py
from __future__ import annotations

from typing import Protocol


class RegisteredHostSetPort(Protocol):
    def contains(self, identifier: str) -> bool:
        """True if the identifier is already part of the cluster inventory."""
