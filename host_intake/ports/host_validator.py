# /host_intake/ports/host_validator.py
from __future__ import annotations

from typing import Protocol


class HostValidatorPort(Protocol):
    def is_valid(self, identifier: str) -> bool:
        """True for a syntactically valid hostname or IP literal."""
