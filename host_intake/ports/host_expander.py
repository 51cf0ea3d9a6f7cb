# /host_intake/ports/host_expander.py
from __future__ import annotations

from typing import Protocol


class HostLimitExceededError(ValueError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"expanded hosts exceed MAX_HOSTS ({limit})")
        self.limit = limit


class HostExpanderPort(Protocol):
    def expand(self, token: str) -> tuple[list[str], bool]:
        """Expand one host token; return (hosts, is_pattern). Raise HostLimitExceededError on oversized ranges."""
