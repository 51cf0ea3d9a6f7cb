# /host_intake/ports/host_sink.py
from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from host_intake.domain.bootstrap_launcher import HostRecord


class HostSinkPort(Protocol):
    def save_hosts(self, records: Mapping[str, HostRecord]) -> None:
        """Replace the wizard's host list with the given records."""

    def set_install_option(self, name: str, value: str) -> None:
        """Persist one install option (bootRequestId, javaHome)."""
