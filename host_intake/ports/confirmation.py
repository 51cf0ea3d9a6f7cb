# /host_intake/ports/confirmation.py
from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol


class DialogKind(str, Enum):
    PATTERN_LIST = "pattern-list"
    REENTERED_LIST = "reentered-list"
    SYNTAX_WARNING = "syntax-warning"
    MANUAL_INSTALL_NOTICE = "manual-install-notice"
    MANUAL_INSTALL_INFO = "manual-install-info"


class ConfirmationPort(Protocol):
    async def show(self, kind: DialogKind, payload: Mapping[str, Any]) -> bool:
        """Present a dialog and suspend until the user accepts (True) or dismisses (False)."""
