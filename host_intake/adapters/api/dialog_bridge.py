# /host_intake/adapters/api/dialog_bridge.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from host_intake.domain.submission_flow import (
    InstallOptions,
    SubmissionDecisionFlow,
    SubmissionResult,
)
from host_intake.ports.confirmation import DialogKind

LOG = logging.getLogger("adapter.api.dialogs")


class NoPendingDialogError(LookupError):
    pass


@dataclass(slots=True)
class PendingDialog:
    kind: DialogKind
    payload: dict[str, Any]
    future: asyncio.Future[bool]


class DialogBridge:
    """
    ConfirmationPort for the HTTP surface: each dialog parks the flow on a future
    that a later request resolves through answer().
    """

    def __init__(self) -> None:
        self._pending: PendingDialog | None = None
        self._shown = asyncio.Event()

    @property
    def pending(self) -> PendingDialog | None:
        if self._pending is None or self._pending.future.done():
            return None
        return self._pending

    async def show(self, kind: DialogKind, payload: Mapping[str, Any]) -> bool:
        fut: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._pending = PendingDialog(kind=kind, payload=dict(payload), future=fut)
        self._shown.set()
        LOG.info("dialog.shown", extra={"extra": {"kind": kind.value}})
        try:
            return await fut
        finally:
            self._pending = None

    def answer(self, confirmed: bool) -> None:
        pending = self.pending
        if pending is None:
            raise NoPendingDialogError("no dialog is awaiting an answer")
        self._shown.clear()
        pending.future.set_result(confirmed)
        LOG.info("dialog.answered", extra={"extra": {"kind": pending.kind.value, "confirmed": confirmed}})

    async def wait_shown(self) -> None:
        await self._shown.wait()


class SubmissionSession:
    """One submit pass driven over HTTP: a flow task plus the bridge it talks to."""

    def __init__(self, submission_id: str, flow: SubmissionDecisionFlow, bridge: DialogBridge) -> None:
        self.submission_id = submission_id
        self.flow = flow
        self.bridge = bridge
        self.task: asyncio.Task[SubmissionResult] | None = None

    def start(self, options: InstallOptions) -> None:
        self.task = asyncio.create_task(self.flow.submit(options))

    @property
    def active(self) -> bool:
        return self.task is not None and not self.task.done()

    @property
    def error(self) -> BaseException | None:
        if self.task is None or not self.task.done() or self.task.cancelled():
            return None
        return self.task.exception()

    async def settle(self) -> None:
        """Return once the flow has finished or is parked on a dialog."""
        if self.task is None or self.task.done() or self.bridge.pending is not None:
            return
        waiter = asyncio.ensure_future(self.bridge.wait_shown())
        try:
            await asyncio.wait({self.task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

    def view(self) -> dict[str, Any]:
        pending = self.bridge.pending
        out: dict[str, Any] = {
            "submission_id": self.submission_id,
            "state": self.flow.state.value,
            "dialog": {"kind": pending.kind.value, "payload": pending.payload} if pending else None,
            "result": None,
        }
        if self.task is not None and self.task.done() and self.error is None and not self.task.cancelled():
            out["result"] = asdict(self.task.result())
        return out
