# /host_intake/domain/submission_flow.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from host_intake.domain.bootstrap_launcher import (
    BootstrapLauncher,
    InstallType,
    LaunchOutcome,
    LaunchStatus,
    SshCredentials,
)
from host_intake.domain.host_batch import BatchResult, HostBatchProcessor
from host_intake.ports.confirmation import ConfirmationPort, DialogKind
from host_intake.ports.host_expander import HostLimitExceededError
from host_intake.ports.host_registry import RegisteredHostSetPort

LOG = logging.getLogger("domain.submission_flow")

HOSTS_REQUIRED = "You must specify at least one host name"
HOSTS_ALREADY_INSTALLED = "All these hosts are already part of the cluster"
HOSTS_TOO_MANY = "Too many hosts: at most {limit} can be added at once"
SSH_KEY_REQUIRED = "SSH Private Key is required"
SSH_USER_REQUIRED = "User name is required"
MANUAL_INSTALL_INFO = (
    "SSH is disabled: the agent must be installed and started manually on every host "
    "before registration can continue."
)

# ==== DTOs ====


@dataclass(slots=True)
class InstallOptions:
    host_names: str = ""
    manual_install: bool = False
    ssh_key: str = ""
    ssh_user: str = "root"

    @property
    def credentials(self) -> SshCredentials:
        return SshCredentials(ssh_key=self.ssh_key, user=self.ssh_user)


@dataclass(slots=True)
class FieldErrors:
    hosts: str | None = None
    ssh_key: str | None = None
    ssh_user: str | None = None

    def any(self) -> bool:
        return bool(self.hosts or self.ssh_key or self.ssh_user)


class FlowState(str, Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    BLOCKED = "blocked"
    PATTERN_CONFIRM = "pattern-confirm"
    REENTERED_CONFIRM = "reentered-confirm"
    PROCEEDING = "proceeding"


@dataclass(slots=True)
class SubmissionResult:
    """
    Terminal view of one submit pass:
    BLOCKED (field errors), IDLE (a dialog was dismissed) or PROCEEDING (outcome set).
    """

    state: FlowState
    errors: FieldErrors = field(default_factory=FieldErrors)
    batch: BatchResult | None = None
    outcome: LaunchOutcome | None = None
    dialogs: list[DialogKind] = field(default_factory=list)
    cancelled_at: DialogKind | None = None


class SubmissionInProgressError(RuntimeError):
    pass


def validate_fields(options: InstallOptions) -> FieldErrors:
    """Required-field checks; each failing field is reported independently."""
    errors = FieldErrors()
    if not options.host_names.strip():
        errors.hosts = HOSTS_REQUIRED
    if not options.manual_install:
        if not options.ssh_key.strip():
            errors.ssh_key = SSH_KEY_REQUIRED
        if not options.ssh_user.strip():
            errors.ssh_user = SSH_USER_REQUIRED
    return errors


# ==== Service ====


class SubmissionDecisionFlow:
    """Decides which confirmation (if any) precedes committing a host batch."""

    def __init__(
        self,
        processor: HostBatchProcessor,
        registered: RegisteredHostSetPort,
        dialogs: ConfirmationPort,
        launcher: BootstrapLauncher,
        *,
        bootstrap_enabled: bool = True,
    ) -> None:
        self.processor = processor
        self.registered = registered
        self.dialogs = dialogs
        self.launcher = launcher
        self.bootstrap_enabled = bootstrap_enabled
        self._state = FlowState.IDLE
        self._active = False

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def active(self) -> bool:
        return self._active

    def _enter(self, state: FlowState) -> None:
        LOG.debug("flow.state", extra={"extra": {"from": self._state.value, "to": state.value}})
        self._state = state

    def _block(self, errors: FieldErrors, batch: BatchResult | None = None) -> SubmissionResult:
        self._enter(FlowState.BLOCKED)
        failing = [name for name in ("hosts", "ssh_key", "ssh_user") if getattr(errors, name)]
        LOG.info("flow.blocked", extra={"extra": {"fields": failing}})
        return SubmissionResult(state=FlowState.BLOCKED, errors=errors, batch=batch)

    async def _confirm(self, kind: DialogKind, payload: dict[str, Any], result: SubmissionResult) -> bool:
        result.dialogs.append(kind)
        if await self.dialogs.show(kind, payload):
            return True
        self._enter(FlowState.IDLE)
        result.state = FlowState.IDLE
        result.cancelled_at = kind
        LOG.info("flow.cancelled", extra={"extra": {"dialog": kind.value}})
        return False

    async def submit(self, options: InstallOptions) -> SubmissionResult:
        if self._active:
            raise SubmissionInProgressError("a submission is already awaiting confirmation")
        self._active = True
        try:
            return await self._run(options)
        except Exception:
            self._enter(FlowState.IDLE)
            raise
        finally:
            self._active = False

    async def _run(self, options: InstallOptions) -> SubmissionResult:
        self._enter(FlowState.SUBMITTED)

        errors = validate_fields(options)
        if errors.any():
            return self._block(errors)

        try:
            batch = self.processor.process(options.host_names, self.registered)
        except HostLimitExceededError as e:
            return self._block(FieldErrors(hosts=HOSTS_TOO_MANY.format(limit=e.limit)))
        if not batch.new_hosts:
            return self._block(FieldErrors(hosts=HOSTS_ALREADY_INSTALLED), batch)

        result = SubmissionResult(state=FlowState.SUBMITTED, batch=batch)

        if batch.pattern_detected:
            self._enter(FlowState.PATTERN_CONFIRM)
            if not await self._confirm(DialogKind.PATTERN_LIST, {"hosts": list(batch.new_hosts)}, result):
                return result

        if batch.reentered_hosts:
            self._enter(FlowState.REENTERED_CONFIRM)
            if not await self._confirm(
                DialogKind.REENTERED_LIST, {"hosts": list(batch.reentered_hosts)}, result
            ):
                return result

        self._enter(FlowState.PROCEEDING)
        return await self._proceed(options, batch, result)

    async def _proceed(
        self, options: InstallOptions, batch: BatchResult, result: SubmissionResult
    ) -> SubmissionResult:
        if batch.invalid_hosts:
            if not await self._confirm(
                DialogKind.SYNTAX_WARNING, {"hosts": list(batch.invalid_hosts)}, result
            ):
                return result

        outcome = await self.launcher.launch(
            batch.new_hosts, options.credentials, options.manual_install, self.bootstrap_enabled
        )

        if outcome.status is LaunchStatus.MANUAL_INSTALL_ACKNOWLEDGED:
            if not await self._confirm(
                DialogKind.MANUAL_INSTALL_NOTICE, {"hosts": list(batch.new_hosts)}, result
            ):
                return result
            saved = await self.launcher.save_hosts(batch.new_hosts, InstallType.MANUAL_DRIVEN)
            outcome.java_home = saved.java_home
            outcome.saved_hosts = saved.saved_hosts

        result.state = FlowState.PROCEEDING
        result.outcome = outcome
        LOG.info("flow.done", extra={"extra": {"outcome": outcome.status.value, "dialogs": len(result.dialogs)}})
        return result

    async def apply_use_ssh(self, options: InstallOptions, use_ssh: bool) -> InstallOptions:
        """Switching SSH off implies manual install and shows an informational notice."""
        if not use_ssh:
            await self.dialogs.show(DialogKind.MANUAL_INSTALL_INFO, {"message": MANUAL_INSTALL_INFO})
        return replace(options, manual_install=not use_ssh)
