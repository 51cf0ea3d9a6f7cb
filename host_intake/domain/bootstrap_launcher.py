# /host_intake/domain/bootstrap_launcher.py
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from host_intake.config import settings
from host_intake.ports.bootstrap_dispatcher import BootstrapDispatcherPort
from host_intake.ports.config_service import ConfigServicePort
from host_intake.ports.host_sink import HostSinkPort

LOG = logging.getLogger("domain.bootstrap_launcher")

JAVA_HOME_PROPERTY = "java.home"
HOST_REG_IN_PROGRESS = "Host Registration is currently in progress. Please try again later."

# ==== DTOs ====


class InstallType(str, Enum):
    MANUAL_DRIVEN = "manualDriven"
    AGENT_DRIVEN = "agentDriven"


class BootStatus(str, Enum):
    PENDING = "PENDING"


@dataclass(slots=True)
class HostRecord:
    name: str
    install_type: InstallType
    boot_status: BootStatus = BootStatus.PENDING


@dataclass(slots=True)
class SshCredentials:
    ssh_key: str
    user: str


class LaunchStatus(str, Enum):
    MANUAL_INSTALL_ACKNOWLEDGED = "manual-install-acknowledged"
    DIRECT_PERSIST = "direct-persist"
    ALREADY_IN_PROGRESS = "already-in-progress"
    LAUNCHED = "launched"


@dataclass(slots=True)
class LaunchOutcome:
    status: LaunchStatus
    request_id: str | None = None
    java_home: str | None = None
    saved_hosts: list[str] = field(default_factory=list)
    message: str | None = None


def build_host_records(hosts: Sequence[str], install_type: InstallType) -> dict[str, HostRecord]:
    return {h: HostRecord(name=h, install_type=install_type) for h in hosts}


def build_bootstrap_payload(hosts: Sequence[str], credentials: SshCredentials) -> str:
    """Serialize the request body the bootstrap service expects (compact JSON, fixed key order)."""
    return json.dumps(
        {"verbose": True, "sshKey": credentials.ssh_key, "hosts": list(hosts), "user": credentials.user},
        separators=(",", ":"),
    )


# ==== Service ====


class BootstrapLauncher:
    def __init__(
        self,
        dispatcher: BootstrapDispatcherPort,
        config_service: ConfigServicePort,
        sink: HostSinkPort,
        *,
        default_java_home: str,
        property_timeout: float | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.config_service = config_service
        self.sink = sink
        self.default_java_home = default_java_home
        self.property_timeout = (
            settings.JAVA_HOME_TIMEOUT_SECONDS if property_timeout is None else property_timeout
        )

    async def _resolve_java_home(self) -> str:
        # Best effort: errors and timeouts fall back to the default, never retried.
        try:
            async with asyncio.timeout(self.property_timeout):
                return await self.config_service.fetch_property(JAVA_HOME_PROPERTY)
        except Exception as e:
            LOG.warning(
                "java_home.fallback",
                extra={"extra": {"error": type(e).__name__, "default": self.default_java_home}},
            )
            return self.default_java_home

    async def save_hosts(self, hosts: Sequence[str], install_type: InstallType) -> LaunchOutcome:
        """Persist hosts as PENDING records, then record java.home. Returns a partial outcome."""
        records = build_host_records(hosts, install_type)
        self.sink.save_hosts(records)
        java_home = await self._resolve_java_home()
        self.sink.set_install_option("javaHome", java_home)
        LOG.info(
            "hosts.saved",
            extra={"extra": {"hosts": len(records), "install_type": install_type.value}},
        )
        return LaunchOutcome(
            status=LaunchStatus.DIRECT_PERSIST, java_home=java_home, saved_hosts=list(records)
        )

    async def launch(
        self,
        new_hosts: Sequence[str],
        credentials: SshCredentials,
        manual_install: bool,
        bootstrap_enabled: bool,
    ) -> LaunchOutcome:
        hosts = list(new_hosts)

        if manual_install:
            LOG.info("bootstrap.manual_install", extra={"extra": {"hosts": len(hosts)}})
            return LaunchOutcome(status=LaunchStatus.MANUAL_INSTALL_ACKNOWLEDGED)

        if not bootstrap_enabled:
            LOG.info("bootstrap.skipped", extra={"extra": {"hosts": len(hosts)}})
            return await self.save_hosts(hosts, InstallType.AGENT_DRIVEN)

        request_id = await self.dispatcher.launch_bootstrap(build_bootstrap_payload(hosts, credentials))
        if not request_id or str(request_id) == "0":
            LOG.warning("bootstrap.busy", extra={"extra": {"hosts": len(hosts)}})
            return LaunchOutcome(status=LaunchStatus.ALREADY_IN_PROGRESS, message=HOST_REG_IN_PROGRESS)

        request_id = str(request_id)
        self.sink.set_install_option("bootRequestId", request_id)
        LOG.info("bootstrap.launched", extra={"extra": {"request_id": request_id, "hosts": len(hosts)}})

        outcome = await self.save_hosts(hosts, InstallType.AGENT_DRIVEN)
        outcome.status = LaunchStatus.LAUNCHED
        outcome.request_id = request_id
        return outcome
