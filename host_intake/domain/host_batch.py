# /host_intake/domain/host_batch.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from host_intake.config import settings
from host_intake.ports.host_expander import HostExpanderPort, HostLimitExceededError
from host_intake.ports.host_registry import RegisteredHostSetPort
from host_intake.ports.host_validator import HostValidatorPort

LOG = logging.getLogger("domain.host_batch")

# ==== DTOs ====


@dataclass(slots=True)
class BatchResult:
    new_hosts: list[str] = field(default_factory=list)
    reentered_hosts: list[str] = field(default_factory=list)
    invalid_hosts: list[str] = field(default_factory=list)  # subset of new_hosts
    pattern_detected: bool = False


# ==== Service ====


class HostBatchProcessor:
    """Turns the free-text host field into a BatchResult over injected ports."""

    def __init__(
        self,
        expander: HostExpanderPort,
        validator: HostValidatorPort,
        *,
        max_hosts: int | None = None,
    ) -> None:
        self.expander = expander
        self.validator = validator
        self.max_hosts = settings.MAX_HOSTS if max_hosts is None else max_hosts

    def _expand_all(self, tokens: list[str]) -> tuple[list[str], bool]:
        hosts: list[str] = []
        pattern_detected = False
        for token in tokens:
            expanded, is_pattern = self.expander.expand(token)
            hosts.extend(expanded)
            if len(hosts) > self.max_hosts:
                LOG.warning("batch exceeds max hosts", extra={"extra": {"max": self.max_hosts}})
                raise HostLimitExceededError(self.max_hosts)
            pattern_detected = pattern_detected or is_pattern
        return hosts, pattern_detected

    def process(self, raw_input: str, registered: RegisteredHostSetPort) -> BatchResult:
        text = raw_input.strip()
        if not text:
            return BatchResult()

        tokens = text.split()
        hosts, pattern_detected = self._expand_all(tokens)

        result = BatchResult(pattern_detected=pattern_detected)
        for host in hosts:
            if registered.contains(host):
                result.reentered_hosts.append(host)
            else:
                result.new_hosts.append(host)

        # Invalid names are reported but stay in new_hosts; duplicates are kept as entered.
        result.invalid_hosts = [h for h in result.new_hosts if not self.validator.is_valid(h)]

        LOG.info(
            "batch.processed",
            extra={
                "extra": {
                    "tokens": len(tokens),
                    "new": len(result.new_hosts),
                    "reentered": len(result.reentered_hosts),
                    "invalid": len(result.invalid_hosts),
                    "pattern": pattern_detected,
                }
            },
        )
        return result
