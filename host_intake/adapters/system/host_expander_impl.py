# /host_intake/adapters/system/host_expander_impl.py
from __future__ import annotations

import logging
import re

from host_intake.config import settings
from host_intake.ports.host_expander import HostLimitExceededError

LOG = logging.getLogger("adapter.host_expander")

# Only the first bracket group in a token is a substitution site; later groups stay literal.
_RANGE = re.compile(r"\[(\d*)-(\d*)\]", re.ASCII)


class HostPatternExpander:
    """
    Expands ``prefix[start-end]suffix`` into ``prefix<start>suffix`` .. ``prefix<end>suffix``.

    A start written with a leading zero (``[01-12]``) fixes the width, so every
    generated number is zero-padded to ``len(start)``. Anything that does not
    form a valid ascending range is returned untouched with ``is_pattern=False``.
    A range wider than ``max_hosts`` raises HostLimitExceededError before any name is built.
    """

    def __init__(self, max_hosts: int | None = None) -> None:
        self.max_hosts = settings.MAX_HOSTS if max_hosts is None else max_hosts

    def expand(self, token: str) -> tuple[list[str], bool]:
        match = _RANGE.search(token)
        if match is None:
            return [token], False

        start_digits, end_digits = match.group(1), match.group(2)
        if not start_digits or not end_digits:
            return [token], False

        start, end = int(start_digits), int(end_digits)
        if start < 0 or start > end:
            return [token], False

        if end - start + 1 > self.max_hosts:
            LOG.warning(
                "expanded hosts exceed max", extra={"extra": {"token": token, "max": self.max_hosts}}
            )
            raise HostLimitExceededError(self.max_hosts)

        width = len(start_digits) if start_digits[0] == "0" and len(start_digits) > 1 else 0
        head, tail = token[: match.start()], token[match.end() :]
        hosts = [f"{head}{str(i).zfill(width)}{tail}" for i in range(start, end + 1)]

        LOG.debug("expanded pattern", extra={"extra": {"token": token, "out": len(hosts)}})
        return hosts, True
