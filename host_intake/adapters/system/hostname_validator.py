# /host_intake/adapters/system/hostname_validator.py
from __future__ import annotations

import re
from ipaddress import ip_address

# RFC 1123 label: alnum at both ends, hyphens inside, at most 63 chars.
_LABEL = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$", re.ASCII)
_MAX_HOSTNAME = 253


class HostNameValidator:
    def is_valid(self, identifier: str) -> bool:
        if not identifier or any(c.isspace() for c in identifier):
            return False
        try:
            ip_address(identifier)
            return True
        except ValueError:
            pass
        return self._is_hostname(identifier)

    @staticmethod
    def _is_hostname(name: str) -> bool:
        if name.endswith("."):
            name = name[:-1]
        if not name or len(name) > _MAX_HOSTNAME:
            return False
        labels = name.split(".")
        # bare single labels (localhost, node01) are not accepted as install targets
        if len(labels) < 2:
            return False
        # a dotted all-numeric name is a malformed IPv4 literal, not a hostname
        if len(labels) > 1 and all(label.isdigit() for label in labels):
            return False
        return all(_LABEL.match(label) for label in labels)
