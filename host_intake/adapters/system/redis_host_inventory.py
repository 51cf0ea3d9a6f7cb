# /host_intake/adapters/system/redis_host_inventory.py
from __future__ import annotations
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import redis

from host_intake.domain.bootstrap_launcher import HostRecord

LOG = logging.getLogger("adapter.inventory.redis")


class FrozenHostSet:
    """Point-in-time copy of the registered hosts, queried once per submission."""

    def __init__(self, hosts: Iterable[str]) -> None:
        self._hosts = frozenset(hosts)

    def contains(self, identifier: str) -> bool:
        return identifier in self._hosts

    def __len__(self) -> int:
        return len(self._hosts)


class RedisHostInventory:
    """
    Cluster inventory and wizard state in redis:
      <prefix>:hosts                  set of registered host names (read-only here)
      <prefix>:wizard:hosts           hash name -> JSON host record
      <prefix>:wizard:install_options hash option -> value
    """

    def __init__(self, redis_url: str, prefix: str = "cluster") -> None:
        self._r = redis.Redis.from_url(redis_url, decode_responses=True)
        self._prefix = prefix

    def _key(self, name: str) -> str:
        return f"{self._prefix}:{name}"

    def snapshot(self) -> FrozenHostSet:
        members = self._r.smembers(self._key("hosts"))
        LOG.info("inventory.snapshot", extra={"extra": {"registered": len(members)}})
        return FrozenHostSet(members)

    def save_hosts(self, records: Mapping[str, HostRecord]) -> None:
        key = self._key("wizard:hosts")
        # delete and refill in one MULTI/EXEC so readers never see a half-written list
        pipeline = self._r.pipeline()
        pipeline.delete(key)
        if records:
            pipeline.hset(
                key,
                mapping={
                    name: json.dumps(
                        {
                            "name": rec.name,
                            "installType": rec.install_type.value,
                            "bootStatus": rec.boot_status.value,
                        }
                    )
                    for name, rec in records.items()
                },
            )
        pipeline.execute()
        LOG.info("inventory.save_hosts", extra={"extra": {"hosts": len(records)}})

    def get_hosts(self) -> dict[str, dict[str, Any]]:
        out: dict[str, dict[str, Any]] = {}
        for name, raw in self._r.hgetall(self._key("wizard:hosts")).items():
            try:
                out[name] = json.loads(raw)
            except ValueError:
                LOG.warning("inventory.bad_record", extra={"extra": {"host": name}})
        return out

    def set_install_option(self, name: str, value: str) -> None:
        self._r.hset(self._key("wizard:install_options"), mapping={name: value})
        LOG.info("inventory.set_install_option", extra={"extra": {"option": name}})

    def get_install_options(self) -> dict[str, str]:
        return dict(self._r.hgetall(self._key("wizard:install_options")))
