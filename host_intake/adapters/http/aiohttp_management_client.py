# /host_intake/adapters/http/aiohttp_management_client.py
from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from host_intake.config import settings
from host_intake.ports.bootstrap_dispatcher import BootstrapDispatchError

LOG = logging.getLogger("adapter.management_client")


def parse_request_id(data: Any) -> str:
    """
    Bootstrap responses look like {"status": "OK", "requestId": 5, "log": "..."}.
    A missing id is reported as "0", the service's busy sentinel.
    """
    if not isinstance(data, dict):
        raise BootstrapDispatchError("unexpected bootstrap response")
    if data.get("status") == "ERROR":
        raise BootstrapDispatchError(data.get("log") or "bootstrap service reported an error")
    request_id = data.get("requestId")
    return "0" if request_id is None or request_id == "" else str(request_id)


def extract_property(data: Any, name: str) -> str:
    try:
        value = data["RootServiceComponents"]["properties"][name]
    except (KeyError, TypeError) as e:
        raise LookupError(f"server property not found: {name}") from e
    return str(value)


class AiohttpManagementClient:
    """
    Loop-aware client for the management server (bootstrap + server properties).
    The session is rebuilt whenever the running loop changes, so it never
    outlives the loop that created it.
    """

    def __init__(self, base_url: str | None = None, *, timeout_seconds: float | None = None) -> None:
        self._base_url = (base_url or settings.MANAGEMENT_URL).rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds or settings.TIMEOUT_SECONDS)
        self._session: aiohttp.ClientSession | None = None
        self._loop: asyncio.AbstractEventLoop | None = None  # track owning loop

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        loop = asyncio.get_running_loop()
        loop_changed = self._loop is not None and self._loop is not loop

        if loop_changed:
            try:
                if self._session and not self._session.closed:
                    await self._session.close()
            finally:
                self._session = None
                self._loop = None

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"X-Requested-By": "host-intake"},
                raise_for_status=False,
            )
            self._loop = loop

        return self._session

    async def launch_bootstrap(self, payload: str) -> str:
        url = self._url(settings.BOOTSTRAP_PATH)
        sess = await self._ensure_session()
        LOG.info("bootstrap.dispatch", extra={"extra": {"url": url}})
        try:
            async with sess.post(
                url, data=payload, headers={"Content-Type": "application/json"}
            ) as resp:
                if resp.status >= 400:
                    raise BootstrapDispatchError(f"bootstrap request failed: HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (TimeoutError, aiohttp.ClientError, ValueError) as e:
            LOG.warning("bootstrap.dispatch_failed", extra={"extra": {"url": url, "error": type(e).__name__}})
            raise BootstrapDispatchError(str(e) or type(e).__name__) from e
        return parse_request_id(data)

    async def fetch_property(self, name: str) -> str:
        url = self._url(settings.SERVER_COMPONENT_PATH)
        sess = await self._ensure_session()
        async with sess.get(url, params={"fields": "RootServiceComponents/properties"}) as resp:
            resp.raise_for_status()
            data = await resp.json(content_type=None)
        return extract_property(data, name)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
            self._loop = None
