# /host_intake/adapters/api/fastapi_app.py
from __future__ import annotations
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, AsyncIterator

from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from host_intake.adapters.api.dialog_bridge import DialogBridge, NoPendingDialogError, SubmissionSession
from host_intake.adapters.http.aiohttp_management_client import AiohttpManagementClient
from host_intake.adapters.system.host_expander_impl import HostPatternExpander
from host_intake.adapters.system.hostname_validator import HostNameValidator
from host_intake.adapters.system.logging_cfg import configure_logger
from host_intake.adapters.system.redis_host_inventory import RedisHostInventory
from host_intake.config import settings
from host_intake.domain.bootstrap_launcher import BootstrapLauncher
from host_intake.domain.host_batch import HostBatchProcessor
from host_intake.domain.submission_flow import (
    InstallOptions,
    SubmissionDecisionFlow,
    validate_fields,
)
from host_intake.ports.bootstrap_dispatcher import BootstrapDispatchError
from host_intake.ports.host_expander import HostLimitExceededError

LOG = logging.getLogger("adapter.api")


class InstallOptionsModel(BaseModel):
    host_names: str = ""
    manual_install: bool = False
    ssh_key: str = ""
    ssh_user: str = Field(default_factory=lambda: settings.DEFAULT_SSH_USER)

    def to_options(self) -> InstallOptions:
        return InstallOptions(
            host_names=self.host_names,
            manual_install=self.manual_install,
            ssh_key=self.ssh_key,
            ssh_user=self.ssh_user,
        )


class DialogAnswerModel(BaseModel):
    confirmed: bool


def _check_api_key(x_api_key: str | None) -> None:
    if settings.API_KEY and x_api_key != settings.API_KEY:
        raise HTTPException(status_code=401, detail="invalid api key")


def _session_response(session: SubmissionSession) -> dict[str, Any]:
    err = session.error
    if isinstance(err, BootstrapDispatchError):
        raise HTTPException(status_code=502, detail=f"bootstrap dispatch failed: {err}")
    if err is not None:
        raise err
    return session.view()


def create_app(
    *,
    inventory: RedisHostInventory | None = None,
    client: AiohttpManagementClient | None = None,
    bootstrap_enabled: bool | None = None,
) -> FastAPI:
    """Wire adapters into the domain; collaborators can be swapped for tests."""
    configure_logger(settings.LOG_LEVEL)

    if inventory is None:
        inventory = RedisHostInventory(settings.REDIS_URL, prefix=settings.INVENTORY_PREFIX)
    if client is None:
        client = AiohttpManagementClient()
    enabled = (not settings.SKIP_BOOTSTRAP) if bootstrap_enabled is None else bootstrap_enabled

    processor = HostBatchProcessor(HostPatternExpander(), HostNameValidator())
    launcher = BootstrapLauncher(
        client,
        client,
        inventory,
        default_java_home=settings.DEFAULT_JAVA_HOME,
        property_timeout=settings.JAVA_HOME_TIMEOUT_SECONDS,
    )
    # single wizard session: only the latest submission is kept
    sessions: dict[str, SubmissionSession] = {}

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await client.close()

    app = FastAPI(title="host-intake", lifespan=lifespan)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/wizard")
    def wizard_state(x_api_key: str | None = Header(default=None)) -> dict:
        _check_api_key(x_api_key)
        return {"hosts": inventory.get_hosts(), "install_options": inventory.get_install_options()}

    @app.post("/hosts/validate")
    async def hosts_validate(payload: InstallOptionsModel, x_api_key: str | None = Header(default=None)) -> dict:
        _check_api_key(x_api_key)
        options = payload.to_options()
        errors = validate_fields(options)
        try:
            batch = processor.process(options.host_names, inventory.snapshot())
        except HostLimitExceededError as e:
            raise HTTPException(status_code=400, detail=str(e)) from None
        return {"errors": asdict(errors), "batch": asdict(batch)}

    @app.post("/submissions")
    async def submission_start(payload: InstallOptionsModel, x_api_key: str | None = Header(default=None)) -> dict:
        _check_api_key(x_api_key)
        if any(s.active for s in sessions.values()):
            raise HTTPException(status_code=409, detail="a submission is already awaiting confirmation")

        bridge = DialogBridge()
        flow = SubmissionDecisionFlow(
            processor, inventory.snapshot(), bridge, launcher, bootstrap_enabled=enabled
        )
        session = SubmissionSession(str(uuid.uuid4()), flow, bridge)
        sessions.clear()
        sessions[session.submission_id] = session

        session.start(payload.to_options())
        await session.settle()
        LOG.info("submission.started", extra={"extra": {"submission_id": session.submission_id}})
        return _session_response(session)

    @app.get("/submissions/{submission_id}")
    async def submission_get(submission_id: str, x_api_key: str | None = Header(default=None)) -> dict:
        _check_api_key(x_api_key)
        session = sessions.get(submission_id)
        if session is None:
            raise HTTPException(status_code=404, detail="submission_id not found")
        return _session_response(session)

    @app.post("/submissions/{submission_id}/dialog")
    async def submission_answer(
        submission_id: str, answer: DialogAnswerModel, x_api_key: str | None = Header(default=None)
    ) -> dict:
        _check_api_key(x_api_key)
        session = sessions.get(submission_id)
        if session is None:
            raise HTTPException(status_code=404, detail="submission_id not found")
        try:
            session.bridge.answer(answer.confirmed)
        except NoPendingDialogError:
            raise HTTPException(status_code=409, detail="no dialog is awaiting an answer") from None
        await session.settle()
        return _session_response(session)

    return app


app = create_app()
