"""Admin API route handlers."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from kcert.api.schemas import (
    HealthResponse,
    RenewalSettings,
    RenewalSettingsUpdate,
    RestartResponse,
    ScanSummary,
    StatusResponse,
)
from kcert.models.config import RenewalConfig

_log = structlog.get_logger(component="api.routes")

router = APIRouter()
metrics_router = APIRouter()


def _settings_body(config: RenewalConfig) -> RenewalSettings:
    return RenewalSettings(
        enable_auto_renew=config.enable_auto_renew,
        hours_between_checks=config.hours_between_checks,
        days_to_renewal=config.days_to_renewal,
    )


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    from kcert import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        supervisor_state=request.app.state.supervisor.state.value,
    )


@router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    snapshot = request.app.state.supervisor.status()
    report = snapshot["last_scan"]
    last_scan = None
    if report is not None:
        last_scan = ScanSummary(
            outcome=report.outcome.value,
            started_at=report.started_at,
            finished_at=report.finished_at,
            evaluated=report.evaluated,
            renewed=report.renewed,
            error=report.error,
        )
    return StatusResponse(
        state=snapshot["state"],
        cycles=snapshot["cycles"],
        restarts=snapshot["restarts"],
        next_check_at=snapshot["next_check_at"],
        last_scan=last_scan,
    )


@router.get("/config", response_model=RenewalSettings)
async def get_config(request: Request) -> RenewalSettings:
    return _settings_body(request.app.state.settings.current)


@router.put("/config", response_model=RenewalSettings)
async def update_config(request: Request, body: RenewalSettingsUpdate) -> RenewalSettings:
    """Store new settings and restart the renewal loop so they apply now."""
    updated = request.app.state.settings.update(
        enable_auto_renew=body.enable_auto_renew,
        hours_between_checks=body.hours_between_checks,
        days_to_renewal=body.days_to_renewal,
    )
    request.app.state.supervisor.request_restart()
    return _settings_body(updated)


@router.post("/restart", status_code=202, response_model=RestartResponse)
async def restart(request: Request) -> RestartResponse:
    _log.info("restart_requested_via_api")
    request.app.state.supervisor.request_restart()
    return RestartResponse()


@metrics_router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
