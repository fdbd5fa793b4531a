"""Pydantic request/response models for the admin API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from kcert.renewal.settings import MAX_DAYS_TO_RENEWAL, MAX_HOURS_BETWEEN_CHECKS


class ErrorResponse(BaseModel):
    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str
    version: str
    supervisor_state: str


class RenewalSettings(BaseModel):
    enable_auto_renew: bool
    hours_between_checks: int
    days_to_renewal: int


class RenewalSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    enable_auto_renew: bool | None = None
    hours_between_checks: int | None = Field(default=None, ge=1, le=MAX_HOURS_BETWEEN_CHECKS)
    days_to_renewal: int | None = Field(default=None, ge=1, le=MAX_DAYS_TO_RENEWAL)


class ScanSummary(BaseModel):
    outcome: str
    started_at: datetime
    finished_at: datetime
    evaluated: int
    renewed: int
    error: str = ""


class StatusResponse(BaseModel):
    state: str
    cycles: int
    restarts: int
    next_check_at: datetime | None = None
    last_scan: ScanSummary | None = None


class RestartResponse(BaseModel):
    status: str = "restart_requested"
