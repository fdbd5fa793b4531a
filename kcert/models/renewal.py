"""Renewal outcome data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class EvaluationOutcome(StrEnum):
    """What happened when a single ingress was evaluated."""

    SKIPPED = "skipped"
    NOT_DUE = "not_due"
    RENEWED = "renewed"
    CANCELLED = "cancelled"


class ScanOutcome(StrEnum):
    """How a scan pass ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SupervisorState(StrEnum):
    """Renewal supervisor lifecycle state."""

    IDLE = "idle"
    ACTIVE = "active"
    RESTARTING = "restarting"
    STOPPED = "stopped"


@dataclass(frozen=True)
class RenewalResult:
    """Outcome of one issuance attempt.

    Produced by the certificate issuer, consumed by the notification
    dispatcher. Never persisted.
    """

    namespace: str
    ingress_name: str
    success: bool
    secret_name: str = ""
    error_message: str = ""
    logs: list[str] = field(default_factory=list)
    completed_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True)
class ScanReport:
    """Summary of the most recent scan pass, surfaced by the status endpoint."""

    outcome: ScanOutcome
    started_at: datetime
    finished_at: datetime
    evaluated: int = 0
    renewed: int = 0
    error: str = ""
