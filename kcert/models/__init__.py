"""Core data structures for kcert."""

from kcert.models.config import KCertConfig, RenewalConfig
from kcert.models.renewal import (
    EvaluationOutcome,
    RenewalResult,
    ScanOutcome,
    ScanReport,
    SupervisorState,
)
from kcert.models.resources import Certificate, RoutingResource, TlsSecret

__all__ = [
    "Certificate",
    "EvaluationOutcome",
    "KCertConfig",
    "RenewalConfig",
    "RenewalResult",
    "RoutingResource",
    "ScanOutcome",
    "ScanReport",
    "SupervisorState",
    "TlsSecret",
]
