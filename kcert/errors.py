"""Exception hierarchy for kcert."""

from __future__ import annotations


class KCertError(Exception):
    """Base class for all kcert errors."""


class CertificateParseError(KCertError):
    """Raised when a TLS secret does not hold a parseable certificate."""

    def __init__(self, namespace: str, secret_name: str, reason: str) -> None:
        super().__init__(f"Cannot parse certificate in secret {namespace}/{secret_name}: {reason}")
        self.namespace = namespace
        self.secret_name = secret_name
        self.reason = reason


class IssuanceError(KCertError):
    """Raised when the issuance service cannot be reached or rejects a request."""

    def __init__(self, namespace: str, ingress_name: str, reason: str) -> None:
        super().__init__(f"Certificate issuance failed for {namespace}/{ingress_name}: {reason}")
        self.namespace = namespace
        self.ingress_name = ingress_name
        self.reason = reason


class NotificationError(KCertError):
    """Raised when one or more notification channels failed to deliver."""

    def __init__(self, failed_channels: list[str]) -> None:
        super().__init__(f"Notification delivery failed on: {', '.join(failed_channels)}")
        self.failed_channels = failed_channels


class InvalidSettingsError(KCertError, ValueError):
    """Raised when renewal settings fail validation."""
