"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta


@dataclass(frozen=True)
class RenewalConfig:
    """Runtime renewal policy.

    Mutable only by replacement: the settings store swaps in a new instance
    and the supervisor reads a fresh snapshot on every loop iteration.
    """

    enable_auto_renew: bool = True
    hours_between_checks: int = 12
    days_to_renewal: int = 30

    @property
    def check_interval(self) -> timedelta:
        return timedelta(hours=self.hours_between_checks)

    @property
    def renewal_threshold(self) -> timedelta:
        return timedelta(days=self.days_to_renewal)


@dataclass
class SupervisorConfig:
    """Renewal supervisor tuning."""

    restart_backoff_seconds: int = 30


@dataclass
class IssuerConfig:
    """Issuance service client configuration."""

    endpoint: str = ""
    timeout_seconds: int = 300
    token_ref: str = ""


@dataclass
class KubernetesConfig:
    """Kubernetes API access configuration."""

    namespace_filter: str = ""


@dataclass
class NotificationConfig:
    """Notification system configuration."""

    email_secret_ref: str = ""
    email_to: str = ""
    webhook_secret_ref: str = ""
    notify_on_success: bool = True


@dataclass
class APIConfig:
    """REST API configuration."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KCertConfig:
    """Top-level kcert configuration."""

    renewal: RenewalConfig = field(default_factory=RenewalConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)
    issuer: IssuerConfig = field(default_factory=IssuerConfig)
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
