"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kcert.models.config import (
    APIConfig,
    IssuerConfig,
    KCertConfig,
    KubernetesConfig,
    LogConfig,
    NotificationConfig,
    RenewalConfig,
    SupervisorConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KCERT_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_endpoint(value: str) -> str:
    if value and not value.startswith(("http://", "https://")):
        raise ValueError(f"Invalid issuer endpoint: {value}. Must be an http(s) URL")
    return value.rstrip("/")


def load_config() -> KCertConfig:
    """Load configuration from KCERT_* environment variables."""
    return KCertConfig(
        renewal=RenewalConfig(
            enable_auto_renew=_env_bool("ENABLE_AUTO_RENEW", True),
            hours_between_checks=_env_int("HOURS_BETWEEN_CHECKS", 12, min_val=1, max_val=720),
            days_to_renewal=_env_int("DAYS_TO_RENEWAL", 30, min_val=1, max_val=365),
        ),
        supervisor=SupervisorConfig(
            restart_backoff_seconds=_env_int("RESTART_BACKOFF_SECONDS", 30, min_val=1, max_val=3600),
        ),
        issuer=IssuerConfig(
            endpoint=_validate_endpoint(_env("ISSUER_ENDPOINT", "")),
            timeout_seconds=_env_int("ISSUER_TIMEOUT", 300, min_val=10, max_val=1800),
            token_ref=_env("ISSUER_TOKEN_REF", ""),
        ),
        kubernetes=KubernetesConfig(
            namespace_filter=_env("NAMESPACE_FILTER", ""),
        ),
        notifications=NotificationConfig(
            email_secret_ref=_env("NOTIFICATIONS_EMAIL_SECRET_REF", ""),
            email_to=_env("NOTIFICATIONS_EMAIL_TO", ""),
            webhook_secret_ref=_env("NOTIFICATIONS_WEBHOOK_SECRET_REF", ""),
            notify_on_success=_env_bool("NOTIFICATIONS_NOTIFY_ON_SUCCESS", True),
        ),
        api=APIConfig(
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
