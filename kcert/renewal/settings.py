"""In-memory store for the runtime renewal settings.

Seeded from the environment at startup and replaced through the admin API.
Readers always get an immutable snapshot; a write swaps the snapshot, so a
supervisor iteration that already read the old one keeps a consistent view.
"""

from __future__ import annotations

from dataclasses import replace

import structlog

from kcert.errors import InvalidSettingsError
from kcert.models.config import RenewalConfig

_log = structlog.get_logger(component="renewal.settings")

MAX_HOURS_BETWEEN_CHECKS = 720
MAX_DAYS_TO_RENEWAL = 365


def validate_renewal_config(config: RenewalConfig) -> RenewalConfig:
    """Return *config* unchanged, or raise InvalidSettingsError."""
    if not 1 <= config.hours_between_checks <= MAX_HOURS_BETWEEN_CHECKS:
        raise InvalidSettingsError(
            f"hours_between_checks must be between 1 and {MAX_HOURS_BETWEEN_CHECKS}, "
            f"got {config.hours_between_checks}"
        )
    if not 1 <= config.days_to_renewal <= MAX_DAYS_TO_RENEWAL:
        raise InvalidSettingsError(
            f"days_to_renewal must be between 1 and {MAX_DAYS_TO_RENEWAL}, got {config.days_to_renewal}"
        )
    return config


class RenewalSettingsStore:
    """ConfigProvider backed by a single in-process snapshot."""

    def __init__(self, initial: RenewalConfig | None = None) -> None:
        self._current = validate_renewal_config(initial or RenewalConfig())

    @property
    def current(self) -> RenewalConfig:
        return self._current

    async def get_config(self) -> RenewalConfig:
        return self._current

    def update(
        self,
        *,
        enable_auto_renew: bool | None = None,
        hours_between_checks: int | None = None,
        days_to_renewal: int | None = None,
    ) -> RenewalConfig:
        """Validate and store new settings. Omitted fields keep their value.

        The caller is responsible for asking the supervisor to restart so the
        change takes effect before the current sleep ends.
        """
        changes: dict[str, object] = {}
        if enable_auto_renew is not None:
            changes["enable_auto_renew"] = enable_auto_renew
        if hours_between_checks is not None:
            changes["hours_between_checks"] = hours_between_checks
        if days_to_renewal is not None:
            changes["days_to_renewal"] = days_to_renewal

        updated = validate_renewal_config(replace(self._current, **changes))
        self._current = updated
        _log.info(
            "renewal_settings_updated",
            enable_auto_renew=updated.enable_auto_renew,
            hours_between_checks=updated.hours_between_checks,
            days_to_renewal=updated.days_to_renewal,
        )
        return updated
