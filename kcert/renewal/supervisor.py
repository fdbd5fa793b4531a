"""Self-restarting renewal loop.

The supervisor alternates between two states:

ACTIVE
    A fresh RestartSignal is created and a cycle runs: read settings, scan
    if auto-renew is enabled, then sleep for the configured cadence on the
    signal's token. The cycle repeats until the signal is triggered.

RESTARTING
    The cycle ended because ``request_restart()`` was called (typically
    after a settings change) or because something outside the scan raised.
    The old signal is dropped and the supervisor goes straight back to
    ACTIVE; after an unexpected error it first waits out a short back-off.

``stop()`` moves the supervisor to STOPPED and makes ``run()`` return.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import structlog

from kcert.models.renewal import ScanOutcome, SupervisorState
from kcert.observability.metrics import supervisor_restarts_total
from kcert.renewal.cancellation import CancellationToken, RestartSignal
from kcert.renewal.interfaces import ConfigProvider
from kcert.renewal.scanner import ScanExecutor

_log = structlog.get_logger(component="renewal.supervisor")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class RenewalSupervisor:
    """Drives scan passes on a cadence and restarts on demand.

    Args:
        config:                  Source of the current renewal settings.
        scanner:                 Executes one scan pass.
        restart_backoff_seconds: Delay before restarting after an unexpected
                                 error outside the scan.
        clock:                   Returns the current UTC time.
    """

    def __init__(
        self,
        config: ConfigProvider,
        scanner: ScanExecutor,
        restart_backoff_seconds: float = 30.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._scanner = scanner
        self._restart_backoff = restart_backoff_seconds
        self._clock = clock

        self._signal = RestartSignal()
        self._state = SupervisorState.IDLE
        self._stopping = False
        self._cycles = 0
        self._restarts = 0
        self._next_check_at: datetime | None = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def next_check_at(self) -> datetime | None:
        return self._next_check_at

    @property
    def current_token(self) -> CancellationToken:
        return self._signal.token

    def request_restart(self) -> None:
        """Abandon the current scan or sleep and start a fresh cycle.

        Safe to call at any time from the event loop thread. Calls made while
        a restart is already pending collapse into one.
        """
        if self._state is SupervisorState.STOPPED:
            return
        _log.info("renewal_restart_requested", cycle=self._cycles)
        self._signal.trigger()

    def stop(self) -> None:
        """Make ``run()`` return at its next checkpoint."""
        self._stopping = True
        self._signal.trigger()

    def status(self) -> dict[str, Any]:
        report = self._scanner.last_report
        return {
            "state": self._state.value,
            "cycles": self._cycles,
            "restarts": self._restarts,
            "next_check_at": self._next_check_at,
            "last_scan": report,
        }

    async def run(self) -> None:
        """Run until ``stop()`` is called. Never returns on its own."""
        _log.info("renewal_supervisor_started")
        while not self._stopping:
            self._signal = RestartSignal()
            self._state = SupervisorState.ACTIVE
            self._cycles += 1
            _log.info("renewal_loop_starting", cycle=self._cycles)

            try:
                await self._run_cycle(self._signal.token)
            except Exception as exc:
                self._enter_restarting("error")
                _log.error(
                    "renewal_loop_failed",
                    cycle=self._cycles,
                    error=str(exc),
                    backoff_seconds=self._restart_backoff,
                    exc_info=True,
                )
                await self._signal.token.wait(self._restart_backoff)
                continue

            if self._stopping:
                break
            self._enter_restarting("requested")
            _log.info("renewal_loop_cancelled_restarting", cycle=self._cycles)

        self._state = SupervisorState.STOPPED
        self._next_check_at = None
        _log.info("renewal_supervisor_stopped", cycles=self._cycles)

    def _enter_restarting(self, reason: str) -> None:
        self._state = SupervisorState.RESTARTING
        self._restarts += 1
        self._next_check_at = None
        supervisor_restarts_total.labels(reason=reason).inc()

    async def _run_cycle(self, token: CancellationToken) -> None:
        """Scan and sleep repeatedly until *token* is cancelled."""
        while not token.is_cancelled:
            config = await self._config.get_config()
            if config.enable_auto_renew:
                if token.is_cancelled:
                    return
                report = await self._scanner.run_scan(token)
                if report.outcome is ScanOutcome.CANCELLED:
                    return
            else:
                _log.info("auto_renew_disabled", cycle=self._cycles)

            # Settings may have changed during the scan; the sleep uses the latest.
            config = await self._config.get_config()
            interval = config.check_interval
            self._next_check_at = self._clock() + interval
            _log.info(
                "renewal_loop_sleeping",
                hours=config.hours_between_checks,
                next_check_at=self._next_check_at.isoformat(),
            )
            if await token.wait(interval.total_seconds()):
                return
