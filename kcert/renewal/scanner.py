"""Scan pass over every ingress in the cluster.

A scan evaluates ingresses one at a time in enumeration order. The first
exception ends the pass: it is logged with the ingress that raised it and
the remaining ingresses wait for the next scheduled scan.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from kcert.models.renewal import EvaluationOutcome, ScanOutcome, ScanReport
from kcert.models.resources import RoutingResource
from kcert.observability.metrics import ingresses_evaluated_total, last_scan_timestamp, scans_total
from kcert.renewal.cancellation import CancellationToken
from kcert.renewal.evaluator import IngressEvaluator
from kcert.renewal.interfaces import IngressSource

_log = structlog.get_logger(component="renewal.scanner")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ScanExecutor:
    """Runs scan passes and remembers the report of the most recent one."""

    def __init__(
        self,
        ingresses: IngressSource,
        evaluator: IngressEvaluator,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ingresses = ingresses
        self._evaluator = evaluator
        self._clock = clock
        self._last_report: ScanReport | None = None

    @property
    def last_report(self) -> ScanReport | None:
        return self._last_report

    async def run_scan(self, token: CancellationToken) -> ScanReport:
        """Evaluate every ingress unless cancelled or an evaluation fails.

        Never raises for evaluation errors; the outcome is in the report.
        """
        started_at = self._clock()
        outcome = ScanOutcome.COMPLETED
        evaluated = 0
        renewed = 0
        error = ""
        current: RoutingResource | None = None

        _log.info("renewal_scan_started")
        try:
            for ingress in await self._ingresses.list_ingresses():
                if token.is_cancelled:
                    outcome = ScanOutcome.CANCELLED
                    break
                current = ingress
                result = await self._evaluator.evaluate(ingress, token)
                ingresses_evaluated_total.labels(outcome=result.value).inc()
                if result is EvaluationOutcome.CANCELLED:
                    outcome = ScanOutcome.CANCELLED
                    break
                evaluated += 1
                if result is EvaluationOutcome.RENEWED:
                    renewed += 1
        except Exception as exc:
            outcome = ScanOutcome.FAILED
            error = str(exc)
            _log.error(
                "renewal_scan_failed",
                namespace=current.namespace if current else None,
                ingress=current.name if current else None,
                error=error,
                exc_info=True,
            )

        report = ScanReport(
            outcome=outcome,
            started_at=started_at,
            finished_at=self._clock(),
            evaluated=evaluated,
            renewed=renewed,
            error=error,
        )
        self._last_report = report
        scans_total.labels(outcome=outcome.value).inc()
        last_scan_timestamp.set(report.finished_at.timestamp())

        if outcome is ScanOutcome.COMPLETED:
            _log.info("renewal_scan_completed", evaluated=evaluated, renewed=renewed)
        elif outcome is ScanOutcome.CANCELLED:
            _log.info("renewal_scan_cancelled", evaluated=evaluated, renewed=renewed)
        return report
