"""Tests for ScanExecutor failure isolation and cancellation."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

from kcert.errors import IssuanceError
from kcert.models.config import RenewalConfig
from kcert.models.renewal import ScanOutcome
from kcert.renewal.cancellation import RestartSignal
from kcert.renewal.evaluator import IngressEvaluator
from kcert.renewal.scanner import ScanExecutor
from tests.factories import (
    NOW,
    FakeConfigProvider,
    FakeIngressSource,
    fixed_clock,
    make_ingress,
    make_result,
    make_tls_secret,
)


def _due_source(*names: str) -> FakeIngressSource:
    ingresses = [make_ingress(name=n, secret_name=f"{n}-tls") for n in names]
    secrets = {("default", f"{n}-tls"): make_tls_secret(NOW + timedelta(days=5), name=f"{n}-tls") for n in names}
    return FakeIngressSource(ingresses, secrets)


def _make_scanner(source: FakeIngressSource, issuer: AsyncMock) -> ScanExecutor:
    evaluator = IngressEvaluator(
        ingresses=source,
        config=FakeConfigProvider(RenewalConfig(True, 6, 30)),
        issuer=issuer,
        notifier=AsyncMock(),
        clock=fixed_clock,
    )
    return ScanExecutor(ingresses=source, evaluator=evaluator, clock=fixed_clock)


def _issuer(fail_on: set[str] | None = None) -> AsyncMock:
    fail_on = fail_on or set()

    async def _issue(namespace: str, name: str):
        if name in fail_on:
            fail_on.discard(name)
            raise IssuanceError(namespace, name, "HTTP 500")
        return make_result(namespace, name)

    issuer = AsyncMock()
    issuer.issue.side_effect = _issue
    return issuer


def _issued_names(issuer: AsyncMock) -> list[str]:
    return [call.args[1] for call in issuer.issue.await_args_list]


class TestSequentialScan:
    async def test_evaluates_every_ingress_in_order(self) -> None:
        source = _due_source("a", "b", "c")
        issuer = _issuer()
        scanner = _make_scanner(source, issuer)

        report = await scanner.run_scan(RestartSignal().token)

        assert report.outcome is ScanOutcome.COMPLETED
        assert report.evaluated == 3
        assert report.renewed == 3
        assert _issued_names(issuer) == ["a", "b", "c"]
        assert scanner.last_report is report

    async def test_empty_cluster_completes(self) -> None:
        scanner = _make_scanner(FakeIngressSource(), _issuer())
        report = await scanner.run_scan(RestartSignal().token)
        assert report.outcome is ScanOutcome.COMPLETED
        assert report.evaluated == 0

    async def test_skipped_ingresses_do_not_stop_the_scan(self) -> None:
        source = _due_source("a", "c")
        source.ingresses.insert(1, make_ingress(name="b", secret_name=None))
        source.ingresses.insert(2, make_ingress(name="orphan", secret_name="gone-tls"))
        issuer = _issuer()

        report = await _make_scanner(source, issuer).run_scan(RestartSignal().token)

        assert report.outcome is ScanOutcome.COMPLETED
        assert report.evaluated == 4
        assert _issued_names(issuer) == ["a", "c"]


class TestFailureIsolation:
    async def test_failure_stops_remaining_ingresses(self) -> None:
        source = _due_source("a", "b", "c")
        issuer = _issuer(fail_on={"b"})
        scanner = _make_scanner(source, issuer)

        report = await scanner.run_scan(RestartSignal().token)

        assert report.outcome is ScanOutcome.FAILED
        assert "HTTP 500" in report.error
        assert report.evaluated == 1
        assert _issued_names(issuer) == ["a", "b"]

    async def test_next_scan_evaluates_everything_again(self) -> None:
        source = _due_source("a", "b", "c")
        issuer = _issuer(fail_on={"b"})
        scanner = _make_scanner(source, issuer)

        await scanner.run_scan(RestartSignal().token)
        report = await scanner.run_scan(RestartSignal().token)

        assert report.outcome is ScanOutcome.COMPLETED
        assert _issued_names(issuer) == ["a", "b", "a", "b", "c"]

    async def test_enumeration_failure_is_contained(self) -> None:
        source = FakeIngressSource()
        source.list_error = RuntimeError("api server unavailable")

        report = await _make_scanner(source, _issuer()).run_scan(RestartSignal().token)

        assert report.outcome is ScanOutcome.FAILED
        assert report.error == "api server unavailable"


class TestCancellation:
    async def test_cancelled_before_first_ingress(self) -> None:
        source = _due_source("a", "b")
        issuer = _issuer()
        signal = RestartSignal()
        signal.trigger()

        report = await _make_scanner(source, issuer).run_scan(signal.token)

        assert report.outcome is ScanOutcome.CANCELLED
        assert source.secret_lookups == []
        issuer.issue.assert_not_awaited()

    async def test_restart_during_issuance_aborts_the_rest(self) -> None:
        source = _due_source("a", "b", "c")
        signal = RestartSignal()

        async def _issue(namespace: str, name: str):
            signal.trigger()
            return make_result(namespace, name)

        issuer = AsyncMock()
        issuer.issue.side_effect = _issue

        report = await _make_scanner(source, issuer).run_scan(signal.token)

        assert report.outcome is ScanOutcome.CANCELLED
        assert report.renewed == 1
        assert _issued_names(issuer) == ["a"]
