"""Tests for the certificate expiry policy."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from hypothesis import given
from hypothesis import strategies as st

from kcert.renewal.policy import is_renewal_due

_NOT_AFTER = datetime(2026, 12, 1, 0, 0, 0, tzinfo=UTC)
_THIRTY_DAYS = timedelta(days=30)

_aware_datetimes = st.datetimes(
    min_value=datetime(2000, 1, 1),
    max_value=datetime(2090, 1, 1),
    timezones=st.just(UTC),
)
_thresholds = st.timedeltas(min_value=timedelta(0), max_value=timedelta(days=3650))


class TestBoundary:
    def test_exact_boundary_is_due(self) -> None:
        """now == not_after - threshold is inclusive."""
        assert is_renewal_due(_NOT_AFTER, _NOT_AFTER - _THIRTY_DAYS, _THIRTY_DAYS) is True

    def test_one_second_before_boundary_is_not_due(self) -> None:
        now = _NOT_AFTER - _THIRTY_DAYS - timedelta(seconds=1)
        assert is_renewal_due(_NOT_AFTER, now, _THIRTY_DAYS) is False

    def test_one_second_after_boundary_is_due(self) -> None:
        now = _NOT_AFTER - _THIRTY_DAYS + timedelta(seconds=1)
        assert is_renewal_due(_NOT_AFTER, now, _THIRTY_DAYS) is True

    def test_expired_certificate_is_due(self) -> None:
        assert is_renewal_due(_NOT_AFTER, _NOT_AFTER + timedelta(days=5), _THIRTY_DAYS) is True

    def test_ten_days_left_with_thirty_day_threshold_is_due(self) -> None:
        now = _NOT_AFTER - timedelta(days=10)
        assert is_renewal_due(_NOT_AFTER, now, _THIRTY_DAYS) is True

    def test_zero_threshold_only_due_at_expiry(self) -> None:
        assert is_renewal_due(_NOT_AFTER, _NOT_AFTER - timedelta(seconds=1), timedelta(0)) is False
        assert is_renewal_due(_NOT_AFTER, _NOT_AFTER, timedelta(0)) is True


class TestProperty:
    @given(not_after=_aware_datetimes, now=_aware_datetimes, threshold=_thresholds)
    def test_due_iff_now_reaches_threshold(self, not_after: datetime, now: datetime, threshold: timedelta) -> None:
        assert is_renewal_due(not_after, now, threshold) == (now >= not_after - threshold)

    @given(not_after=_aware_datetimes, threshold=_thresholds, later=st.timedeltas(min_value=timedelta(0)))
    def test_once_due_stays_due(self, not_after: datetime, threshold: timedelta, later: timedelta) -> None:
        """Moving forward in time never makes a due certificate not due."""
        boundary = not_after - threshold
        try:
            now = boundary + later
        except OverflowError:
            return
        assert is_renewal_due(not_after, now, threshold) is True
