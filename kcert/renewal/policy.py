"""Certificate expiry policy."""

from __future__ import annotations

from datetime import datetime, timedelta


def is_renewal_due(not_after: datetime, now: datetime, threshold: timedelta) -> bool:
    """Return True once *now* has reached *threshold* before *not_after*.

    The boundary is inclusive: exactly ``not_after - threshold`` is due.
    """
    return now >= not_after - threshold
