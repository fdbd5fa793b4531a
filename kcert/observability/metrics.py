"""Prometheus metrics for the renewal scheduler.

All collectors are registered on the default prometheus_client registry and
exposed by the admin API at ``/metrics``.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

scans_total = Counter(
    "kcert_scans_total",
    "Completed scan passes by outcome.",
    ["outcome"],
)

ingresses_evaluated_total = Counter(
    "kcert_ingresses_evaluated_total",
    "Ingress evaluations by outcome.",
    ["outcome"],
)

renewals_total = Counter(
    "kcert_renewals_total",
    "Certificate issuance attempts by reported success.",
    ["success"],
)

supervisor_restarts_total = Counter(
    "kcert_supervisor_restarts_total",
    "Renewal loop restarts by reason.",
    ["reason"],
)

notifications_total = Counter(
    "kcert_notifications_total",
    "Renewal result notifications by channel and success.",
    ["channel", "success"],
)

last_scan_timestamp = Gauge(
    "kcert_last_scan_timestamp_seconds",
    "Unix timestamp of the most recent scan pass, whatever its outcome.",
)
