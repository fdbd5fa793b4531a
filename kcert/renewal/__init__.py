"""Renewal scheduling core.

Submodules:
    policy       -- is_renewal_due: the expiry threshold rule.
    cancellation -- RestartSignal / CancellationToken.
    settings     -- RenewalSettingsStore: runtime-editable renewal settings.
    evaluator    -- IngressEvaluator: checks and renews one ingress.
    scanner      -- ScanExecutor: one pass over all ingresses.
    supervisor   -- RenewalSupervisor: the self-restarting loop.
"""

from kcert.renewal.cancellation import CancellationToken, RestartSignal
from kcert.renewal.evaluator import IngressEvaluator
from kcert.renewal.policy import is_renewal_due
from kcert.renewal.scanner import ScanExecutor
from kcert.renewal.settings import RenewalSettingsStore
from kcert.renewal.supervisor import RenewalSupervisor

__all__ = [
    "CancellationToken",
    "IngressEvaluator",
    "RenewalSettingsStore",
    "RenewalSupervisor",
    "RestartSignal",
    "ScanExecutor",
    "is_renewal_due",
]
