"""Per-ingress renewal evaluation."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from kcert.issuer.client import CertificateIssuer
from kcert.models.renewal import EvaluationOutcome
from kcert.models.resources import RoutingResource
from kcert.observability.metrics import renewals_total
from kcert.renewal.cancellation import CancellationToken
from kcert.renewal.interfaces import ConfigProvider, IngressSource, ResultNotifier
from kcert.renewal.policy import is_renewal_due

_log = structlog.get_logger(component="renewal.evaluator")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class IngressEvaluator:
    """Decides whether one ingress needs a new certificate and, if so, gets one.

    Errors from secret lookup, certificate parsing, issuance and notification
    are not caught here; the scan executor owns failure handling.
    """

    def __init__(
        self,
        ingresses: IngressSource,
        config: ConfigProvider,
        issuer: CertificateIssuer,
        notifier: ResultNotifier,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ingresses = ingresses
        self._config = config
        self._issuer = issuer
        self._notifier = notifier
        self._clock = clock

    async def evaluate(self, ingress: RoutingResource, token: CancellationToken) -> EvaluationOutcome:
        log = _log.bind(namespace=ingress.namespace, ingress=ingress.name, hosts=",".join(ingress.hosts))

        if not ingress.secret_name:
            log.info("ingress_skipped", reason="no tls secret declared")
            return EvaluationOutcome.SKIPPED

        secret = await self._ingresses.get_secret(ingress.namespace, ingress.secret_name)
        if secret is None:
            log.info("ingress_skipped", reason="tls secret not found", secret=ingress.secret_name)
            return EvaluationOutcome.SKIPPED

        cert = secret.extract_certificate()
        config = await self._config.get_config()
        if not is_renewal_due(cert.not_after, self._clock(), config.renewal_threshold):
            log.info("renewal_not_due", not_after=cert.not_after.isoformat())
            return EvaluationOutcome.NOT_DUE

        if token.is_cancelled:
            log.info("renewal_deferred", reason="restart requested")
            return EvaluationOutcome.CANCELLED

        log.info("renewing_certificate", not_after=cert.not_after.isoformat())
        result = await self._issuer.issue(ingress.namespace, ingress.name)
        renewals_total.labels(success="true" if result.success else "false").inc()
        if result.success:
            log.info("certificate_renewed", secret=result.secret_name)
        else:
            log.warning("certificate_renewal_unsuccessful", error=result.error_message)

        await self._notifier.notify(result)
        return EvaluationOutcome.RENEWED
