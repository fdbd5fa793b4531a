"""HTTP client for the external certificate issuance service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from kcert.errors import IssuanceError
from kcert.models.renewal import RenewalResult

_log = structlog.get_logger(component="issuer.client")


class CertificateIssuer(ABC):
    """Abstract base for anything that can renew an ingress's certificate."""

    @abstractmethod
    async def issue(self, namespace: str, ingress_name: str) -> RenewalResult:
        """Obtain a fresh certificate for the ingress and store it in its secret.

        Returns a RenewalResult describing what the issuance backend reported.
        Raises IssuanceError when the backend cannot be reached or refuses
        the request outright.
        """


class HttpCertificateIssuer(CertificateIssuer):
    """Asks an issuance service to renew via ``POST {endpoint}/renew/{ns}/{name}``.

    The service answers with a JSON body::

        {"success": true, "secret_name": "...", "error": "", "logs": ["..."]}

    A 2xx answer with ``success: false`` is a completed attempt that failed and
    is returned as a RenewalResult so it can be reported. Transport errors and
    non-2xx statuses raise IssuanceError.

    Args:
        endpoint: Base URL of the issuance service. May be empty when auto-renew
                  is off; issuing then raises IssuanceError.
        token:    Optional bearer token.
        timeout:  Request timeout in seconds. ACME challenges are slow, so the
                  default is generous.
    """

    def __init__(self, endpoint: str, token: str = "", timeout: float = 300.0) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._token = token
        self._timeout = timeout

    async def issue(self, namespace: str, ingress_name: str) -> RenewalResult:
        if not self._endpoint:
            raise IssuanceError(namespace, ingress_name, "no issuer endpoint configured")
        url = f"{self._endpoint}/renew/{quote(namespace, safe='')}/{quote(ingress_name, safe='')}"
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, headers=headers)
        except httpx.TimeoutException as exc:
            raise IssuanceError(namespace, ingress_name, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise IssuanceError(namespace, ingress_name, str(exc)) from exc

        if not response.is_success:
            raise IssuanceError(
                namespace,
                ingress_name,
                f"HTTP {response.status_code}: {response.text[:200]}",
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise IssuanceError(namespace, ingress_name, "response body is not JSON") from exc

        result = _parse_result(namespace, ingress_name, body)
        _log.info(
            "issuance_response",
            namespace=namespace,
            ingress=ingress_name,
            success=result.success,
        )
        return result


def _parse_result(namespace: str, ingress_name: str, body: Any) -> RenewalResult:
    if not isinstance(body, dict):
        raise IssuanceError(namespace, ingress_name, "response body is not a JSON object")
    logs = body.get("logs") or []
    return RenewalResult(
        namespace=namespace,
        ingress_name=ingress_name,
        success=bool(body.get("success", False)),
        secret_name=str(body.get("secret_name") or ""),
        error_message=str(body.get("error") or ""),
        logs=[str(line) for line in logs] if isinstance(logs, list) else [str(logs)],
    )
