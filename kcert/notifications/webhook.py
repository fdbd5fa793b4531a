"""Generic JSON webhook notification channel.

Posts RenewalResult data as a JSON body to any configured HTTP endpoint.
"""

from __future__ import annotations

import httpx
import structlog

from kcert.models.renewal import RenewalResult
from kcert.notifications.manager import NotificationChannel

_log = structlog.get_logger(component="notifications.webhook")


class WebhookNotificationChannel(NotificationChannel):
    """Delivers renewal results by POSTing a JSON payload to a configurable URL.

    Args:
        url:     Full endpoint URL (must be HTTPS in production).
        headers: Optional extra headers (e.g. Authorization).
        timeout: HTTP request timeout in seconds. Defaults to 10.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        if not url:
            raise ValueError("Webhook url must not be empty")
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout

    @property
    def channel_name(self) -> str:
        return "webhook"

    async def send(self, result: RenewalResult) -> bool:
        """POST *result* as JSON to the configured endpoint.

        Returns True on 2xx response, False otherwise.
        """
        payload = self._build_payload(result)
        request_headers = {
            "Content-Type": "application/json",
            **self._headers,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._url,
                    json=payload,
                    headers=request_headers,
                )
                if response.is_success:
                    return True
                _log.warning(
                    "webhook_non_2xx_response",
                    status_code=response.status_code,
                    body=response.text[:200],
                    ingress=result.ingress_name,
                )
                return False
        except httpx.TimeoutException:
            _log.warning("webhook_request_timeout", ingress=result.ingress_name, url=self._url)
            return False
        except httpx.HTTPError as exc:
            _log.warning("webhook_http_error", error=str(exc), ingress=result.ingress_name)
            return False

    def _build_payload(self, result: RenewalResult) -> dict[str, object]:
        """Serialise *result* to a plain dict for JSON encoding."""
        return {
            "namespace": result.namespace,
            "ingress_name": result.ingress_name,
            "secret_name": result.secret_name,
            "success": result.success,
            "error": result.error_message,
            "logs": result.logs,
            "completed_at": result.completed_at.isoformat(),
        }
