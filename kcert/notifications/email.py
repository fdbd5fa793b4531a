"""Email notification channel for renewal results.

Sends RenewalResult instances as HTML emails via SMTP using the Python
standard-library ``smtplib`` executed in a thread-pool executor so the
asyncio event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import html
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import structlog

from kcert.models.renewal import RenewalResult
from kcert.notifications.manager import NotificationChannel

_log = structlog.get_logger(component="notifications.email")

_SUCCESS_COLOR = "#2e7d32"
_FAILURE_COLOR = "#b71c1c"


class SMTPConfig:
    """SMTP connection parameters.

    Args:
        host:       SMTP server hostname.
        port:       SMTP server port (587 for STARTTLS, 465 for SSL).
        username:   SMTP authentication username.
        password:   SMTP authentication password.
        use_tls:    If True, use SMTP_SSL (port 465). Defaults to False
                    (STARTTLS on port 587).
        from_addr:  Sender email address.
        timeout:    Socket timeout in seconds. Defaults to 10.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_addr: str,
        use_tls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        if not host:
            raise ValueError("SMTP host must not be empty")
        if not from_addr:
            raise ValueError("SMTP from_addr must not be empty")
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_addr = from_addr
        self.use_tls = use_tls
        self.timeout = timeout


class EmailNotificationChannel(NotificationChannel):
    """Delivers renewal results as HTML emails via SMTP.

    Args:
        smtp_config: Connection and authentication parameters.
        to_addr:     Recipient email address.
    """

    def __init__(self, smtp_config: SMTPConfig, to_addr: str) -> None:
        if not to_addr:
            raise ValueError("Email to_addr must not be empty")
        self._smtp = smtp_config
        self._to_addr = to_addr

    @property
    def channel_name(self) -> str:
        return "email"

    async def send(self, result: RenewalResult) -> bool:
        """Send *result* as an HTML email.

        Returns True on successful delivery, False otherwise.
        """
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._send_sync, result)
            return True
        except smtplib.SMTPException as exc:
            _log.warning("email_smtp_error", error=str(exc), ingress=result.ingress_name)
            return False
        except OSError as exc:
            _log.warning("email_connection_error", error=str(exc), ingress=result.ingress_name)
            return False

    def _send_sync(self, result: RenewalResult) -> None:
        """Blocking SMTP delivery; runs inside a thread executor."""
        msg = self._build_message(result)
        context = ssl.create_default_context()

        if self._smtp.use_tls:
            with smtplib.SMTP_SSL(
                self._smtp.host,
                self._smtp.port,
                context=context,
                timeout=self._smtp.timeout,
            ) as server:
                if self._smtp.username:
                    server.login(self._smtp.username, self._smtp.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(
                self._smtp.host,
                self._smtp.port,
                timeout=self._smtp.timeout,
            ) as server:
                server.ehlo()
                server.starttls(context=context)
                server.ehlo()
                if self._smtp.username:
                    server.login(self._smtp.username, self._smtp.password)
                server.send_message(msg)

    def _build_message(self, result: RenewalResult) -> MIMEMultipart:
        """Construct a MIME multipart email with a plain-text and HTML part."""
        status = "renewed" if result.success else "renewal FAILED"
        subject = f"[kcert] {result.namespace}/{result.ingress_name}: certificate {status}"

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._smtp.from_addr
        msg["To"] = self._to_addr

        msg.attach(MIMEText(self._build_plain(result, status), "plain", "utf-8"))
        msg.attach(MIMEText(self._build_html(result, status), "html", "utf-8"))
        return msg

    def _build_plain(self, result: RenewalResult, status: str) -> str:
        completed_at = result.completed_at.strftime("%Y-%m-%d %H:%M:%S UTC")
        lines = [
            "kcert renewal result",
            "=" * 60,
            "",
            f"Status:     {status}",
            f"Ingress:    {result.namespace}/{result.ingress_name}",
            f"Secret:     {result.secret_name or '-'}",
            f"Completed:  {completed_at}",
        ]
        if result.error_message:
            lines.append(f"Error:      {result.error_message}")
        if result.logs:
            lines += ["", "Log", "-" * 60, *result.logs]
        return "\n".join(lines) + "\n"

    def _build_html(self, result: RenewalResult, status: str) -> str:
        color = _SUCCESS_COLOR if result.success else _FAILURE_COLOR
        completed_at = result.completed_at.strftime("%Y-%m-%d %H:%M:%S UTC")
        error_row = ""
        if result.error_message:
            error_row = (
                '<tr><td style="color: #757575;"><strong>Error</strong></td>'
                f"<td>{html.escape(result.error_message)}</td></tr>"
            )
        log_block = ""
        if result.logs:
            log_block = (
                '<h2 style="font-size: 15px; color: #424242; margin: 0 0 8px;">Log</h2>'
                '<pre style="background: #f5f5f5; padding: 12px; font-size: 12px;">'
                f"{html.escape(chr(10).join(result.logs))}</pre>"
            )
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>kcert renewal result</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
             background: #f5f5f5; margin: 0; padding: 24px;">
  <table width="600" cellpadding="0" cellspacing="0"
         style="background: #ffffff; border-radius: 8px; margin: 0 auto;">
    <tr>
      <td style="background: {color}; padding: 20px 28px; border-radius: 8px 8px 0 0;">
        <h1 style="color: #ffffff; margin: 0; font-size: 20px;">Certificate {status}</h1>
      </td>
    </tr>
    <tr>
      <td style="padding: 24px 28px;">
        <table width="100%" cellpadding="6" cellspacing="0"
               style="border-collapse: collapse; margin-bottom: 20px;">
          <tr>
            <td style="color: #757575; width: 120px;"><strong>Ingress</strong></td>
            <td style="font-family: monospace;">{html.escape(result.namespace)}/{html.escape(result.ingress_name)}</td>
          </tr>
          <tr>
            <td style="color: #757575;"><strong>Secret</strong></td>
            <td style="font-family: monospace;">{html.escape(result.secret_name or "-")}</td>
          </tr>
          <tr>
            <td style="color: #757575;"><strong>Completed</strong></td>
            <td>{completed_at}</td>
          </tr>
          {error_row}
        </table>
        {log_block}
      </td>
    </tr>
  </table>
</body>
</html>"""
