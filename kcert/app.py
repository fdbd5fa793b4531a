"""Application bootstrap for kcert.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → settings → issuer
              → notifications → renewal supervisor → REST

Shutdown is graceful: the supervisor is stopped first so no new issuance
starts, then background tasks are cancelled and the K8s client is closed.
"""

from __future__ import annotations

import asyncio
import os
import signal
from typing import TYPE_CHECKING

from kcert.config import load_config
from kcert.models.config import KCertConfig
from kcert.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from kcert.issuer.client import CertificateIssuer
    from kcert.k8s.client import K8sClient
    from kcert.notifications.manager import NotificationDispatcher
    from kcert.renewal.settings import RenewalSettingsStore
    from kcert.renewal.supervisor import RenewalSupervisor

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KCertApp:
    """Application root. Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already stopped)
    is safe.
    """

    def __init__(self) -> None:
        self.config: KCertConfig | None = None

        self._k8s: K8sClient | None = None
        self._settings: RenewalSettingsStore | None = None
        self._issuer: CertificateIssuer | None = None
        self._notifications: NotificationDispatcher | None = None
        self._supervisor: RenewalSupervisor | None = None
        self._rest_server: object | None = None

        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        self.config = load_config()

        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("kcert starting", version=_kcert_version())

        await self._start_k8s_client()
        self._start_settings()
        self._start_issuer()
        self._start_notifications()
        self._start_supervisor()
        await self._start_rest()

        self._running = True
        self._log.info("kcert started", port=self.config.api.port)

    async def _start_k8s_client(self) -> None:
        """Initialise the kubernetes-asyncio client from in-cluster config or kubeconfig."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting k8s client")
        try:
            import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

            from kcert.k8s.client import K8sClient

            try:
                # load_incluster_config() is synchronous in kubernetes-asyncio
                k8s_config.load_incluster_config()
                self._log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                self._log.info("k8s client configured from kubeconfig")

            self._k8s = K8sClient(namespace_filter=self.config.kubernetes.namespace_filter)
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    def _start_settings(self) -> None:
        assert self._log is not None
        assert self.config is not None
        from kcert.renewal.settings import RenewalSettingsStore

        try:
            self._settings = RenewalSettingsStore(self.config.renewal)
        except ValueError as exc:
            raise _ComponentError("settings", exc) from exc
        renewal = self._settings.current
        self._log.info(
            "renewal settings loaded",
            enable_auto_renew=renewal.enable_auto_renew,
            hours_between_checks=renewal.hours_between_checks,
            days_to_renewal=renewal.days_to_renewal,
        )

    def _start_issuer(self) -> None:
        assert self._log is not None
        assert self.config is not None
        from kcert.issuer.client import HttpCertificateIssuer

        issuer_cfg = self.config.issuer
        token = os.environ.get(issuer_cfg.token_ref, "") if issuer_cfg.token_ref else ""
        self._issuer = HttpCertificateIssuer(
            endpoint=issuer_cfg.endpoint,
            token=token,
            timeout=float(issuer_cfg.timeout_seconds),
        )
        if issuer_cfg.endpoint:
            self._log.info("issuer configured", endpoint=issuer_cfg.endpoint)
        else:
            self._log.warning("no issuer endpoint configured; due certificates will fail to renew")

    def _start_notifications(self) -> None:
        """Configure notification channels.

        A broken channel definition is logged and dropped; renewals still run.
        """
        assert self._log is not None
        assert self.config is not None
        from kcert.notifications import NotificationDispatcher, build_notification_dispatcher

        try:
            self._notifications = build_notification_dispatcher(self.config.notifications)
            self._log.info("notifications started", channels=self._notifications.channel_names)
        except Exception as exc:
            self._log.warning(
                "notification dispatcher failed to start; renewal results will not be reported",
                error=str(exc),
            )
            self._notifications = NotificationDispatcher(channels=[])

    def _start_supervisor(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self._k8s is not None
        assert self._settings is not None
        assert self._issuer is not None
        assert self._notifications is not None
        from kcert.renewal import IngressEvaluator, RenewalSupervisor, ScanExecutor

        evaluator = IngressEvaluator(
            ingresses=self._k8s,
            config=self._settings,
            issuer=self._issuer,
            notifier=self._notifications,
        )
        scanner = ScanExecutor(ingresses=self._k8s, evaluator=evaluator)
        supervisor = RenewalSupervisor(
            config=self._settings,
            scanner=scanner,
            restart_backoff_seconds=float(self.config.supervisor.restart_backoff_seconds),
        )
        task = asyncio.create_task(supervisor.run(), name="renewal-supervisor")
        self._background_tasks.append(task)
        self._supervisor = supervisor
        self._log.info("renewal supervisor started")

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn

            from kcert.api import create_app

            fastapi_app = create_app(supervisor=self._supervisor, settings=self._settings)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop the supervisor, cancel background tasks and close the K8s client."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("kcert shutting down")
        self._running = False

        if self._supervisor is not None:
            self._supervisor.stop()
        if self._rest_server is not None:
            self._rest_server.should_exit = True  # type: ignore[attr-defined]

        if self._background_tasks:
            _, pending = await asyncio.wait(self._background_tasks, timeout=_SHUTDOWN_GRACE_SECONDS)
            for task in pending:
                log.warning("background task did not stop in time", task=task.get_name())
                task.cancel()
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        await self._stop_k8s_client()
        log.info("kcert stopped")

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes-asyncio ApiClient connection pool."""
        if self._k8s is None:
            return
        log = self._log or get_logger("app")
        try:
            await self._k8s.close()
        except Exception as exc:
            log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self._k8s = None


def _kcert_version() -> str:
    from kcert import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KCertApp()
    loop = asyncio.get_running_loop()
    shutdown = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        await app.start()
        await shutdown.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()


def run() -> None:
    """Console-script entry point (``kcert``)."""
    asyncio.run(main())
