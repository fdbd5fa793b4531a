"""Tests for application bootstrap: startup wiring, shutdown order, exit codes.

The cluster connection and the HTTP server are replaced at their import
seams; the settings store, issuer, dispatcher and supervisor are real.
"""

from __future__ import annotations

import asyncio
import os
import signal
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from kubernetes_asyncio.config import ConfigException

from kcert.app import KCertApp, main
from kcert.models.config import IssuerConfig, KCertConfig, KubernetesConfig, RenewalConfig
from kcert.models.renewal import SupervisorState
from tests.factories import FakeIngressSource, wait_until

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


class _FakeServer:
    """Stands in for uvicorn.Server; serves until ``should_exit`` is set."""

    def __init__(self, config: Any) -> None:
        self.config = config
        self.should_exit = False
        self.serving = False

    async def serve(self) -> None:
        self.serving = True
        while not self.should_exit:
            await asyncio.sleep(0.005)


@dataclass
class _Cluster:
    source: FakeIngressSource
    k8s_factory: MagicMock
    servers: list[_FakeServer] = field(default_factory=list)


def _config(endpoint: str = "http://issuer.local", enable_auto_renew: bool = True) -> KCertConfig:
    return KCertConfig(
        renewal=RenewalConfig(enable_auto_renew=enable_auto_renew),
        issuer=IssuerConfig(endpoint=endpoint),
        kubernetes=KubernetesConfig(namespace_filter="shop"),
    )


@pytest.fixture
def cluster() -> Iterator[_Cluster]:
    source = FakeIngressSource()
    k8s_factory = MagicMock(return_value=source)
    state = _Cluster(source=source, k8s_factory=k8s_factory)

    def _server(config: Any) -> _FakeServer:
        server = _FakeServer(config)
        state.servers.append(server)
        return server

    with (
        patch("kcert.app.load_config", return_value=_config()),
        patch("kubernetes_asyncio.config.load_incluster_config"),
        patch("kcert.k8s.client.K8sClient", k8s_factory),
        patch("uvicorn.Server", side_effect=_server),
    ):
        yield state


# ---------------------------------------------------------------------------
# Startup and shutdown
# ---------------------------------------------------------------------------


class TestKCertAppLifecycle:
    async def test_start_wires_supervisor_and_rest(self, cluster: _Cluster) -> None:
        app = KCertApp()
        await app.start()
        try:
            assert app.running
            cluster.k8s_factory.assert_called_once_with(namespace_filter="shop")
            await wait_until(lambda: cluster.source.list_calls == 1)
            await wait_until(lambda: cluster.servers[0].serving)
            assert cluster.servers[0].config.port == 8080
        finally:
            await app.stop()

    async def test_stop_stops_supervisor_and_closes_cluster_client(self, cluster: _Cluster) -> None:
        app = KCertApp()
        await app.start()
        supervisor = app._supervisor
        assert supervisor is not None
        tasks = list(app._background_tasks)

        await app.stop()

        assert not app.running
        assert supervisor.state is SupervisorState.STOPPED
        assert all(task.done() and not task.cancelled() for task in tasks)
        assert cluster.servers[0].should_exit
        assert cluster.source.closed

    async def test_supervisor_stopped_before_cluster_client_closed(self, cluster: _Cluster) -> None:
        app = KCertApp()
        await app.start()
        seen: dict[str, SupervisorState] = {}

        async def _close() -> None:
            assert app._supervisor is not None
            seen["state"] = app._supervisor.state

        cluster.source.close = _close  # type: ignore[method-assign]
        await app.stop()

        assert seen["state"] is SupervisorState.STOPPED

    async def test_starts_without_issuer_endpoint_when_auto_renew_off(self, cluster: _Cluster) -> None:
        app = KCertApp()
        with patch("kcert.app.load_config", return_value=_config(endpoint="", enable_auto_renew=False)):
            await app.start()
        try:
            assert app.running
        finally:
            await app.stop()

    async def test_stop_before_start_is_safe(self) -> None:
        await KCertApp().stop()


# ---------------------------------------------------------------------------
# main(): exit codes and signals
# ---------------------------------------------------------------------------


class TestMain:
    async def test_mandatory_component_failure_exits_1(self, cluster: _Cluster) -> None:
        with (
            patch(
                "kubernetes_asyncio.config.load_incluster_config",
                side_effect=ConfigException("not in cluster"),
            ),
            patch(
                "kubernetes_asyncio.config.load_kube_config",
                AsyncMock(side_effect=ConfigException("no kubeconfig")),
            ),
            pytest.raises(SystemExit) as excinfo,
        ):
            await main()

        assert excinfo.value.code == 1
        assert cluster.servers == []

    async def test_sigterm_shuts_down_gracefully(self, cluster: _Cluster) -> None:
        started: list[KCertApp] = []

        class _TrackedApp(KCertApp):
            async def start(self) -> None:
                await super().start()
                started.append(self)

        with patch("kcert.app.KCertApp", _TrackedApp):
            task = asyncio.create_task(main())
            await wait_until(lambda: bool(started))

            os.kill(os.getpid(), signal.SIGTERM)
            await asyncio.wait_for(task, timeout=5.0)

        app = started[0]
        assert not app.running
        assert app._supervisor is not None
        assert app._supervisor.state is SupervisorState.STOPPED
        assert cluster.source.closed
