"""Tests for K8sClient conversion and secret lookup."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from kubernetes_asyncio.client.exceptions import ApiException

from kcert.k8s.client import K8sClient, _to_routing_resource


def _ingress(
    name: str = "web",
    namespace: str = "shop",
    tls: list[SimpleNamespace] | None = None,
    rule_hosts: list[str | None] | None = None,
) -> SimpleNamespace:
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace=namespace),
        spec=SimpleNamespace(
            tls=tls,
            rules=[SimpleNamespace(host=h) for h in (rule_hosts or [])],
        ),
    )


def _tls(secret_name: str | None, hosts: list[str] | None = None) -> SimpleNamespace:
    return SimpleNamespace(secret_name=secret_name, hosts=hosts)


class TestToRoutingResource:
    def test_rule_hosts_and_first_named_tls_secret(self) -> None:
        ingress = _ingress(
            tls=[_tls(None, ["x.example.com"]), _tls("web-tls", ["a.example.com"])],
            rule_hosts=["a.example.com", None, "b.example.com"],
        )
        resource = _to_routing_resource(ingress)
        assert resource.namespace == "shop"
        assert resource.name == "web"
        assert resource.secret_name == "web-tls"
        assert resource.hosts == ("a.example.com", "b.example.com")

    def test_falls_back_to_tls_hosts(self) -> None:
        resource = _to_routing_resource(_ingress(tls=[_tls("web-tls", ["a.example.com"])]))
        assert resource.hosts == ("a.example.com",)

    def test_ingress_without_tls_has_no_secret(self) -> None:
        resource = _to_routing_resource(_ingress(tls=None, rule_hosts=["a.example.com"]))
        assert resource.secret_name is None


class TestK8sClient:
    async def test_lists_all_namespaces_by_default(self) -> None:
        networking = MagicMock()
        networking.list_ingress_for_all_namespaces = AsyncMock(
            return_value=SimpleNamespace(items=[_ingress(name="a"), _ingress(name="b")])
        )
        client = K8sClient(networking_api=networking, core_api=MagicMock())

        ingresses = await client.list_ingresses()

        assert [i.name for i in ingresses] == ["a", "b"]

    async def test_namespace_filter(self) -> None:
        networking = MagicMock()
        networking.list_namespaced_ingress = AsyncMock(return_value=SimpleNamespace(items=[]))
        client = K8sClient(networking_api=networking, core_api=MagicMock(), namespace_filter="shop")

        assert await client.list_ingresses() == []
        networking.list_namespaced_ingress.assert_awaited_once_with("shop")

    async def test_get_secret_returns_data(self) -> None:
        core = MagicMock()
        core.read_namespaced_secret = AsyncMock(return_value=SimpleNamespace(data={"tls.crt": "Zm9v"}))
        client = K8sClient(networking_api=MagicMock(), core_api=core)

        secret = await client.get_secret("shop", "web-tls")

        assert secret is not None
        assert secret.data == {"tls.crt": "Zm9v"}
        core.read_namespaced_secret.assert_awaited_once_with("web-tls", "shop")

    async def test_missing_secret_returns_none(self) -> None:
        core = MagicMock()
        core.read_namespaced_secret = AsyncMock(side_effect=ApiException(status=404, reason="Not Found"))
        client = K8sClient(networking_api=MagicMock(), core_api=core)

        assert await client.get_secret("shop", "web-tls") is None

    async def test_other_api_errors_propagate(self) -> None:
        core = MagicMock()
        core.read_namespaced_secret = AsyncMock(side_effect=ApiException(status=403, reason="Forbidden"))
        client = K8sClient(networking_api=MagicMock(), core_api=core)

        with pytest.raises(ApiException):
            await client.get_secret("shop", "web-tls")


class TestK8sClientConnectionPool:
    async def test_both_apis_share_one_api_client(self) -> None:
        with patch("kcert.k8s.client.k8s_client") as generated:
            client = K8sClient()
            client._networking_api()
            client._core_api()

        generated.ApiClient.assert_called_once_with()
        shared = generated.ApiClient.return_value
        generated.NetworkingV1Api.assert_called_once_with(shared)
        generated.CoreV1Api.assert_called_once_with(shared)

    async def test_close_releases_the_shared_session_once(self) -> None:
        api_client = MagicMock()
        api_client.close = AsyncMock()
        with patch("kcert.k8s.client.k8s_client") as generated:
            client = K8sClient(api_client=api_client)
            client._networking_api()
            client._core_api()

            await client.close()
            await client.close()

        generated.ApiClient.assert_not_called()
        api_client.close.assert_awaited_once()

    async def test_close_before_any_call_is_a_no_op(self) -> None:
        with patch("kcert.k8s.client.k8s_client") as generated:
            await K8sClient().close()

        generated.ApiClient.assert_not_called()
