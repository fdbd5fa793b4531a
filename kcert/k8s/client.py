"""Thin async wrapper over kubernetes-asyncio for ingresses and TLS secrets.

Only the calls the renewal scheduler needs are exposed. API objects are
converted to kcert's own immutable dataclasses at this boundary so nothing
downstream depends on the generated client models.
"""

from __future__ import annotations

from typing import Any

import structlog
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from kcert.models.resources import RoutingResource, TlsSecret

_log = structlog.get_logger(component="k8s.client")

_NOT_FOUND = 404


class K8sClient:
    """Reads ingresses and secrets from the cluster.

    Both API groups share one ApiClient (one connection pool), created on
    first use and released by ``close()``.

    Args:
        networking_api:   NetworkingV1Api instance; created lazily if omitted.
        core_api:         CoreV1Api instance; created lazily if omitted.
        namespace_filter: Restrict ingress enumeration to one namespace.
                          Empty string means all namespaces.
        api_client:       ApiClient backing the lazily created APIs.
    """

    def __init__(
        self,
        networking_api: Any = None,
        core_api: Any = None,
        namespace_filter: str = "",
        api_client: Any = None,
    ) -> None:
        self._networking = networking_api
        self._core = core_api
        self._namespace_filter = namespace_filter
        self._api_client = api_client

    def _shared_api_client(self) -> Any:
        if self._api_client is None:
            self._api_client = k8s_client.ApiClient()
        return self._api_client

    def _networking_api(self) -> Any:
        if self._networking is None:
            self._networking = k8s_client.NetworkingV1Api(self._shared_api_client())
        return self._networking

    def _core_api(self) -> Any:
        if self._core is None:
            self._core = k8s_client.CoreV1Api(self._shared_api_client())
        return self._core

    async def close(self) -> None:
        """Close the shared ApiClient's HTTP session. Safe to call twice."""
        if self._api_client is None:
            return
        api_client, self._api_client = self._api_client, None
        self._networking = None
        self._core = None
        await api_client.close()

    async def list_ingresses(self) -> list[RoutingResource]:
        """Return every ingress visible to the service account."""
        api = self._networking_api()
        if self._namespace_filter:
            response = await api.list_namespaced_ingress(self._namespace_filter)
        else:
            response = await api.list_ingress_for_all_namespaces()
        ingresses = [_to_routing_resource(item) for item in response.items or []]
        _log.debug("ingresses_listed", count=len(ingresses), namespace=self._namespace_filter or "*")
        return ingresses

    async def get_secret(self, namespace: str, name: str) -> TlsSecret | None:
        """Fetch a secret, returning None if it does not exist.

        Any API error other than 404 propagates.
        """
        try:
            secret = await self._core_api().read_namespaced_secret(name, namespace)
        except ApiException as exc:
            if exc.status == _NOT_FOUND:
                return None
            raise
        return TlsSecret(namespace=namespace, name=name, data=dict(secret.data or {}))


def _to_routing_resource(ingress: Any) -> RoutingResource:
    """Convert a V1Ingress into a RoutingResource.

    The first TLS entry that names a secret is the one kcert manages. Hosts
    come from the ingress rules, falling back to the TLS entry's hosts.
    """
    metadata = ingress.metadata
    spec = ingress.spec

    secret_name: str | None = None
    tls_hosts: list[str] = []
    for tls in (spec.tls if spec is not None else None) or []:
        if tls.secret_name:
            secret_name = tls.secret_name
            tls_hosts = list(tls.hosts or [])
            break

    rule_hosts = [rule.host for rule in (spec.rules if spec is not None else None) or [] if rule.host]
    hosts = rule_hosts or tls_hosts

    return RoutingResource(
        namespace=metadata.namespace or "",
        name=metadata.name or "",
        hosts=tuple(hosts),
        secret_name=secret_name,
    )
