"""Collaborator protocols consumed by the renewal core."""

from __future__ import annotations

from typing import Protocol

from kcert.models.config import RenewalConfig
from kcert.models.renewal import RenewalResult
from kcert.models.resources import RoutingResource, TlsSecret


class ConfigProvider(Protocol):
    async def get_config(self) -> RenewalConfig: ...


class IngressSource(Protocol):
    async def list_ingresses(self) -> list[RoutingResource]: ...

    async def get_secret(self, namespace: str, name: str) -> TlsSecret | None: ...


class ResultNotifier(Protocol):
    async def notify(self, result: RenewalResult) -> None: ...
