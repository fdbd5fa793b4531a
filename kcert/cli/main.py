"""Click commands: run the service, or report certificate expiry without renewing."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import click

from kcert.errors import CertificateParseError
from kcert.renewal.interfaces import IngressSource
from kcert.renewal.policy import is_renewal_due

if TYPE_CHECKING:
    from kcert.k8s.client import K8sClient


@dataclass(frozen=True)
class ExpiryRow:
    namespace: str
    name: str
    hosts: str
    secret: str
    not_after: datetime | None
    status: str


async def collect_expiry(source: IngressSource, threshold: timedelta, now: datetime) -> list[ExpiryRow]:
    """Classify every ingress the way a scan would, without issuing anything.

    Unlike a scan, a malformed certificate is reported and the listing goes on.
    """
    rows: list[ExpiryRow] = []
    for ingress in await source.list_ingresses():
        hosts = ",".join(ingress.hosts)
        if not ingress.secret_name:
            rows.append(ExpiryRow(ingress.namespace, ingress.name, hosts, "-", None, "no-tls"))
            continue
        secret = await source.get_secret(ingress.namespace, ingress.secret_name)
        if secret is None:
            rows.append(ExpiryRow(ingress.namespace, ingress.name, hosts, ingress.secret_name, None, "missing"))
            continue
        try:
            cert = secret.extract_certificate()
        except CertificateParseError:
            rows.append(ExpiryRow(ingress.namespace, ingress.name, hosts, ingress.secret_name, None, "invalid"))
            continue
        status = "due" if is_renewal_due(cert.not_after, now, threshold) else "ok"
        rows.append(ExpiryRow(ingress.namespace, ingress.name, hosts, ingress.secret_name, cert.not_after, status))
    return rows


async def _load_k8s_client(namespace: str) -> K8sClient:
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

    from kcert.k8s.client import K8sClient

    try:
        k8s_config.load_incluster_config()
    except k8s_config.ConfigException:
        await k8s_config.load_kube_config()
    return K8sClient(namespace_filter=namespace)


async def _check(namespace: str, days: int) -> list[ExpiryRow]:
    source = await _load_k8s_client(namespace)
    try:
        return await collect_expiry(source, timedelta(days=days), datetime.now(tz=UTC))
    finally:
        await source.close()


@click.group()
@click.version_option(package_name="kcert")
def cli() -> None:
    """Keep ingress TLS certificates renewed."""


@cli.command()
def run() -> None:
    """Run the renewal service until SIGTERM/SIGINT."""
    from kcert.app import main

    asyncio.run(main())


@cli.command()
@click.option("--days", default=30, show_default=True, type=click.IntRange(1, 365), help="Renewal threshold.")
@click.option("--namespace", "-n", default="", help="Only inspect this namespace.")
@click.option("--output", "-o", type=click.Choice(["table", "json"]), default="table", show_default=True)
def check(days: int, namespace: str, output: str) -> None:
    """Show which ingress certificates are due for renewal. Issues nothing."""
    rows = asyncio.run(_check(namespace, days))

    if output == "json":
        click.echo(
            json.dumps(
                [
                    {
                        "namespace": r.namespace,
                        "name": r.name,
                        "hosts": r.hosts,
                        "secret": r.secret,
                        "not_after": r.not_after.isoformat() if r.not_after else None,
                        "status": r.status,
                    }
                    for r in rows
                ],
                indent=2,
            )
        )
    else:
        click.echo(f"{'NAMESPACE':<20} {'INGRESS':<30} {'NOT AFTER':<20} {'STATUS':<8} HOSTS")
        for r in rows:
            not_after = r.not_after.strftime("%Y-%m-%d %H:%M") if r.not_after else "-"
            click.echo(f"{r.namespace:<20} {r.name:<30} {not_after:<20} {r.status:<8} {r.hosts}")

    if any(r.status == "due" for r in rows):
        raise SystemExit(2)
