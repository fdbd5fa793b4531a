"""Kubernetes-facing data structures: ingresses, TLS secrets and certificates."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime

from cryptography import x509
from cryptography.x509.oid import NameOID

from kcert.errors import CertificateParseError

_CERT_KEY = "tls.crt"


@dataclass(frozen=True)
class RoutingResource:
    """An ingress as seen by the renewal scheduler.

    Read-only here; owned by the Kubernetes API server.
    """

    namespace: str
    name: str
    hosts: tuple[str, ...] = ()
    secret_name: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.namespace} / {self.name} / {','.join(self.hosts)}"


@dataclass(frozen=True)
class Certificate:
    """The parts of an X.509 certificate the expiry policy needs."""

    subject: str
    not_before: datetime
    not_after: datetime
    hosts: tuple[str, ...] = ()


@dataclass(frozen=True)
class TlsSecret:
    """A ``kubernetes.io/tls`` secret with base64-encoded values."""

    namespace: str
    name: str
    data: dict[str, str] = field(default_factory=dict)

    def extract_certificate(self) -> Certificate:
        """Parse the leaf certificate from ``tls.crt``.

        Raises:
            CertificateParseError: the key is missing or not a PEM certificate.
        """
        encoded = self.data.get(_CERT_KEY)
        if not encoded:
            raise CertificateParseError(self.namespace, self.name, f"missing {_CERT_KEY}")
        try:
            pem = base64.b64decode(encoded, validate=True)
            cert = x509.load_pem_x509_certificate(pem)
        except (binascii.Error, ValueError) as exc:
            raise CertificateParseError(self.namespace, self.name, str(exc)) from exc

        return Certificate(
            subject=_common_name(cert),
            not_before=cert.not_valid_before_utc,
            not_after=cert.not_valid_after_utc,
            hosts=_dns_names(cert),
        )


def _common_name(cert: x509.Certificate) -> str:
    attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attrs:
        return ""
    value = attrs[0].value
    return value.decode() if isinstance(value, bytes) else value


def _dns_names(cert: x509.Certificate) -> tuple[str, ...]:
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return ()
    return tuple(san.value.get_values_for_type(x509.DNSName))
