"""Certificate issuance clients.

The ACME exchange itself lives in an external issuance service; kcert only
asks it to renew a given ingress and reports what came back.
"""

from kcert.issuer.client import CertificateIssuer, HttpCertificateIssuer

__all__ = ["CertificateIssuer", "HttpCertificateIssuer"]
