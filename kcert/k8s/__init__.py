"""Kubernetes API access for kcert.

Submodules:
    client -- K8sClient: ingress enumeration and TLS secret lookup.
"""

from kcert.k8s.client import K8sClient

__all__ = ["K8sClient"]
