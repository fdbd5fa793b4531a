"""kcert — keeps ingress TLS certificates renewed before they expire."""

__version__ = "0.3.0"
