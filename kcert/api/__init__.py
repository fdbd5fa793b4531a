"""kcert admin REST API."""

from kcert.api.app import create_app

__all__ = ["create_app"]
