"""kcert command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kcert`` script).
"""

from kcert.cli.main import cli

__all__ = ["cli"]
