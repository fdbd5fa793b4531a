"""Entry point for `python -m kcert`.

Usage:
    python -m kcert
    uv run python -m kcert
"""

from __future__ import annotations

from kcert.app import run

run()
