"""
mixsched CLI package.

Exposes the top-level Typer `app` used by the console entrypoint and tests.
"""

from .main import app

__all__ = ["app"]
