"""Command line interface."""

from organic.cli.main import app

__all__ = ["app"]
