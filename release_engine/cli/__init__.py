"""CLI package for release-engine"""

from .main import cli, main

__all__ = ["cli", "main"]
