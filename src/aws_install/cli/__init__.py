"""Command line interfaces."""

from .app import create_cli

__all__ = ["create_cli"]
