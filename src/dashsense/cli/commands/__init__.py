"""CLI command groups, each exposing register(app)."""

from dashsense.cli.commands import analyze, serve

__all__ = ["analyze", "serve"]
