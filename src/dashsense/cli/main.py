"""
DashSense CLI - Grafana dashboard and PromQL performance analyzer.

Usage:
    dashsense analyze dashboard.json
    dashsense analyze dashboard.json --format json --fail-on high
    dashsense fix dashboard.json --output dashboard.fixed.json
    dashsense rules
    dashsense serve --port 8080
"""

from __future__ import annotations

import logging
from typing import Annotated, Optional

import typer
from rich.console import Console

from dashsense import __version__
from dashsense.cli.commands import analyze, serve

app = typer.Typer(
    name="dashsense",
    help="Static performance analyzer for Grafana dashboards and PromQL",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"DashSense version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Root logging: DEBUG with --verbose, else DASHSENSE_LOG_LEVEL (WARNING)."""
    if verbose:
        level = logging.DEBUG
    else:
        from dashsense.config import get_config

        level = logging.getLevelName(get_config().log_level)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging on stderr."),
    ] = False,
) -> None:
    """DashSense - Grafana dashboard performance analyzer."""
    configure_logging(verbose)


analyze.register(app)
serve.register(app)


if __name__ == "__main__":
    app()
