"""HTTP API command: serve."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console

from dashsense.server.settings import get_server_settings

console = Console()


def register(app: typer.Typer) -> None:
    """Register the serve command on the given Typer app."""

    @app.command()
    def serve(
        host: Annotated[
            Optional[str],
            typer.Option("--host", help="Bind address (default: 127.0.0.1)"),
        ] = None,
        port: Annotated[
            Optional[int],
            typer.Option("--port", "-p", help="Bind port (default: 8000)"),
        ] = None,
        prometheus_url: Annotated[
            Optional[str],
            typer.Option("--prometheus-url", help="Prometheus base URL for measured cardinality"),
        ] = None,
    ) -> None:
        """
        Start the DashSense HTTP API.

        Endpoints: POST /api/analyze, POST /api/fix, GET /healthz.

        Examples:

            $ dashsense serve --port 8080
            $ curl -X POST --data-binary @api.json localhost:8080/api/analyze
        """
        import uvicorn

        from dashsense.server.app import create_app

        updates: dict[str, object] = {}
        if host is not None:
            updates["host"] = host
        if port is not None:
            updates["port"] = port
        if prometheus_url is not None:
            updates["prometheus_url"] = prometheus_url
        settings = get_server_settings().model_copy(update=updates)

        console.print(f"Starting DashSense API on http://{settings.host}:{settings.port}")
        console.print(f"  API docs: http://{settings.host}:{settings.port}/api/docs")

        uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
