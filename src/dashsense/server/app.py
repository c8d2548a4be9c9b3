"""
FastAPI application factory for the DashSense HTTP API.

Creates the app with:
- One AnalysisService shared by all requests (stricter loader limits)
- API routes (/api/analyze, /api/fix, /healthz)

Run with:
    uvicorn dashsense.server.app:create_app --factory
    dashsense serve --port 8080
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from dashsense import __version__
from dashsense.dashboard.config import STRICT_CONFIG
from dashsense.engine import AnalysisService
from dashsense.server.api import router
from dashsense.server.settings import ServerSettings, get_server_settings

logger = logging.getLogger(__name__)


def create_app(
    settings: ServerSettings | None = None,
    service: AnalysisService | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (uses env vars if None).
        service: Optional service override, mainly for tests.

    Returns:
        Configured FastAPI app.
    """
    settings = settings or get_server_settings()
    if service is None:
        service = AnalysisService(
            prometheus_url=settings.prometheus_url,
            loader_config=STRICT_CONFIG,
        )

    app = FastAPI(
        title="DashSense",
        description="Static performance analysis for Grafana dashboards and PromQL.",
        version=__version__,
        debug=settings.debug,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.settings = settings
    app.state.service = service

    app.include_router(router)

    logger.info(
        "DashSense API ready (%d rules, enrichment %s)",
        len(service.analyzer.rules),
        "on" if service.analyzer.cardinality_client is not None else "off",
    )
    return app
