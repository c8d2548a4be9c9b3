"""
Stateless analysis endpoints.

POST /api/analyze: analyze a dashboard JSON body
POST /api/fix: analyze, apply auto-fixes, return the patched dashboard
GET /healthz: liveness probe
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from dashsense import __version__
from dashsense.engine import AnalysisService
from dashsense.exceptions import DashboardParseError, FixError
from dashsense.output.renderers import report_to_dict
from dashsense.output.schema import FixResponseSchema
from dashsense.server.settings import ServerSettings

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> AnalysisService:
    return request.app.state.service


def get_settings(request: Request) -> ServerSettings:
    return request.app.state.settings


async def read_dashboard_body(
    request: Request,
    settings: ServerSettings = Depends(get_settings),
) -> bytes:
    """
    Raw request body, bounded by ``settings.max_body_bytes``.

    Raises 413 for oversized bodies and 400 for empty ones.
    """
    limit = settings.max_body_bytes
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Request body exceeds {limit:,} bytes",
        )

    body = await request.body()
    if len(body) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Request body exceeds {limit:,} bytes",
        )
    if not body.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty request body",
        )
    return body


def _parse_error_to_http(exc: DashboardParseError) -> HTTPException:
    if exc.source == "resource_limit":
        code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=exc.to_dict())


@router.get("/healthz", summary="Liveness probe")
async def healthz() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@router.post("/api/analyze", summary="Analyze a dashboard (stateless)")
async def analyze(
    body: bytes = Depends(read_dashboard_body),
    service: AnalysisService = Depends(get_service),
) -> dict[str, Any]:
    """
    Analyze a Grafana dashboard JSON body and return the report.

    The dashboard is not stored. Both bare dashboards and the
    ``{"dashboard": ...}`` envelope of the Grafana HTTP API are accepted.
    """
    try:
        report = await run_in_threadpool(service.analyze, body)
    except DashboardParseError as exc:
        logger.info("Rejected dashboard: %s", exc.message)
        raise _parse_error_to_http(exc) from exc

    return report_to_dict(report)


@router.post("/api/fix", summary="Auto-fix a dashboard (stateless)")
async def fix(
    body: bytes = Depends(read_dashboard_body),
    service: AnalysisService = Depends(get_service),
) -> FixResponseSchema:
    """Analyze a dashboard and return it with every available auto-fix applied."""
    try:
        result = await run_in_threadpool(service.fix, body)
    except DashboardParseError as exc:
        logger.info("Rejected dashboard: %s", exc.message)
        raise _parse_error_to_http(exc) from exc
    except FixError as exc:
        logger.error("Auto-fix failed: %s", exc.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.to_dict(),
        ) from exc

    return FixResponseSchema(fix_count=result.fix_count, dashboard=result.dashboard)
