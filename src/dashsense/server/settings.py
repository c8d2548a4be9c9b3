"""
HTTP server settings.

Settings are loaded from environment variables with the DASHSENSE_SERVER_
prefix (consistent with the core DASHSENSE_ prefix).

Examples:
    DASHSENSE_SERVER_HOST=0.0.0.0
    DASHSENSE_SERVER_PORT=8080
    DASHSENSE_SERVER_MAX_BODY_BYTES=5242880
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_ENV_PREFIX = "DASHSENSE_SERVER_"


class ServerSettings(BaseModel):
    """Configuration for the DashSense HTTP API."""

    # ── Server ──────────────────────────────────────────────────────────
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # ── Limits ──────────────────────────────────────────────────────────
    max_body_bytes: int = Field(
        default=10 * 1024 * 1024, gt=0, description="Max dashboard JSON size (10 MB)"
    )

    # ── Enrichment ──────────────────────────────────────────────────────
    prometheus_url: str | None = Field(
        default=None,
        description="Overrides DASHSENSE_PROMETHEUS_URL for the server",
    )


def get_server_settings() -> ServerSettings:
    """Load server settings from DASHSENSE_SERVER_<FIELD> variables."""
    overrides: dict[str, str] = {}
    for field_name in ServerSettings.model_fields:
        key = f"{_ENV_PREFIX}{field_name.upper()}"
        if key in os.environ:
            overrides[field_name] = os.environ[key]

    return ServerSettings(**overrides)  # type: ignore[arg-type]
