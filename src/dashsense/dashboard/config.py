"""
Dashboard loader configuration with resource limits.

These limits stop oversized or pathological dashboard files before they
reach the typed model. The defaults are generous for real dashboards.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoaderConfig(BaseModel):
    """
    Configuration for the dashboard loader.

    Attributes:
        max_file_size_mb: Maximum input size. Prevents loading huge
            exports into memory.
        max_panels: Maximum number of panels, nested panels included.
    """

    max_file_size_mb: float = Field(
        default=20.0,
        gt=0,
        description="Maximum input size in megabytes",
    )

    max_panels: int = Field(
        default=5_000,
        gt=0,
        description="Maximum number of panels (nested included)",
    )


DEFAULT_CONFIG = LoaderConfig()

# Stricter limits for the HTTP endpoint
STRICT_CONFIG = LoaderConfig(max_file_size_mb=10.0, max_panels=1_000)
