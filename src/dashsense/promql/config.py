"""
Expression parser limits.

Dashboards are user-supplied, so a single pathological expression must
not stall or exhaust the analyzer. A limit breach is reported as a parse
error for that expression only.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ParserLimits(BaseModel):
    """
    Resource limits for parsing one PromQL expression.

    Attributes:
        max_length: Maximum expression length in characters.
        max_depth: Maximum nesting depth (parentheses, calls, aggregations).
        timeout_seconds: Wall-clock budget for parsing a single expression.

    Example:
        # Tighter limits for the HTTP endpoint
        limits = ParserLimits(max_length=4096, timeout_seconds=0.5)
    """

    model_config = ConfigDict(frozen=True)

    max_length: int = Field(
        default=16_384,
        gt=0,
        description="Maximum expression length in characters",
    )

    max_depth: int = Field(
        default=64,
        gt=0,
        description="Maximum nesting depth",
    )

    timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Per-expression parse timeout in seconds",
    )


DEFAULT_LIMITS = ParserLimits()
