"""
JSON Schema definitions for stable API output.

Provides versioned schema for:
- `dashsense analyze --format json`
- HTTP API responses
- CI/CD integration

The schema is stable across minor versions.
Breaking changes only in major versions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FindingSchema(BaseModel):
    """Schema for a single finding."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., description="Stable rule identifier")
    severity: str = Field(..., description="Severity level (low/medium/high/critical)")
    panel_ids: list[int] = Field(default_factory=list, description="Affected panel ids")
    panel_titles: list[str] = Field(default_factory=list, description="Affected panel titles")
    title: str = Field(..., description="One-line summary")
    why: str = Field("", description="Why this is a problem")
    fix: str = Field("", description="What to change")
    impact: str = Field("", description="Expected improvement")
    validation: str = Field("", description="How to verify the fix")
    auto_fixable: bool = Field(False, description="Whether `dashsense fix` patches this")
    confidence: float = Field(1.0, description="Confidence 0.0-1.0")


class RuleRunSchema(BaseModel):
    """Schema for rule execution record."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., description="Rule identifier")
    version: str = Field(..., description="Rule version")
    status: str = Field(..., description="Execution status (pass/skip)")
    runtime_ms: float = Field(0.0, description="Execution time in milliseconds")
    findings_count: int = Field(0, description="Number of findings generated")
    skip_reason: str | None = Field(None, description="Reason if skipped")


class MetadataSchema(BaseModel):
    """Schema for run metadata."""

    model_config = ConfigDict(frozen=True)

    total_panels: int = Field(0, description="Panels in the dashboard, rows and nested included")
    total_targets: int = Field(0, description="Targets across all panels")
    parse_errors: int = Field(0, description="Expressions that failed to parse")
    analyzer_version: str = Field("", description="DashSense version")
    cardinality_available: bool = Field(False, description="Whether TSDB data backed the run")
    query_costs: dict[str, float] = Field(
        default_factory=dict, description="Relative cost per raw expression"
    )


class SummarySchema(BaseModel):
    """Schema for result summary."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(0, description="Total findings count")
    critical: int = Field(0, description="Critical findings count")
    high: int = Field(0, description="High findings count")
    medium: int = Field(0, description="Medium findings count")
    low: int = Field(0, description="Low findings count")
    auto_fixable: int = Field(0, description="Findings the fixer can patch")


class ReportSchema(BaseModel):
    """
    Top-level schema for a dashboard report.

    This schema is stable across minor versions.
    Breaking changes require major version bump.
    """

    model_config = ConfigDict(frozen=True)

    version: str = Field("1.0", description="Schema version")
    dashboard_uid: str = Field("", description="Dashboard uid")
    dashboard_title: str = Field("", description="Dashboard title")
    score: int = Field(..., description="Health score in (0, 100]")
    summary: SummarySchema = Field(..., description="Finding counts")
    findings: list[FindingSchema] = Field(default_factory=list, description="All findings")
    panel_scores: dict[int, int] = Field(default_factory=dict, description="Per-panel scores")
    rule_runs: list[RuleRunSchema] = Field(default_factory=list, description="Rule execution records")
    metadata: MetadataSchema = Field(..., description="Run metadata")


class FixResponseSchema(BaseModel):
    """Schema for the auto-fix response."""

    model_config = ConfigDict(frozen=True)

    fix_count: int = Field(0, description="Findings acted on")
    dashboard: dict[str, Any] = Field(..., description="Patched dashboard JSON")


def get_json_schema() -> dict[str, Any]:
    """JSON Schema of ReportSchema, for API documentation."""
    return ReportSchema.model_json_schema()


# Schema version - increment on breaking changes
SCHEMA_VERSION = "1.0"
