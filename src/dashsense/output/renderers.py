"""
Output renderers for different formats.

Separates presentation logic from analysis logic.
Uses schema.py Pydantic models as the single source of truth
for JSON serialization - no manual dict construction.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING, Any

from dashsense.output.schema import (
    FindingSchema,
    MetadataSchema,
    ReportSchema,
    RuleRunSchema,
    SummarySchema,
)

if TYPE_CHECKING:
    from dashsense.analyzer.models import Finding, Report, RuleRun

SCORE_BAR_WIDTH = 20
MAX_PANELS_SHOWN = 5


class OutputFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"


def render(report: "Report", format: OutputFormat = OutputFormat.TEXT) -> str:
    """
    Render a report in the specified format.

    Args:
        report: Report to render
        format: Output format (text, json)

    Returns:
        Formatted string
    """
    if format == OutputFormat.TEXT:
        return render_text(report)
    elif format == OutputFormat.JSON:
        return render_json(report)
    else:
        raise ValueError(f"Unknown output format: {format}")


# =============================================================================
# Schema-based serialization (single source of truth)
# =============================================================================


def report_to_schema(report: "Report") -> ReportSchema:
    """Convert a Report to the Pydantic schema model."""
    summary = report.summary()
    metadata = report.metadata

    return ReportSchema(
        version="1.0",
        dashboard_uid=report.dashboard_uid,
        dashboard_title=report.dashboard_title,
        score=report.score,
        summary=SummarySchema(**summary),
        findings=[_finding_to_schema(f) for f in report.findings],
        panel_scores=dict(report.panel_scores),
        rule_runs=[_rule_run_to_schema(r) for r in metadata.rule_runs],
        metadata=MetadataSchema(
            total_panels=metadata.total_panels,
            total_targets=metadata.total_targets,
            parse_errors=metadata.parse_errors,
            analyzer_version=metadata.analyzer_version,
            cardinality_available=metadata.cardinality_available,
            query_costs=dict(metadata.query_costs),
        ),
    )


def _finding_to_schema(finding: "Finding") -> FindingSchema:
    return FindingSchema(
        rule_id=finding.rule_id,
        severity=finding.severity.value,
        panel_ids=list(finding.panel_ids),
        panel_titles=list(finding.panel_titles),
        title=finding.title,
        why=finding.why,
        fix=finding.fix,
        impact=finding.impact,
        validation=finding.validation,
        auto_fixable=finding.auto_fixable,
        confidence=finding.confidence,
    )


def _rule_run_to_schema(run: "RuleRun") -> RuleRunSchema:
    return RuleRunSchema(
        rule_id=run.rule_id,
        version=run.version,
        status=run.status.value,
        runtime_ms=round(run.runtime_ms, 3),
        findings_count=run.findings_count,
        skip_reason=run.skip_reason,
    )


def report_to_dict(report: "Report") -> dict[str, Any]:
    """Convert a Report to a JSON-ready dictionary via the schema model."""
    return report_to_schema(report).model_dump(mode="json")


# =============================================================================
# Text renderer (terminal)
# =============================================================================


def render_text(report: "Report") -> str:
    """
    Render a report as plain terminal text.

    Findings are grouped by rule id, in the order the rules ran; each group
    shows the first finding's explanation and every affected panel.
    """
    metadata = report.metadata
    lines: list[str] = []

    title = report.dashboard_title or "(untitled)"
    uid = report.dashboard_uid or "no uid"
    lines.append(f"Dashboard: {title} ({uid})")
    lines.append(f"Score:     {score_bar(report.score)}")
    lines.append(
        f"Panels:    {metadata.total_panels}  |  Targets: {metadata.total_targets}  |  "
        f"Parse errors: {metadata.parse_errors}"
    )
    if metadata.cardinality_available:
        lines.append("Cardinality: measured (Prometheus TSDB status)")
    lines.append("─" * 70)

    if not report.findings:
        lines.append("✓ No issues found. Dashboard looks healthy!")
        return "\n".join(lines) + "\n"

    lines.append(f"Found {len(report.findings)} issue(s):")
    lines.append("")

    for rule_id, findings in group_by_rule(report.findings).items():
        first = findings[0]
        count = len(findings)
        occurrences = "occurrence" if count == 1 else "occurrences"
        lines.append(
            f"  {_severity_icon(first.severity)} {rule_id} [{first.title}] ({count} {occurrences})"
        )

        panels = collect_panel_titles(findings)
        if panels:
            lines.append(f"       Panels: {panels}")
        if first.why:
            lines.append(f"       Why:    {first.why}")
        if first.fix:
            lines.append(f"       Fix:    {first.fix}")
        if first.impact:
            lines.append(f"       Impact: {first.impact}")
        if first.auto_fixable:
            lines.append("       Auto-fixable: yes (run `dashsense fix`)")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def score_bar(score: int) -> str:
    """``87/100 [█████████████████░░░] GOOD``"""
    if score >= 80:
        label = "GOOD"
    elif score >= 60:
        label = "FAIR"
    elif score >= 40:
        label = "POOR"
    else:
        label = "CRITICAL"
    filled = max(0, min(SCORE_BAR_WIDTH, score // 5))
    empty = SCORE_BAR_WIDTH - filled
    return f"{score}/100 [{'█' * filled}{'░' * empty}] {label}"


def group_by_rule(findings: Any) -> dict[str, list["Finding"]]:
    grouped: dict[str, list[Finding]] = {}
    for finding in findings:
        grouped.setdefault(finding.rule_id, []).append(finding)
    return grouped


def collect_panel_titles(findings: list["Finding"], limit: int = MAX_PANELS_SHOWN) -> str:
    """Distinct non-empty panel titles, at most ``limit`` then "(+N more)"."""
    seen: dict[str, None] = {}
    for finding in findings:
        for title in finding.panel_titles:
            if title:
                seen.setdefault(title, None)
    titles = list(seen)
    if len(titles) > limit:
        return f"{', '.join(titles[:limit])}, ... (+{len(titles) - limit} more)"
    return ", ".join(titles)


# =============================================================================
# JSON renderer (uses schema models)
# =============================================================================


def render_json(report: "Report", indent: int = 2) -> str:
    """
    Render a report as stable JSON schema.

    Uses Pydantic schema models for guaranteed consistency.
    Suitable for API responses, CI/CD integration, log aggregation.
    """
    return json.dumps(report_to_dict(report), indent=indent, default=str)


# =============================================================================
# Helpers
# =============================================================================


def _severity_icon(severity: Any) -> str:
    """Get icon for severity level."""
    severity_str = severity.value if hasattr(severity, "value") else str(severity)
    return {
        "critical": "🔴",
        "high": "🟠",
        "medium": "🟡",
        "low": "🔵",
    }.get(severity_str, "⚪")
