"""
Data models for the analyzer module.

These models represent the output of analysis rules - the issues detected
in a dashboard. They're designed to be:
- Immutable (frozen=True): Findings don't change after creation
- Serializable: Easy JSON output for --format json and the HTTP API
- Observable: Every rule execution leaves a RuleRun record
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """
    Severity levels for findings, ordered LOW < MEDIUM < HIGH < CRITICAL.

    Each level carries the penalty weight the scorer charges for it.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        return _SEVERITY_WEIGHTS[self]

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_ORDER = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}

_SEVERITY_WEIGHTS = {
    Severity.LOW: 2,
    Severity.MEDIUM: 5,
    Severity.HIGH: 10,
    Severity.CRITICAL: 15,
}


class RuleRunStatus(str, Enum):
    """
    Status of a rule execution.

    PASS: the rule ran (with or without findings).
    SKIP: the rule was switched off or its inputs were absent.
    """

    PASS = "pass"
    SKIP = "skip"


class Finding(BaseModel):
    """
    A single issue detected in a dashboard.

    Attributes:
        rule_id: Stable rule identifier ("Q1", "D5", "B6"), never renumbered.
        severity: How serious the issue is.
        panel_ids: Affected panels; empty for dashboard-level findings.
        panel_titles: Titles of the affected panels, parallel to panel_ids.
        title: Human-readable one-line summary.
        why: Why this is a problem.
        fix: What to change.
        impact: Expected improvement.
        validation: How to verify the fix worked.
        auto_fixable: True if the fixer has a procedure for this rule.
        confidence: 0.0-1.0; higher when measured cardinality backs it.

    Example:
        Finding(
            rule_id="Q1",
            severity=Severity.CRITICAL,
            panel_ids=(3,),
            panel_titles=("Uptime",),
            title="Missing label filters",
            why='Query selects all series for metric "up"...',
            fix='Add label matchers, e.g. up{job="..."}',
            confidence=0.9,
        )
    """

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., min_length=1, description="Stable rule identifier")
    severity: Severity = Field(..., description="Severity level of the finding")
    panel_ids: tuple[int, ...] = Field(
        default_factory=tuple,
        description="Affected panel ids (empty for dashboard-level findings)",
    )
    panel_titles: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Affected panel titles, parallel to panel_ids",
    )
    title: str = Field(..., min_length=1, description="Short summary")
    why: str = Field(default="", description="Why this is a problem")
    fix: str = Field(default="", description="What to change")
    impact: str = Field(default="", description="Expected improvement")
    validation: str = Field(default="", description="How to verify the fix")
    auto_fixable: bool = Field(default=False, description="Fixer can patch this")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0, description="0.0-1.0")

    @property
    def is_dashboard_level(self) -> bool:
        return not self.panel_ids


class RuleRun(BaseModel):
    """Record of a single rule execution."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., description="Rule identifier")
    version: str = Field(..., description="Rule version")
    status: RuleRunStatus = Field(default=RuleRunStatus.PASS, description="Execution status")
    runtime_ms: float = Field(default=0.0, description="Execution time in milliseconds")
    findings_count: int = Field(default=0, description="Number of findings generated")
    skip_reason: str | None = Field(default=None, description="Reason if SKIP")


class ReportMetadata(BaseModel):
    """Supplementary information about one analysis run."""

    model_config = ConfigDict(frozen=True)

    total_panels: int = Field(default=0, description="Panels in the dashboard, rows and nested included")
    total_targets: int = Field(default=0, description="Targets across all panels")
    parse_errors: int = Field(default=0, description="Distinct expressions that failed to parse")
    analyzer_version: str = Field(default="", description="DashSense version")
    cardinality_available: bool = Field(
        default=False,
        description="Whether TSDB cardinality data backed this run",
    )
    query_costs: dict[str, float] = Field(
        default_factory=dict,
        description="Raw expression to relative cost estimate",
    )
    rule_runs: tuple[RuleRun, ...] = Field(
        default_factory=tuple,
        description="One record per rule, in execution order",
    )


class Report(BaseModel):
    """
    Complete result of analyzing one dashboard.

    Created once per run and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    dashboard_uid: str = Field(default="", description="Dashboard uid")
    dashboard_title: str = Field(default="", description="Dashboard title")
    score: int = Field(..., gt=0, le=100, description="Health score in (0, 100]")
    findings: tuple[Finding, ...] = Field(
        default_factory=tuple,
        description="Findings in rule registration order",
    )
    panel_scores: dict[int, int] = Field(
        default_factory=dict,
        description="Per-panel score for every panel named by a finding",
    )
    metadata: ReportMetadata = Field(
        default_factory=ReportMetadata,
        description="Run metadata",
    )

    @property
    def has_critical(self) -> bool:
        return any(f.severity == Severity.CRITICAL for f in self.findings)

    @property
    def auto_fixable_count(self) -> int:
        return sum(1 for f in self.findings if f.auto_fixable)

    def findings_by_severity(self, severity: Severity) -> list[Finding]:
        """Get all findings of a specific severity."""
        return [f for f in self.findings if f.severity == severity]

    def findings_for_rule(self, rule_id: str) -> list[Finding]:
        return [f for f in self.findings if f.rule_id == rule_id]

    def max_severity(self) -> Severity | None:
        """Highest severity among the findings, or None when clean."""
        if not self.findings:
            return None
        return max(f.severity for f in self.findings)

    def summary(self) -> dict[str, int]:
        """Finding counts by severity."""
        return {
            "total": len(self.findings),
            "critical": len(self.findings_by_severity(Severity.CRITICAL)),
            "high": len(self.findings_by_severity(Severity.HIGH)),
            "medium": len(self.findings_by_severity(Severity.MEDIUM)),
            "low": len(self.findings_by_severity(Severity.LOW)),
            "auto_fixable": self.auto_fixable_count,
        }
