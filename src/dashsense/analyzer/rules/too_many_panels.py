"""
Rule: Too many visible panels (D1)

Every visible panel issues its queries when the dashboard opens. Panels
inside collapsed rows are not visible and are not counted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class TooManyPanels(Rule):
    """Detect dashboards with more visible panels than the limit."""

    rule_id = "D1"
    version = "1.0.0"
    severity = Severity.HIGH
    description = "More than 25 visible panels"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        count = len(ctx.dashboard.visible_panels())
        limit = ctx.thresholds.max_visible_panels
        if count <= limit:
            return []

        return [self.finding(
            title="Too many visible panels",
            why=(
                f"Dashboard has {count} visible panels (threshold: {limit}). Each panel fires "
                "queries on load, causing slow initial render and high backend load."
            ),
            fix=(
                "Group related panels into collapsed rows, or split the dashboard into "
                "multiple focused dashboards."
            ),
            impact=f"Reducing from {count} to {limit} or fewer panels cuts initial query load proportionally",
            validation="Reload dashboard > check browser DevTools Network tab for query count",
            confidence=1.0,
        )]
