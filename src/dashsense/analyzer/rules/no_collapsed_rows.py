"""
Rule: No collapsed rows to defer query execution (D10)

Panels inside a collapsed row do not query until the row is expanded. A
dashboard with five or more real panels and no collapsed top-level row
runs everything up front.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class NoCollapsedRows(Rule):
    """Detect larger dashboards with no collapsed row."""

    rule_id = "D10"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Five or more panels and no collapsed row"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        dashboard = ctx.dashboard
        total = sum(1 for p in dashboard.all_panels() if not p.is_row)
        if total < ctx.thresholds.collapsed_rows_min_panels:
            return []

        rows = [p for p in dashboard.panels if p.is_row]
        if any(row.collapsed for row in rows):
            return []

        if rows:
            why = (
                f"Dashboard has {total} panels with row panels, but none are collapsed. All "
                "panels still fire queries on load because no rows defer execution."
            )
        else:
            why = (
                f"Dashboard has {total} panels but no row panels. Without rows, all panels "
                "fire queries on load."
            )

        return [self.finding(
            title="No collapsed rows to defer query execution",
            why=why,
            fix=(
                "Organize panels into rows and collapse less-frequently viewed sections. "
                "Collapsed rows defer query execution until expanded."
            ),
            impact="Reduces initial query count by the number of panels moved into collapsed rows",
            validation=(
                "Reload dashboard > verify collapsed rows show an expand arrow and don't fire "
                "queries until clicked"
            ),
            confidence=0.8,
        )]
