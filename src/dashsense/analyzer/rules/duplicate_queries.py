"""
Rule: Duplicate query across panels (D8)

The dashboard-level counterpart of Q9: the same trimmed query text in
more than two panels means one datasource request per copy, where the
Dashboard datasource could share a single result. Unlike Q9 the text is
compared as written, with only surrounding whitespace removed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule, truncate

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext
    from dashsense.dashboard.models import PanelModel


class DuplicateQueries(Rule):
    """Detect the same query text issued by more than two panels."""

    rule_id = "D8"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Same query text issued by more than two panels"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        groups: dict[str, dict[int, PanelModel]] = {}
        for panel in ctx.dashboard.all_panels():
            if panel.is_row:
                continue
            for target in panel.targets:
                query = target.expr.strip()
                if query:
                    groups.setdefault(query, {}).setdefault(panel.id, panel)

        findings: list[Finding] = []
        limit = ctx.thresholds.duplicate_panel_limit

        for query, members in groups.items():
            panels = list(members.values())
            if len(panels) <= limit:
                continue
            titles = ", ".join(p.title for p in panels)
            findings.append(self.finding(
                title="Duplicate query across panels",
                panels=panels,
                why=(
                    f"Query {truncate(query, 80)!r} is used in {len(panels)} panels [{titles}]. "
                    "Each panel fires its own request, causing redundant datasource load."
                ),
                fix=(
                    "Use the Dashboard datasource to share the query result from one panel to "
                    "the others, eliminating duplicate requests."
                ),
                impact=f"Eliminates {len(panels) - 1} redundant query executions per refresh cycle",
                validation="Check the Network tab to confirm only one request is made for the shared query",
                confidence=0.9,
            ))

        return findings
