"""
Rule: Too many distinct datasources (D9)

Each datasource is a separate backend connection on load. Variable
references (``$ds``) and Grafana's pseudo-datasources (Mixed, Dashboard,
the built-in Grafana source) are not counted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext

PSEUDO_DATASOURCES = frozenset({"-- Mixed --", "-- Dashboard --", "-- Grafana --", "grafana"})


class DatasourceMixing(Rule):
    """Detect dashboards spread across too many datasources."""

    rule_id = "D9"
    version = "1.0.0"
    severity = Severity.LOW
    description = "More than two distinct datasources"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        uids = [u for u in ctx.dashboard.all_datasource_uids() if u not in PSEUDO_DATASOURCES]
        limit = ctx.thresholds.max_datasources
        if len(uids) <= limit:
            return []

        return [self.finding(
            title="Too many distinct datasources",
            why=(
                f"Dashboard uses {len(uids)} distinct datasources [{', '.join(uids)}] "
                f"(threshold: {limit}). Each datasource requires a separate connection, "
                "increasing load time and complexity."
            ),
            fix="Split the dashboard by datasource, or consolidate queries to fewer backends.",
            impact=(
                f"Reducing from {len(uids)} to {limit} or fewer datasources simplifies connection "
                "management and may reduce load time"
            ),
            validation="Check dashboard settings and panel datasource configurations",
            confidence=0.8,
        )]
