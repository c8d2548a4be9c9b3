"""
Rule: Variable uses full PromQL query (D4)

``label_values(metric, label)`` reads label metadata only. Any other
query-backed variable runs a real query on every load and refresh.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule, truncate

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext

LIGHTWEIGHT_QUERY_RE = re.compile(r"^label_values\s*\(")


class ExpensiveVariableQuery(Rule):
    """Detect query variables that execute a full query instead of label_values()."""

    rule_id = "D4"
    version = "1.0.0"
    severity = Severity.HIGH
    description = "Query variable runs a full query instead of label_values()"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for variable in ctx.variables:
            if variable.type != "query":
                continue
            query = variable.query_string().strip()
            if not query or LIGHTWEIGHT_QUERY_RE.match(query):
                continue

            findings.append(self.finding(
                title="Variable uses full PromQL query",
                why=(
                    f"Variable ${variable.name} uses query {truncate(query, 80)!r} instead of "
                    "label_values(). Full PromQL queries run against Prometheus on every "
                    "variable refresh, causing unnecessary load."
                ),
                fix=f"Rewrite variable ${variable.name} to use label_values(<metric>, <label>) if possible.",
                impact="Replaces a full query execution with a lightweight metadata lookup on each dashboard load",
                validation="Open dashboard > check Network tab for variable query timing",
                confidence=0.9,
            ))

        return findings
