"""
Rule: Hardcoded interval in rate function (Q7)

``rate(x[5m])`` keeps a fixed window whatever the dashboard time range or
scrape interval; ``rate(x[$__rate_interval])`` follows the step Grafana
picks. Auto-fixable through the same pattern the fixer rewrites with.

The parse tree cannot tell a literal window from a substituted macro, so
the tree only confirms a rate call exists; the raw string decides.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import INTERVAL_FUNCTIONS, Rule
from dashsense.promql.ast import NodeKind, walk
from dashsense.promql.preprocess import HARDCODED_RANGE_RE, contains_rate_interval_macro

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class HardcodedInterval(Rule):
    """Detect rate/irate/increase with a literal window instead of $__rate_interval."""

    rule_id = "Q7"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Rate function with a literal window instead of $__rate_interval"
    auto_fixable = True

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel, raw, expr in ctx.parsed_targets():
            has_rate_call = any(
                node.kind is NodeKind.CALL and node.func in INTERVAL_FUNCTIONS
                for node in walk(expr)
            )
            if not has_rate_call or contains_rate_interval_macro(raw):
                continue

            match = HARDCODED_RANGE_RE.search(raw)
            if match is None:
                continue
            func = match.group(1).split("(", 1)[0].strip()

            findings.append(self.finding(
                title="Hardcoded interval in rate function",
                panels=[panel],
                why=(
                    f"{func}() uses a hardcoded [{match.group(2)}] window instead of "
                    "$__rate_interval or $__interval. This breaks when the dashboard time "
                    "range or scrape interval changes."
                ),
                fix=(
                    "Replace the hardcoded duration with $__rate_interval, "
                    f"e.g. {func}(metric[$__rate_interval])."
                ),
                impact="Ensures correct per-point calculations regardless of time range or scrape config",
                validation="Change the dashboard time range and verify the panel still renders correctly",
                confidence=0.9,
            ))

        return findings
