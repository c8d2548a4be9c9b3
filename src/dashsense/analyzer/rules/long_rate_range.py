"""
Rule: Long rate range (Q6)

rate/irate/increase/delta/idelta over a window longer than 10 minutes
reads and iterates many more samples per series at every step.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import RATE_FUNCTIONS, Rule
from dashsense.promql.ast import NodeKind, find_all
from dashsense.promql.durations import format_duration

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class LongRateRange(Rule):
    """Detect rate-family calls with an excessive range window."""

    rule_id = "Q6"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Rate-family function over a window longer than 10m"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []
        limit = ctx.thresholds.max_rate_range_seconds

        for panel, _raw, expr in ctx.parsed_targets():
            for call in find_all(expr, NodeKind.CALL):
                if call.func not in RATE_FUNCTIONS or not call.args:
                    continue
                arg = call.args[0]
                if arg.kind is not NodeKind.MATRIX_SELECTOR or arg.range_seconds <= limit:
                    continue

                window = format_duration(arg.range_seconds)
                findings.append(self.finding(
                    title="Long rate range",
                    panels=[panel],
                    why=(
                        f"{call.func}() uses a {window} range window. Windows longer than "
                        f"{format_duration(limit)} force Prometheus to scan many more samples per series."
                    ),
                    fix=(
                        "Reduce the range to match the scrape interval or use $__rate_interval. "
                        f"E.g. {call.func}(metric[5m])."
                    ),
                    impact="Reduces the number of samples processed per evaluation, lowering CPU and memory",
                    validation="Query Inspector > Stats tab > compare query time before and after",
                    confidence=0.8,
                ))

        return findings
