"""
Rule: Incorrect aggregation order (Q10)

``rate(sum(x)[5m:])`` applies rate to an aggregated series, which is not
a monotonic counter: every counter reset in any input skews the result.
The right order is ``sum(rate(x[5m]))``.

Two detections, first match wins per target:
1. the raw text ``rate(sum(`` and friends, which also catches the
   invalid ``rate(sum(x)[5m])`` form the parser rejects
2. a rate-like call whose argument is a subquery with an aggregation
   anywhere inside it
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import INTERVAL_FUNCTIONS, Rule
from dashsense.promql.ast import NodeKind, contains_kind, find_all

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext
    from dashsense.dashboard.models import PanelModel

RATE_OVER_AGGREGATION_RE = re.compile(
    r"\b(rate|irate|increase)\s*\(\s*(?:sum|avg|min|max|count)\s*\("
)

IMPACT = "Produces mathematically correct results and often reduces series scanned"
VALIDATION = (
    "Compare the output values: after fixing, the graph shape should be similar "
    "but values will be accurate"
)


class IncorrectAggregation(Rule):
    """Detect rate-like functions applied after an aggregation."""

    rule_id = "Q10"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Rate-like function applied over an aggregation"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel, raw in ctx.raw_targets():
            match = RATE_OVER_AGGREGATION_RE.search(raw)
            if match is not None:
                findings.append(self._textual(panel, match.group(1)))
                continue

            expr = ctx.parsed(raw)
            if expr is None:
                continue
            for call in find_all(expr, NodeKind.CALL):
                if call.func not in INTERVAL_FUNCTIONS:
                    continue
                for arg in call.args:
                    if arg.kind is NodeKind.SUBQUERY and contains_kind(arg.expr, NodeKind.AGGREGATE):
                        findings.append(self._subquery(panel, call.func))

        return findings

    def _textual(self, panel: PanelModel, func: str) -> Finding:
        return self.finding(
            title="Incorrect aggregation order",
            panels=[panel],
            why=(
                f"Expression applies {func}() over an aggregation. Rate-like functions expect "
                "raw counter values, but aggregation output is not a monotonic counter, so "
                "results will be mathematically incorrect."
            ),
            fix=(
                f"Reverse the order: apply {func}() first on the raw metric, then aggregate. "
                f"E.g. sum({func}(metric[5m])) instead of {func}(sum(metric)[5m:])."
            ),
            impact=IMPACT,
            validation=VALIDATION,
            confidence=0.85,
        )

    def _subquery(self, panel: PanelModel, func: str) -> Finding:
        return self.finding(
            title="Incorrect aggregation order",
            panels=[panel],
            why=(
                f"Expression applies {func}() over a subquery containing an aggregation. "
                "Rate-like functions expect raw counter values, but aggregation output is "
                "not a monotonic counter."
            ),
            fix=f"Reverse the order: apply {func}() first on the raw metric, then aggregate.",
            impact=IMPACT,
            validation=VALIDATION,
            confidence=0.8,
        )
