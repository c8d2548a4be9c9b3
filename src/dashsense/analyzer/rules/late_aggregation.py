"""
Rule: Late aggregation over unfiltered selector (Q5)

``sum(rate(http_requests_total[5m]))`` makes Prometheus fetch every
series of the metric before collapsing them. Filtering inside the
aggregation pushes the work down.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import UNKNOWN_METRIC, Rule, is_unscoped, selector_metric_name
from dashsense.promql.ast import Expr, NodeKind, find_all

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


def unscoped_metric(expr: Expr) -> str | None:
    """
    Name of the first unscoped selector inside ``expr``.

    Returns UNKNOWN_METRIC for an unscoped selector without a name, and
    None when every selector is scoped.
    """
    for selector in find_all(expr, NodeKind.VECTOR_SELECTOR):
        if is_unscoped(selector):
            return selector_metric_name(selector) or UNKNOWN_METRIC
    return None


class LateAggregation(Rule):
    """Detect aggregations wrapping selectors with no label matchers."""

    rule_id = "Q5"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Aggregation over a selector that fetches every series first"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel, _raw, expr in ctx.parsed_targets():
            for agg in find_all(expr, NodeKind.AGGREGATE):
                metric = unscoped_metric(agg.expr)
                if metric is None:
                    continue

                measured = ctx.measured_series(metric)
                if measured is None:
                    confidence = 0.75
                    why = (
                        f"An aggregation wraps the metric {metric!r} which has no label filters. "
                        "Prometheus must fetch all series first, then aggregate, wasting memory and I/O."
                    )
                    impact = "Pushes filtering earlier, reducing series fetched by orders of magnitude"
                else:
                    confidence = 0.9
                    why = (
                        f"An aggregation wraps the metric {metric!r} ({measured:,} active series) "
                        f"with no label filters. Prometheus fetches all {measured:,} series first, "
                        "then aggregates, wasting memory and I/O."
                    )
                    impact = (
                        f"Adding filters before aggregation could avoid scanning {measured:,} "
                        "series unnecessarily"
                    )

                findings.append(self.finding(
                    title="Late aggregation over unfiltered selector",
                    panels=[panel],
                    why=why,
                    fix=(
                        f"Add label matchers to {metric} before aggregating, "
                        f'e.g. {metric}{{namespace="..."}}.'
                    ),
                    impact=impact,
                    validation="Query Inspector > Stats tab > compare 'Series fetched' before and after",
                    confidence=confidence,
                ))

        return findings
