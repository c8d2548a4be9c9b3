"""
Rule: Missing label filters (Q1)

A selector with no label matchers reads every series of its metric. At
scale that is a full scan across all label combinations on every refresh.

Detection: any vector selector whose only matcher (if any) is __name__.
With cardinality data the finding quotes the measured series count.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule, is_unscoped, selector_metric_name
from dashsense.promql.ast import NodeKind, find_all

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext

VALIDATION = "Query Inspector > Stats tab > check 'Series fetched' before and after"


class MissingLabelFilters(Rule):
    """Detect selectors that select every series of a metric."""

    rule_id = "Q1"
    version = "1.0.0"
    severity = Severity.CRITICAL
    description = "Selector without label matchers scans every series of the metric"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel, _raw, expr in ctx.parsed_targets():
            for selector in find_all(expr, NodeKind.VECTOR_SELECTOR):
                if not is_unscoped(selector):
                    continue

                metric = selector_metric_name(selector) or ""
                measured = ctx.measured_series(metric)

                if measured is None:
                    confidence = 0.9
                    why = (
                        f"Query selects all series for metric {metric!r} without any label "
                        "filters. This forces a full scan across all label combinations."
                    )
                    impact = "Reduces series scanned by ~10-100x depending on cardinality"
                else:
                    confidence = 0.95
                    why = (
                        f"Query selects all {measured:,} series for metric {metric!r} without "
                        "any label filters. This forces a full scan across all label combinations."
                    )
                    impact = (
                        f"This metric has {measured:,} active series; adding filters could "
                        "reduce scans by 10-100x"
                    )

                findings.append(self.finding(
                    title="Missing label filters",
                    panels=[panel],
                    why=why,
                    fix=(
                        "Add label matchers to narrow the selection, e.g. "
                        f'{metric}{{job="...", namespace="..."}}'
                    ),
                    impact=impact,
                    validation=VALIDATION,
                    confidence=confidence,
                ))

        return findings
