"""
Rule: High cardinality TSDB (B6)

More than a million active head series makes every query, compaction and
restart more expensive. Needs measured cardinality; skipped without it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class HighCardinalityTSDB(Rule):
    """Detect a Prometheus head block over the series limit."""

    rule_id = "B6"
    version = "1.0.0"
    severity = Severity.HIGH
    description = "Prometheus head holds more than 1M active series"
    requires_cardinality = True

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        if ctx.cardinality is None:
            return []
        head = ctx.cardinality.head_series_count
        limit = ctx.thresholds.head_series_limit
        if head <= limit:
            return []

        top = sorted(ctx.cardinality.series_by_metric.items(), key=lambda kv: kv[1], reverse=True)[:3]
        fix = (
            "Identify and reduce high-cardinality metrics using the TSDB status API. Common "
            "causes: unbounded label values (request IDs, user IDs), label explosion from "
            "relabeling, unused metrics."
        )
        if top:
            fix += " Largest metrics: " + ", ".join(f"{name} ({count:,})" for name, count in top) + "."

        return [self.finding(
            title="High cardinality TSDB",
            why=(
                f"Prometheus has {head:,} active head series (threshold: {limit:,}). High "
                "cardinality increases memory usage, slows compaction, and makes queries more "
                "expensive."
            ),
            fix=fix,
            impact=(
                f"Reducing head series below {limit:,} significantly improves query performance "
                "and reduces Prometheus memory footprint"
            ),
            validation="Check the prometheus_tsdb_head_series metric after cleanup",
            confidence=0.95,
        )]
