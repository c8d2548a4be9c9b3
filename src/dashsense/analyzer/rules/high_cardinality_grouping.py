"""
Rule: High-cardinality grouping (Q4)

Two independent checks on every aggregation:
- more grouping labels than the configured limit (default 3)
- each grouping label from the known high-cardinality set (pod,
  container, instance, ...), one finding per label

Only ``by`` grouping counts; ``without`` drops labels rather than keeping
them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule
from dashsense.promql.ast import NodeKind, find_all

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext

VALIDATION = "Query Inspector > Stats tab > check result series count before and after"


class HighCardinalityGrouping(Rule):
    """Detect aggregations grouping by too many or too explosive labels."""

    rule_id = "Q4"
    version = "1.0.0"
    severity = Severity.HIGH
    description = "Aggregation grouped by too many or high-cardinality labels"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []
        limit = ctx.thresholds.max_grouping_labels
        risky = set(ctx.thresholds.high_cardinality_labels)

        for panel, _raw, expr in ctx.parsed_targets():
            for agg in find_all(expr, NodeKind.AGGREGATE):
                if agg.without:
                    continue
                grouping = agg.grouping

                if len(grouping) > limit:
                    findings.append(self.finding(
                        title="High-cardinality grouping",
                        panels=[panel],
                        why=(
                            f"Aggregation groups by {len(grouping)} labels ({', '.join(grouping)}). "
                            f"More than {limit} grouping labels often produces an explosion of "
                            "output series."
                        ),
                        fix="Reduce the number of grouping labels to only those needed for the visualization.",
                        impact="Fewer output series reduces memory, network, and rendering cost",
                        validation=VALIDATION,
                        confidence=0.8,
                    ))

                for label in grouping:
                    if label not in risky:
                        continue
                    values = self._measured_values(ctx, label)
                    why = (
                        f"Aggregation groups by {label!r}, which is typically a very "
                        "high-cardinality label. This can produce thousands of output series."
                    )
                    if values is not None:
                        why = (
                            f"Aggregation groups by {label!r}, which has {values:,} distinct "
                            "values. Every value becomes its own output series."
                        )
                    findings.append(self.finding(
                        title="High-cardinality grouping label",
                        panels=[panel],
                        why=why,
                        fix=(
                            f"Remove {label!r} from the group-by clause or replace it with a "
                            "lower-cardinality label (e.g. namespace, job)."
                        ),
                        impact="Dramatically reduces the number of output series",
                        validation=VALIDATION,
                        confidence=0.85,
                    ))

        return findings

    @staticmethod
    def _measured_values(ctx: AnalysisContext, label: str) -> int | None:
        if ctx.cardinality is None or not ctx.cardinality.has_label(label):
            return None
        return ctx.cardinality.label_cardinality(label, 0)
