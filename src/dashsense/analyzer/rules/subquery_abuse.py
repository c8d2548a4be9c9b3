"""
Rule: Subquery abuse (Q8)

Every subquery evaluates its inner expression once per step across its
range. Three shapes are flagged, each as its own finding:
- a subquery that contains another subquery (multiplicative cost)
- a step under 1m over a range over 1h
- more than 360 inner evaluations (range / step)

A subquery without an explicit step uses the dashboard's resolution,
which this rule cannot know, so only the nesting check applies to it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule
from dashsense.promql.ast import NodeKind, contains_kind, find_all
from dashsense.promql.durations import format_duration

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext

VALIDATION = "Query Inspector > Stats tab > compare query time before and after"


class SubqueryAbuse(Rule):
    """Detect nested, too-fine or too-long subqueries."""

    rule_id = "Q8"
    version = "1.0.0"
    severity = Severity.HIGH
    description = "Nested subquery, fine step over long range, or range/step ratio over 360"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []
        t = ctx.thresholds

        for panel, _raw, expr in ctx.parsed_targets():
            for sq in find_all(expr, NodeKind.SUBQUERY):
                if contains_kind(sq.expr, NodeKind.SUBQUERY):
                    findings.append(self.finding(
                        title="Nested subquery",
                        panels=[panel],
                        why=(
                            "A subquery is nested inside another subquery. Nested subqueries "
                            "multiply evaluation cost and can overwhelm Prometheus."
                        ),
                        fix="Flatten the subquery or use recording rules to pre-compute intermediate results.",
                        impact="Avoids multiplicative evaluation cost",
                        validation=VALIDATION,
                        confidence=0.95,
                    ))

                step = sq.step_seconds
                if not step or step <= 0:
                    continue
                evaluations = int(sq.range_seconds / step)
                range_text = format_duration(sq.range_seconds)
                step_text = format_duration(step)

                if step < t.subquery_min_step_seconds and sq.range_seconds > t.subquery_long_range_seconds:
                    findings.append(self.finding(
                        title="Subquery with fine step over long range",
                        panels=[panel],
                        why=(
                            f"Subquery has a {step_text} step over a {range_text} range. This "
                            f"produces {evaluations:,} evaluation points, creating excessive load."
                        ),
                        fix=(
                            "Increase the step or reduce the range. Consider using a recording "
                            "rule for long-range aggregations."
                        ),
                        impact="Dramatically reduces the number of inner evaluations",
                        validation=VALIDATION,
                        confidence=0.9,
                    ))

                if evaluations > t.subquery_max_ratio:
                    findings.append(self.finding(
                        title="Subquery with excessive range/step ratio",
                        panels=[panel],
                        why=(
                            f"Subquery range/step ratio is {evaluations:,} (range={range_text}, "
                            f"step={step_text}). Ratios above {t.subquery_max_ratio} cause "
                            "excessive evaluation points."
                        ),
                        fix=(
                            "Increase the step or reduce the range to bring the ratio under "
                            f"{t.subquery_max_ratio}."
                        ),
                        impact="Reduces the number of evaluation points to a manageable level",
                        validation=VALIDATION,
                        confidence=0.85,
                    ))

        return findings
