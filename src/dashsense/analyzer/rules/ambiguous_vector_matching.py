"""
Rule: Binary operation without explicit label matching (Q12)

Between two different metrics, a plain ``a / b`` matches on every label.
Unless both metrics carry exactly the same label set the result is
silently empty or partial. Set operators (and/or/unless) are excluded;
``on(...)`` or a non-empty ``ignoring(...)`` clears the finding.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule, primary_metric_name
from dashsense.promql.ast import SET_OPERATORS, NodeKind, find_all

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class AmbiguousVectorMatching(Rule):
    """Detect binary operations between different metrics with implicit matching."""

    rule_id = "Q12"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Binary operation between different metrics without on()/ignoring()"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel, _raw, expr in ctx.parsed_targets():
            for binary in find_all(expr, NodeKind.BINARY):
                if binary.op in SET_OPERATORS or binary.has_explicit_matching:
                    continue
                left = primary_metric_name(binary.lhs)
                right = primary_metric_name(binary.rhs)
                if not left or not right or left == right:
                    continue

                findings.append(self.finding(
                    title="Binary operation without explicit label matching",
                    panels=[panel],
                    why=(
                        f"Binary {binary.op} between {left!r} and {right!r} without "
                        "on()/ignoring(). Prometheus matches on ALL labels, which may produce "
                        "empty results if the two metrics have different label sets."
                    ),
                    fix=(
                        f"Add explicit matching: ... {binary.op} on(common_labels) ..., "
                        "or use ignoring(differing_labels)."
                    ),
                    impact="Explicit matching prevents silent empty results and makes the query's intent clear",
                    validation="Run the query and verify it returns the expected number of series",
                    confidence=0.7,
                ))

        return findings
