"""
Rule: Duplicate expression across panels (Q9)

Expressions are normalized (whitespace stripped) and hashed; a hash
shared by more than two distinct panels is flagged once for the whole
group. Two panels sharing a query is common and usually intentional.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule
from dashsense.promql.preprocess import expression_hash, normalize_expression

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext
    from dashsense.dashboard.models import PanelModel


def group_panels_by_expression(ctx: AnalysisContext) -> dict[str, list[PanelModel]]:
    """
    Distinct panels per normalized-expression hash, in first-seen order.

    A panel using the same expression in several targets counts once.
    """
    groups: dict[str, dict[int, PanelModel]] = {}
    for panel, raw in ctx.raw_targets():
        if not normalize_expression(raw):
            continue
        members = groups.setdefault(expression_hash(raw), {})
        members.setdefault(panel.id, panel)
    return {key: list(members.values()) for key, members in groups.items()}


class DuplicateExpressions(Rule):
    """Detect the same expression evaluated independently by many panels."""

    rule_id = "Q9"
    version = "1.0.0"
    severity = Severity.HIGH
    description = "Same expression evaluated by more than two panels"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []
        limit = ctx.thresholds.duplicate_panel_limit

        for panels in group_panels_by_expression(ctx).values():
            if len(panels) <= limit:
                continue
            titles = ", ".join(p.title for p in panels)
            findings.append(self.finding(
                title="Duplicate expression across panels",
                panels=panels,
                why=(
                    f"The same PromQL expression is used in {len(panels)} panels ({titles}). "
                    "Each copy is evaluated independently, multiplying Prometheus load."
                ),
                fix=(
                    "Use a shared query (Dashboard datasource), a library panel, or a recording "
                    "rule to evaluate the expression once."
                ),
                impact=f"Eliminates {len(panels) - 1} redundant query evaluations per refresh",
                validation="Verify each panel still renders after consolidation",
                confidence=0.95,
            ))

        return findings
