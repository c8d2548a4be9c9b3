"""
Rule: Variable cross-product explosion (D3)

With several multi-select, Include All variables, selecting All on each
multiplies the query permutations a dashboard issues. Each variable's
value count is estimated, most precise source first:

1. custom variables: the number of options they enumerate
2. ``label_values(..., label)`` queries: distinct values of that label
   from measured cardinality
3. otherwise a fixed default (100)

The running product is capped to keep the arithmetic bounded.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext
    from dashsense.dashboard.models import VariableModel

LABEL_VALUES_RE = re.compile(
    r"^\s*label_values\s*\((?:.*,)?\s*([A-Za-z_][A-Za-z0-9_]*)\s*\)\s*$",
    re.DOTALL,
)

ALL_OPTION_VALUES = frozenset({"$__all", "All"})


def label_values_target(query: str) -> str | None:
    """Label a ``label_values(...)`` query lists, or None for other queries."""
    match = LABEL_VALUES_RE.match(query)
    return match.group(1) if match else None


def enumerated_values(variable: VariableModel) -> int | None:
    """Option count of a custom variable, excluding the synthetic All option."""
    if variable.type != "custom":
        return None
    values = [
        o for o in variable.options
        if not (isinstance(o.value, str) and o.value in ALL_OPTION_VALUES)
    ]
    if values:
        return len(values)
    query = variable.query_string()
    parts = [p for p in (s.strip() for s in query.split(",")) if p]
    return len(parts) or None


class VariableExplosion(Rule):
    """Detect a combinatorial cross-product of multi-select variables."""

    rule_id = "D3"
    version = "1.1.0"
    severity = Severity.CRITICAL
    description = "Cross-product of multi-select Include All variables exceeds 50"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        t = ctx.thresholds
        explosive = [v for v in ctx.variables if v.multi and v.include_all]
        if not explosive:
            return []

        product = 1
        measured_all = True
        for variable in explosive:
            count, measured = self._estimate(ctx, variable)
            measured_all = measured_all and measured
            product *= max(count, 1)
            if product > t.variable_product_cap:
                product = t.variable_product_cap
                break

        limit = t.max_variable_product
        if product <= limit:
            return []

        names = ", ".join(v.name for v in explosive)
        return [self.finding(
            title="Variable cross-product explosion",
            why=(
                f"Variables [{names}] are all multi-select with Include All. Estimated "
                f"cross-product: {product:,} (threshold: {limit}). Selecting All on each "
                "creates a combinatorial explosion of query permutations."
            ),
            fix=(
                "Disable Include All or Multi on some variables, or add ad-hoc filters "
                "instead of multi-select variables."
            ),
            impact=(
                f"Reducing the cross-product from {product:,} to {limit} or less prevents "
                "combinatorial query fan-out"
            ),
            validation="Select All on all flagged variables and verify query count in browser DevTools",
            confidence=0.9 if measured_all else 0.7,
        )]

    @staticmethod
    def _estimate(ctx: AnalysisContext, variable: VariableModel) -> tuple[int, bool]:
        """(value count, whether it was measured rather than assumed)."""
        enumerated = enumerated_values(variable)
        if enumerated is not None:
            return enumerated, True

        if ctx.cardinality is not None and variable.type == "query":
            label = label_values_target(variable.query_string())
            if label is not None and ctx.cardinality.has_label(label):
                return ctx.cardinality.label_cardinality(label, 0), True

        return ctx.thresholds.default_variable_values, False
