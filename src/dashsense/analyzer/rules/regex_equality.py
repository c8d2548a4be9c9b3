"""
Rule: Regex matcher where equality suffices (Q3)

``job=~"api"`` pays for regex compilation and matching on every label
lookup; ``job="api"`` selects the same series. Auto-fixable: the fixer
rewrites the operator in the raw expression.

Parsed matcher values are compared with the matchers as written in the
raw expression. A value that came from a template variable is skipped,
and a finding is only marked auto-fixable when the fixer's rewrite will
actually find the matcher in the raw text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule
from dashsense.promql.ast import Matcher, MatchOp, NodeKind, find_all
from dashsense.promql.preprocess import (
    VARIABLE_PLACEHOLDER,
    has_pattern_meta,
    regex_matchers,
    substitute,
)

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


def _from_template_variable(matcher: Matcher, raw_values: list[str], raw: str) -> bool:
    """A multi-value variable like =~"$host" needs the regex once rendered."""
    if not raw_values:
        # Single-quoted and backtick values are not in the raw scan
        return VARIABLE_PLACEHOLDER in matcher.value and "$" in raw
    return any("$" in value and substitute(value) == matcher.value for value in raw_values)


class RegexEquality(Rule):
    """Detect =~ matchers whose value has no regex metacharacters."""

    rule_id = "Q3"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Regex matcher on a literal value where = would do"
    auto_fixable = True

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel, raw, expr in ctx.parsed_targets():
            written = regex_matchers(raw)
            for selector in find_all(expr, NodeKind.VECTOR_SELECTOR):
                for m in selector.matchers:
                    if m.op is not MatchOp.REGEX or has_pattern_meta(m.value):
                        continue
                    raw_values = [value for name, value in written if name == m.name]
                    if _from_template_variable(m, raw_values, raw):
                        continue
                    findings.append(self.finding(
                        title="Regex matcher where equality suffices",
                        panels=[panel],
                        why=(
                            f'Label {m.name!r} uses regex match =~"{m.value}" but the value '
                            "contains no regex metacharacters. Regex matching is slower than equality."
                        ),
                        fix=f'Change {m.name}=~"{m.value}" to {m.name}="{m.value}"',
                        impact="Avoids regex engine overhead on every label lookup",
                        validation="Query Inspector > Stats tab > compare query time before and after",
                        confidence=1.0,
                        auto_fixable=m.value in raw_values,
                    ))

        return findings
