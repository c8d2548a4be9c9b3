"""
Rule: Unbounded regex matcher (Q2)

Regex matchers that start with ``.*``, are a bare ``.+``, or carry an
unanchored ``.*`` in the middle force the regex engine across every value
of the label, with heavy backtracking for the mid-pattern case.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule
from dashsense.promql.ast import METRIC_NAME_LABEL, MatchOp, NodeKind, find_all

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


def unbounded_regex_reason(value: str) -> str | None:
    """Why a regex value is unbounded, or None if it looks fine."""
    if value == ".+":
        return "pattern .+ matches every non-empty label value"
    if value.startswith(".*"):
        return "leading .* causes a full scan of all label values"
    # a trailing .* is harmless, the match is anchored at the start
    trimmed = value[:-2] if value.endswith(".*") else value
    if trimmed.find(".*") > 0:
        return "mid-pattern .* causes expensive backtracking"
    return None


class UnboundedRegex(Rule):
    """Detect =~ matchers whose pattern matches far too broadly."""

    rule_id = "Q2"
    version = "1.0.0"
    severity = Severity.HIGH
    description = "Regex matcher with a leading, bare or mid-pattern wildcard"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel, _raw, expr in ctx.parsed_targets():
            for selector in find_all(expr, NodeKind.VECTOR_SELECTOR):
                for matcher in selector.matchers:
                    if matcher.name == METRIC_NAME_LABEL or matcher.op is not MatchOp.REGEX:
                        continue
                    reason = unbounded_regex_reason(matcher.value)
                    if reason is None:
                        continue

                    findings.append(self.finding(
                        title="Unbounded regex matcher",
                        panels=[panel],
                        why=(
                            f'Label {matcher.name!r} uses regex =~"{matcher.value}": {reason}. '
                            "This can force a full scan of all label values."
                        ),
                        fix=(
                            f"Rewrite the regex for {matcher.name} to be more specific, "
                            "e.g. use a prefix match or equality."
                        ),
                        impact="Reduces label value scanning and regex evaluation overhead significantly",
                        validation="Query Inspector > Stats tab > compare 'Series fetched' before and after",
                        confidence=0.85,
                    ))

        return findings
