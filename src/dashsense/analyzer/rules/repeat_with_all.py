"""
Rule: Repeat panel uses variable with Include All (D2)

Repeating a panel over a variable with "Include All" instantiates one
panel per value when All is selected, each running its own queries. A
repeat referencing a variable that does not exist is ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class RepeatWithAll(Rule):
    """Detect repeated panels over an Include All variable."""

    rule_id = "D2"
    version = "1.0.0"
    severity = Severity.CRITICAL
    description = "Panel repeats over a variable with Include All"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []
        variables = {v.name: v for v in ctx.variables}

        for panel in ctx.dashboard.all_panels():
            if not panel.repeat:
                continue
            variable = variables.get(panel.repeat)
            if variable is None or not variable.include_all:
                continue

            findings.append(self.finding(
                title="Repeat panel uses variable with Include All",
                panels=[panel],
                why=(
                    f"Panel {panel.title!r} repeats over variable ${variable.name} which has "
                    "Include All enabled. Selecting All can instantiate hundreds of panel "
                    "copies, each firing its own queries."
                ),
                fix=(
                    f"Disable Include All on variable {variable.name!r}, or remove the repeat "
                    "from this panel and use a multi-value variable filter instead."
                ),
                impact=(
                    "Prevents unbounded panel multiplication that causes query fan-out "
                    "proportional to variable cardinality"
                ),
                validation="Select All on the variable and check that the panel count stays reasonable",
                confidence=1.0,
            ))

        return findings
