"""
Rule: Missing maxDataPoints (D7)

Time-series style panels without maxDataPoints let the datasource return
as many points as the range and step produce. Nested panels in collapsed
rows are checked too. Auto-fixable: the fixer sets 1000.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule
from dashsense.dashboard.models import TIME_SERIES_PANEL_TYPES

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class MissingMaxDataPoints(Rule):
    """Detect time-series panels without a maxDataPoints limit."""

    rule_id = "D7"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Time-series panel without maxDataPoints"
    auto_fixable = True

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel in ctx.dashboard.all_panels():
            if panel.type not in TIME_SERIES_PANEL_TYPES:
                continue
            if panel.max_data_points is not None and panel.max_data_points > 0:
                continue

            findings.append(self.finding(
                title="Missing maxDataPoints",
                panels=[panel],
                why=(
                    f"Panel {panel.title!r} (type: {panel.type}) does not set maxDataPoints. "
                    "Without this limit, the datasource may return unbounded data points for "
                    "wide time ranges, causing slow rendering."
                ),
                fix="Set maxDataPoints in the panel's query options (e.g. 1000 for timeseries panels).",
                impact="Bounds the data returned per query, reducing browser memory and render time",
                validation="Open panel edit > Query Options > verify maxDataPoints is set",
                confidence=0.9,
            ))

        return findings
