"""
Rule: Auto-refresh interval too frequent (D5)

A dashboard refreshing faster than every 30s keeps querying even while it
sits idle in a background tab. Auto-fixable: the fixer sets "1m".
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule
from dashsense.promql.durations import format_duration, parse_duration

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class RefreshTooFrequent(Rule):
    """Detect a dashboard refresh interval below the floor."""

    rule_id = "D5"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Auto-refresh interval shorter than 30s"
    auto_fixable = True

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        raw = ctx.dashboard.refresh
        if not raw:
            return []
        try:
            seconds = parse_duration(raw)
        except ValueError:
            return []

        floor = ctx.thresholds.min_refresh_seconds
        if seconds >= floor:
            return []

        floor_text = format_duration(floor)
        reduction = (1.0 - seconds / floor) * 100
        return [self.finding(
            title="Auto-refresh interval too frequent",
            why=(
                f"Dashboard refresh is set to {raw}. Intervals below {floor_text} cause continuous "
                "backend query load, especially when many users have the dashboard open."
            ),
            fix=f"Set the dashboard refresh interval to {floor_text} or longer.",
            impact=f"Changing refresh from {raw} to {floor_text} reduces query rate by {reduction:.0f}%",
            validation="Open dashboard settings > verify the refresh interval is updated",
            confidence=1.0,
        )]
