"""
Rule: Default time range too wide (D6)

A default window over 24h pulls large data volumes into every panel on
every load. Only relative ranges (``now-7d``, ``now-30d/d``) are judged;
absolute timestamps are left alone. Auto-fixable: the fixer sets
``now-1h``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule
from dashsense.promql.durations import format_duration, parse_relative_range

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext


class RangeTooWide(Rule):
    """Detect a default time range wider than the ceiling."""

    rule_id = "D6"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Default time range wider than 24h"
    auto_fixable = True

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        start = ctx.dashboard.time.from_
        if not start:
            return []
        try:
            seconds = parse_relative_range(start)
        except ValueError:
            return []

        ceiling = ctx.thresholds.max_time_range_seconds
        if seconds <= ceiling:
            return []

        span = format_duration(seconds)
        ceiling_text = format_duration(ceiling)
        return [self.finding(
            title="Default time range too wide",
            why=(
                f"Dashboard default time range is {start!r} ({span}). Ranges wider than "
                f"{ceiling_text} pull large data volumes per query, increasing response times "
                "and memory usage."
            ),
            fix=f'Set the default time range to {ceiling_text} or less (e.g. "now-6h" or "now-1h").',
            impact=f"Narrowing from {span} to {ceiling_text} reduces data scanned per query proportionally",
            validation="Open dashboard settings > Time Options > verify the From value",
            confidence=1.0,
        )]
