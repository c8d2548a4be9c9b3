"""
Rules: Thanos backend advisories (B1, B5)

Both rules infer a Thanos querier from datasource uids alone; without a
live probe of the backend they stay low-confidence advisories.

B1 - No query-frontend: every query hits the querier directly, with no
     result caching, range splitting or retries.
B5 - Deduplication overhead: HA deduplication processes every replica
     series before returning results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext
    from dashsense.dashboard.models import DatasourceRef


def is_thanos(ref: DatasourceRef | None) -> bool:
    return ref is not None and "thanos" in ref.uid.lower()


def uses_thanos(ctx: AnalysisContext) -> bool:
    """Whether any query panel, target or variable points at a Thanos datasource."""
    for panel in ctx.panels:
        if is_thanos(panel.datasource):
            return True
        if any(is_thanos(t.datasource) for t in panel.targets):
            return True
    return any(is_thanos(v.datasource) for v in ctx.variables)


class NoQueryFrontend(Rule):
    """Advise a query-frontend in front of a Thanos querier."""

    rule_id = "B1"
    version = "1.0.0"
    severity = Severity.CRITICAL
    description = "Thanos datasource without a detected query-frontend"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        if not uses_thanos(ctx):
            return []

        return [self.finding(
            title="No Thanos query-frontend detected",
            why=(
                "Dashboard uses a Thanos datasource but no query-frontend is detected. Without "
                "it, every query hits the querier directly, missing caching, query splitting, "
                "and retry benefits."
            ),
            fix=(
                "Deploy a Thanos query-frontend in front of the querier. Configure response "
                "caching with memcached and enable query splitting "
                "(--query-range.split-interval=24h)."
            ),
            impact=(
                "Query-frontend typically reduces p99 latency by 50-90% for repeated queries "
                "through caching and query splitting"
            ),
            validation=(
                "Check that the Grafana datasource URL points to the query-frontend, not "
                "directly to the querier"
            ),
            confidence=0.5,
        )]


class DeduplicationOverhead(Rule):
    """Advise on Thanos replica deduplication cost."""

    rule_id = "B5"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "Thanos deduplication adds per-replica overhead"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        if not uses_thanos(ctx):
            return []

        return [self.finding(
            title="Thanos deduplication overhead",
            why=(
                "Dashboard queries a Thanos datasource. Thanos deduplication processes every "
                "replica series before returning results, adding CPU overhead proportional to "
                "replica count."
            ),
            fix=(
                "Ensure deduplication is configured correctly (--query.replica-label). For "
                "dashboards that don't need dedup, consider querying Prometheus directly."
            ),
            impact="Correct deduplication config avoids processing unnecessary replica series",
            validation="Check thanos_query_deduplicated_series_total vs thanos_query_series_total ratio",
            confidence=0.4,
        )]
