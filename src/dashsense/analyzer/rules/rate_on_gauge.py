"""
Rule: rate()/irate() on gauge metric (Q11)

rate and irate compute per-second increase and only make sense on
counters. On a gauge they produce mostly zeros with spikes on every drop.

Heuristic and deliberately conservative: only names matching well-known
gauge prefixes are flagged, and any counter suffix (_total, _count,
_sum, _bucket) clears the metric. Unknown metrics are never flagged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.rules.base import Rule, first_metric_name
from dashsense.promql.ast import NodeKind, find_all

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext

GAUGE_FUNCTIONS = frozenset({"rate", "irate"})

COUNTER_SUFFIXES: tuple[str, ...] = ("_total", "_count", "_sum", "_bucket")

KNOWN_GAUGE_PREFIXES: tuple[str, ...] = (
    "go_goroutines",
    "go_threads",
    "go_memstats_",
    "go_info",
    "process_resident_memory_bytes",
    "process_virtual_memory_bytes",
    "process_open_fds",
    "process_max_fds",
    "node_memory_",
    "node_filesystem_",
    "node_load",
    "node_time_seconds",
    "node_boot_time_seconds",
    "prometheus_tsdb_head_series",
    "prometheus_tsdb_head_chunks",
    "up",
)


def is_likely_gauge(name: str) -> bool:
    if name.endswith(COUNTER_SUFFIXES):
        return False
    return name.startswith(KNOWN_GAUGE_PREFIXES)


class RateOnGauge(Rule):
    """Detect rate()/irate() applied to metrics named like gauges."""

    rule_id = "Q11"
    version = "1.0.0"
    severity = Severity.MEDIUM
    description = "rate()/irate() applied to a metric that looks like a gauge"

    def check(self, ctx: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []

        for panel, _raw, expr in ctx.parsed_targets():
            for call in find_all(expr, NodeKind.CALL):
                if call.func not in GAUGE_FUNCTIONS or not call.args:
                    continue
                metric = first_metric_name(call.args[0])
                if not metric or not is_likely_gauge(metric):
                    continue

                findings.append(self.finding(
                    title="rate()/irate() on gauge metric",
                    panels=[panel],
                    why=(
                        f"{call.func}() is applied to {metric!r}, which appears to be a gauge "
                        "metric. rate/irate compute per-second change and only produce meaningful "
                        "results on counters (_total, _count, _bucket)."
                    ),
                    fix=(
                        f"Use the metric directly ({metric}) or use delta() / deriv() instead of "
                        f"{call.func}() for gauge metrics."
                    ),
                    impact="Correct function choice produces accurate visualizations instead of mostly-zero noise",
                    validation=(
                        "Compare rate() output with the raw metric: gauges should show actual "
                        "values, not per-second derivatives"
                    ),
                    confidence=0.6,
                ))

        return findings
