"""
Analyzer - rule engine for Grafana dashboards.

Builds one AnalysisContext per dashboard, runs every rule against it in
registration order, and reduces the findings into a Report.

Design Principles:
- Deterministic core: same dashboard, thresholds and cardinality data
  always give the same findings in the same order
- Observable: one RuleRun record for every rule, run or skipped
- Degrade, don't abort: a failed cardinality fetch or an unparseable
  expression narrows the analysis but never stops it
- No isolation: a rule that raises is a bug and surfaces as RuleError
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from dashsense import __version__
from dashsense.analyzer.context import AnalysisContext
from dashsense.analyzer.cost import estimate_query_cost
from dashsense.analyzer.models import (
    Finding,
    Report,
    ReportMetadata,
    RuleRun,
    RuleRunStatus,
)
from dashsense.analyzer.rules import default_rules
from dashsense.analyzer.scoring import compute_panel_scores, compute_score
from dashsense.config import Thresholds
from dashsense.exceptions import CardinalityError, RuleError

if TYPE_CHECKING:
    from dashsense.analyzer.rules.base import Rule
    from dashsense.cardinality.client import CardinalityClient
    from dashsense.cardinality.models import CardinalityData
    from dashsense.dashboard.models import DashboardModel
    from dashsense.promql.config import ParserLimits

logger = logging.getLogger(__name__)


class Analyzer:
    """
    Rule-based dashboard analyzer.

    Example:
        from dashsense import Analyzer, load_dashboard

        dashboard = load_dashboard("dashboard.json")
        report = Analyzer().analyze(dashboard)

        for finding in report.findings:
            print(f"{finding.rule_id} {finding.severity.value}: {finding.title}")
    """

    def __init__(
        self,
        rules: list[Rule] | None = None,
        thresholds: Thresholds | None = None,
        cardinality_client: CardinalityClient | None = None,
        prometheus_url: str = "",
        parser_limits: ParserLimits | None = None,
    ) -> None:
        """
        Initialize the analyzer.

        Args:
            rules: Rule instances to run, in order (default: every built-in rule)
            thresholds: Thresholds for every run of this analyzer
            cardinality_client: Source of live TSDB data; None runs heuristic-only
            prometheus_url: Shown to rules that mention the backend
            parser_limits: Per-expression parse limits
        """
        self.rules: list[Rule] = list(rules) if rules is not None else default_rules()
        self.thresholds = thresholds or Thresholds()
        self.cardinality_client = cardinality_client
        self.prometheus_url = prometheus_url or (
            cardinality_client.base_url if cardinality_client is not None else ""
        )
        self.parser_limits = parser_limits

    def register(self, rule: Rule) -> None:
        """Append a rule; it runs after every rule registered before it."""
        self.rules.append(rule)

    @property
    def rule_ids(self) -> list[str]:
        return [rule.rule_id for rule in self.rules]

    def build_context(
        self,
        dashboard: DashboardModel,
        cardinality: CardinalityData | None = None,
    ) -> AnalysisContext:
        return AnalysisContext.build(
            dashboard,
            thresholds=self.thresholds,
            cardinality=cardinality,
            prometheus_url=self.prometheus_url,
            limits=self.parser_limits,
        )

    def run(self, ctx: AnalysisContext) -> tuple[list[Finding], list[RuleRun]]:
        """
        Run every rule against the context, in registration order.

        Rules that need cardinality data are skipped when the context has
        none. A rule that raises is wrapped in RuleError and propagated.
        """
        findings: list[Finding] = []
        rule_runs: list[RuleRun] = []

        for rule in self.rules:
            if not rule.config.enabled:
                rule_runs.append(self._skipped(rule, "Disabled by configuration"))
                continue

            if rule.requires_cardinality and not ctx.has_cardinality:
                rule_runs.append(self._skipped(rule, "No cardinality data available"))
                continue

            rule_start = time.perf_counter()
            try:
                rule_findings = rule.check(ctx)
            except Exception as e:
                raise RuleError(rule.rule_id, rule.version, e) from e

            runtime_ms = (time.perf_counter() - rule_start) * 1000
            findings.extend(rule_findings)
            rule_runs.append(RuleRun(
                rule_id=rule.rule_id,
                version=rule.version,
                status=RuleRunStatus.PASS,
                runtime_ms=runtime_ms,
                findings_count=len(rule_findings),
            ))

        return findings, rule_runs

    def analyze(
        self,
        dashboard: DashboardModel,
        cardinality: CardinalityData | None = None,
    ) -> Report:
        """
        Analyze a dashboard for query performance issues.

        Args:
            dashboard: Typed dashboard model
            cardinality: Pre-fetched TSDB data; when None the analyzer's
                client (if any) is asked for it

        Returns:
            Report with score, findings, per-panel scores and metadata
        """
        start_time = time.perf_counter()

        if cardinality is None:
            cardinality = self._fetch_cardinality()

        ctx = self.build_context(dashboard, cardinality)
        findings, rule_runs = self.run(ctx)

        metadata = ReportMetadata(
            total_panels=len(dashboard.all_panels()),
            total_targets=dashboard.total_targets,
            parse_errors=ctx.parse_error_count,
            analyzer_version=__version__,
            cardinality_available=ctx.has_cardinality,
            query_costs=self._query_costs(ctx),
            rule_runs=tuple(rule_runs),
        )

        report = Report(
            dashboard_uid=dashboard.uid,
            dashboard_title=dashboard.title,
            score=compute_score(findings),
            findings=tuple(findings),
            panel_scores=compute_panel_scores(findings),
            metadata=metadata,
        )

        logger.debug(
            "Analyzed %r in %.1fms: %d findings, score %d",
            dashboard.title,
            (time.perf_counter() - start_time) * 1000,
            len(findings),
            report.score,
        )
        return report

    def _fetch_cardinality(self) -> CardinalityData | None:
        if self.cardinality_client is None:
            return None
        try:
            return self.cardinality_client.fetch()
        except (CardinalityError, OSError) as e:
            logger.warning("Cardinality enrichment unavailable, using heuristics: %s", e)
            return None

    def _query_costs(self, ctx: AnalysisContext) -> dict[str, float]:
        costs: dict[str, float] = {}
        for raw, parsed in ctx.expressions.items():
            if parsed.expr is None:
                continue
            costs[raw] = round(
                estimate_query_cost(
                    parsed.expr,
                    cardinality=ctx.cardinality,
                    step_seconds=ctx.thresholds.cost_step_seconds,
                    default_series=ctx.thresholds.default_series,
                ),
                2,
            )
        return costs

    @staticmethod
    def _skipped(rule: Rule, reason: str) -> RuleRun:
        logger.debug("Rule %s skipped: %s", rule.rule_id, reason)
        return RuleRun(
            rule_id=rule.rule_id,
            version=rule.version,
            status=RuleRunStatus.SKIP,
            runtime_ms=0.0,
            findings_count=0,
            skip_reason=reason,
        )
