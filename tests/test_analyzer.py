"""
Tests for the Analyzer: rule execution, skipping, error propagation
and report assembly.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from dashsense import __version__
from dashsense.analyzer import Analyzer, Finding, RuleRunStatus, Severity
from dashsense.analyzer.rules import (
    DEFAULT_RULE_CLASSES,
    HighCardinalityTSDB,
    MissingLabelFilters,
    RefreshTooFrequent,
    Rule,
)
from dashsense.cardinality import CardinalityData
from dashsense.config import Thresholds
from dashsense.dashboard import DashboardModel, load_dashboard
from dashsense.exceptions import CardinalityError, RuleError

from factories import make_dashboard, make_panel


def dashboard_for(*exprs: str, **extra) -> DashboardModel:
    panel = make_panel(1, list(exprs), panel_type="timeseries", maxDataPoints=1000)
    return DashboardModel.model_validate(make_dashboard([panel], **extra))


class ExplodingRule(Rule):
    rule_id = "X1"
    severity = Severity.LOW

    def check(self, ctx):
        raise KeyError("boom")


class FixedFindingRule(Rule):
    """Emits one dashboard-level finding regardless of input."""

    rule_id = "X2"
    severity = Severity.LOW

    def check(self, ctx):
        return [self.finding(title="Always")]


class StubCardinalityClient:
    base_url = "http://prometheus:9090"

    def __init__(self, data: CardinalityData | None = None, error: Exception | None = None):
        self.data = data
        self.error = error
        self.calls = 0

    def fetch(self) -> CardinalityData:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.data


class TestRuleExecution:
    """Order, skipping and observability."""

    def test_default_rules_in_registration_order(self):
        analyzer = Analyzer()
        assert analyzer.rule_ids == [cls.rule_id for cls in DEFAULT_RULE_CLASSES]
        assert len(analyzer.rules) == 25

    def test_one_rule_run_per_rule(self):
        report = Analyzer().analyze(dashboard_for('up{job="a"}'))
        runs = report.metadata.rule_runs
        assert [r.rule_id for r in runs] == [cls.rule_id for cls in DEFAULT_RULE_CLASSES]

    def test_cardinality_rule_skipped_without_data(self):
        report = Analyzer().analyze(dashboard_for('up{job="a"}'))
        b6 = next(r for r in report.metadata.rule_runs if r.rule_id == "B6")
        assert b6.status == RuleRunStatus.SKIP
        assert b6.skip_reason == "No cardinality data available"

    def test_cardinality_rule_runs_with_data(self):
        analyzer = Analyzer(rules=[HighCardinalityTSDB()])
        report = analyzer.analyze(
            dashboard_for('up{job="a"}'),
            cardinality=CardinalityData(head_series_count=2_000_000),
        )
        assert [f.rule_id for f in report.findings] == ["B6"]
        assert report.metadata.rule_runs[0].status == RuleRunStatus.PASS
        assert report.metadata.cardinality_available is True

    def test_disabled_rule_skipped(self):
        analyzer = Analyzer(rules=[MissingLabelFilters({"enabled": False})])
        report = analyzer.analyze(dashboard_for("up"))
        assert report.findings == ()
        run = report.metadata.rule_runs[0]
        assert run.status == RuleRunStatus.SKIP
        assert run.skip_reason == "Disabled by configuration"

    def test_findings_count_recorded(self):
        analyzer = Analyzer(rules=[MissingLabelFilters()])
        report = analyzer.analyze(dashboard_for("up", "down"))
        assert report.metadata.rule_runs[0].findings_count == 2

    def test_rule_exception_propagates(self):
        analyzer = Analyzer(rules=[ExplodingRule()])
        with pytest.raises(RuleError) as exc_info:
            analyzer.analyze(dashboard_for("up"))
        assert exc_info.value.rule_id == "X1"
        assert isinstance(exc_info.value.original_error, KeyError)

    def test_register_appends(self):
        analyzer = Analyzer(rules=[MissingLabelFilters()])
        analyzer.register(FixedFindingRule())
        report = analyzer.analyze(dashboard_for("up"))
        assert [f.rule_id for f in report.findings] == ["Q1", "X2"]


class TestCardinalityEnrichment:
    """The optional client is asked once per run and may fail."""

    def test_client_data_used(self):
        client = StubCardinalityClient(CardinalityData(series_by_metric={"up": 4321}))
        analyzer = Analyzer(rules=[MissingLabelFilters()], cardinality_client=client)

        report = analyzer.analyze(dashboard_for("up"))

        assert client.calls == 1
        assert "4,321" in report.findings[0].why
        assert analyzer.prometheus_url == "http://prometheus:9090"

    @pytest.mark.parametrize("error", [
        CardinalityError("Fetching TSDB status failed", url="http://prometheus:9090"),
        ConnectionRefusedError("refused"),
    ])
    def test_client_failure_degrades(self, error):
        client = StubCardinalityClient(error=error)
        analyzer = Analyzer(cardinality_client=client)

        report = analyzer.analyze(dashboard_for("up"))

        assert report.metadata.cardinality_available is False
        assert report.findings_for_rule("Q1")[0].confidence == 0.9

    def test_explicit_data_skips_client(self):
        client = StubCardinalityClient(CardinalityData())
        Analyzer(cardinality_client=client).analyze(dashboard_for("up"), cardinality=CardinalityData())
        assert client.calls == 0


class TestReport:
    """Scores, metadata and ordering."""

    def test_clean_dashboard(self, fixtures_dir: Path):
        report = Analyzer().analyze(load_dashboard(fixtures_dir / "healthy.json"))
        assert report.score == 100
        assert report.findings == ()
        assert report.panel_scores == {}
        assert report.dashboard_uid == "api-overview"

    def test_problematic_dashboard(self, fixtures_dir: Path):
        report = Analyzer().analyze(load_dashboard(fixtures_dir / "problematic.json"))

        assert [f.rule_id for f in report.findings] == [
            "Q1", "Q3", "Q5", "Q7", "Q7", "D5", "D6", "D7",
        ]
        assert report.score == 67
        assert report.auto_fixable_count == 6
        assert report.max_severity() is Severity.CRITICAL
        assert report.has_critical

    def test_summary(self, fixtures_dir: Path):
        report = Analyzer().analyze(load_dashboard(fixtures_dir / "problematic.json"))
        assert report.summary() == {
            "total": 8,
            "critical": 1,
            "high": 0,
            "medium": 7,
            "low": 0,
            "auto_fixable": 6,
        }

    def test_metadata(self):
        report = Analyzer().analyze(dashboard_for('rate(up{job="a"}[5m])', "sum("))
        metadata = report.metadata
        assert metadata.total_panels == 1
        assert metadata.total_targets == 2
        assert metadata.parse_errors == 1
        assert metadata.analyzer_version == __version__
        assert list(metadata.query_costs) == ['rate(up{job="a"}[5m])']

    def test_report_is_frozen(self):
        report = Analyzer(rules=[]).analyze(dashboard_for("up"))
        with pytest.raises(Exception):
            report.score = 1  # type: ignore[misc]

    def test_deterministic(self, fixtures_dir: Path):
        dashboard = load_dashboard(fixtures_dir / "problematic.json")
        first = Analyzer().analyze(dashboard)
        second = Analyzer().analyze(dashboard)
        assert first.findings == second.findings
        assert first.score == second.score

    def test_thresholds_apply(self):
        analyzer = Analyzer(rules=[RefreshTooFrequent()], thresholds=Thresholds(min_refresh_seconds=5))
        report = analyzer.analyze(dashboard_for('up{job="a"}', refresh="10s"))
        assert report.findings == ()

    def test_finding_model(self):
        finding = Finding(rule_id="D1", severity=Severity.HIGH, title="x")
        assert finding.is_dashboard_level
        assert finding.confidence == 1.0
