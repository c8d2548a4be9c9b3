"""Tests for query cost estimation and the health score."""

import pytest

from dashsense.analyzer.cost import estimate_query_cost
from dashsense.analyzer.models import Finding, Severity
from dashsense.analyzer.scoring import compute_panel_scores, compute_score, penalty
from dashsense.cardinality import CardinalityData
from dashsense.promql import parse_expression


def cost(text: str, **kwargs) -> float:
    return estimate_query_cost(parse_expression(text), **kwargs)


def make_finding(severity: Severity, panel_ids: tuple[int, ...] = (), rule_id: str = "Q1") -> Finding:
    return Finding(
        rule_id=rule_id,
        severity=severity,
        panel_ids=panel_ids,
        panel_titles=tuple(f"Panel {i}" for i in panel_ids),
        title="Test finding",
    )


class TestQueryCost:
    """Bottom-up relative cost."""

    def test_unknown_selector_uses_default(self):
        assert cost("up") == 1000.0

    def test_range_scales_by_steps(self):
        assert cost("up[5m]", step_seconds=15) == 20000.0

    def test_rate_keeps_range_cost(self):
        assert cost("rate(up[5m])") == 20000.0

    def test_grouping_labels_add_cost(self):
        assert cost("sum(rate(up[5m]))") == pytest.approx(20000.0)
        assert cost("sum by (job) (rate(up[5m]))") == pytest.approx(22000.0)

    def test_nested_aggregation_depth(self):
        assert cost("sum(sum(x))") == pytest.approx(1200.0)

    def test_function_weights(self):
        assert cost("histogram_quantile(0.9, x)") == pytest.approx(2000.0)
        assert cost("absent(x)") == pytest.approx(100.0)
        assert cost("abs(x)") == pytest.approx(1000.0)

    def test_binary_adds(self):
        assert cost("a + b") == 2000.0
        assert cost("a * 2") == 1000.0

    def test_subquery_evaluations(self):
        assert cost("max_over_time(x[1h:1m])") == pytest.approx(90000.0)

    def test_subquery_default_step(self):
        assert cost("x[1h:]", step_seconds=15) == pytest.approx(240000.0)

    def test_measured_series(self):
        cardinality = CardinalityData(series_by_metric={"up": 10})
        assert cost("up", cardinality=cardinality) == 10.0
        assert cost("down", cardinality=cardinality) == 1000.0

    def test_custom_default_series(self):
        assert cost("up", default_series=50) == 50.0

    def test_literals_and_none(self):
        assert cost("42") == 0.0
        assert estimate_query_cost(None) == 0.0

    def test_non_positive_step_falls_back(self):
        assert cost("up[5m]", step_seconds=0) == 20000.0

    def test_ranking(self):
        assert cost("rate(x[1h])") > cost("rate(x[5m])")


class TestScore:
    """Severity-weighted score."""

    def test_empty_is_perfect(self):
        assert compute_score([]) == 100

    def test_single_low(self):
        assert compute_score([make_finding(Severity.LOW)]) == 98

    def test_ten_high_is_fifty(self):
        findings = [make_finding(Severity.HIGH)] * 10
        assert penalty(findings) == 100
        assert compute_score(findings) == 50

    def test_never_below_one(self):
        findings = [make_finding(Severity.CRITICAL)] * 2000
        assert compute_score(findings) == 1

    def test_any_finding_below_perfect(self):
        assert compute_score([make_finding(Severity.LOW)]) < 100

    @pytest.mark.parametrize("severity", list(Severity))
    def test_monotonic(self, severity):
        base = [make_finding(Severity.MEDIUM)] * 3
        assert compute_score(base + [make_finding(severity)]) <= compute_score(base)

    def test_weights(self):
        assert [s.weight for s in (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)] == [
            2, 5, 10, 15,
        ]


class TestPanelScores:
    """Per-panel scores use only that panel's findings."""

    def test_scores(self):
        findings = [
            make_finding(Severity.HIGH, (1, 2)),
            make_finding(Severity.LOW, (1,)),
            make_finding(Severity.CRITICAL),
        ]
        assert compute_panel_scores(findings) == {1: 89, 2: 91}

    def test_repeated_panel_counted_once(self):
        findings = [make_finding(Severity.HIGH, (3, 3))]
        assert compute_panel_scores(findings) == {3: 91}

    def test_no_panels(self):
        assert compute_panel_scores([make_finding(Severity.HIGH)]) == {}


class TestSeverity:
    """Ordering used by --fail-on."""

    def test_ordering(self):
        assert Severity.LOW < Severity.MEDIUM < Severity.HIGH < Severity.CRITICAL
        assert max([Severity.MEDIUM, Severity.CRITICAL, Severity.LOW]) is Severity.CRITICAL
        assert Severity.HIGH >= Severity.HIGH
