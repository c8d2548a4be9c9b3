"""Tests for the text and JSON renderers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dashsense.analyzer import Analyzer, Finding, Report, Severity
from dashsense.dashboard import load_dashboard
from dashsense.output import OutputFormat, get_json_schema, render, render_json, render_text, score_bar
from dashsense.output.renderers import collect_panel_titles, group_by_rule


@pytest.fixture
def problematic_report(fixtures_dir: Path) -> Report:
    return Analyzer().analyze(load_dashboard(fixtures_dir / "problematic.json"))


@pytest.fixture
def healthy_report(fixtures_dir: Path) -> Report:
    return Analyzer().analyze(load_dashboard(fixtures_dir / "healthy.json"))


def titled(rule_id: str, *titles: str) -> Finding:
    return Finding(
        rule_id=rule_id,
        severity=Severity.LOW,
        panel_ids=tuple(range(1, len(titles) + 1)),
        panel_titles=titles,
        title="x",
    )


class TestScoreBar:
    """Twenty-cell bar with a label."""

    @pytest.mark.parametrize("score,expected", [
        (100, "100/100 [████████████████████] GOOD"),
        (67, "67/100 [█████████████░░░░░░░] FAIR"),
        (40, "40/100 [████████░░░░░░░░░░░░] POOR"),
        (1, "1/100 [░░░░░░░░░░░░░░░░░░░░] CRITICAL"),
    ])
    def test_bars(self, score, expected):
        assert score_bar(score) == expected


class TestTextRenderer:
    """Terminal output."""

    def test_healthy(self, healthy_report: Report):
        text = render_text(healthy_report)
        assert "Dashboard: API Overview (api-overview)" in text
        assert "No issues found" in text
        assert text.endswith("\n")

    def test_groups_by_rule(self, problematic_report: Report):
        text = render_text(problematic_report)
        assert "Found 8 issue(s):" in text
        assert "Q7 [Hardcoded interval in rate function] (2 occurrences)" in text
        assert "Q1 [Missing label filters] (1 occurrence)" in text
        assert text.index("Q1 [") < text.index("Q3 [") < text.index("D7 [")

    def test_auto_fixable_hint(self, problematic_report: Report):
        assert "Auto-fixable: yes (run `dashsense fix`)" in render_text(problematic_report)

    def test_score_line(self, problematic_report: Report):
        assert "Score:     67/100" in render_text(problematic_report)

    def test_panel_titles_truncated(self):
        findings = [titled("Q1", *(f"P{i}" for i in range(7)))]
        assert collect_panel_titles(findings) == "P0, P1, P2, P3, P4, ... (+2 more)"

    def test_panel_titles_deduplicated(self):
        findings = [titled("Q1", "A", "B"), titled("Q1", "B", "", "C")]
        assert collect_panel_titles(findings) == "A, B, C"

    def test_group_order_is_first_seen(self):
        findings = [titled("Q7"), titled("Q1"), titled("Q7")]
        assert list(group_by_rule(findings)) == ["Q7", "Q1"]


class TestJsonRenderer:
    """Stable machine output."""

    def test_top_level_keys(self, problematic_report: Report):
        data = json.loads(render_json(problematic_report))
        assert set(data) == {
            "version",
            "dashboard_uid",
            "dashboard_title",
            "score",
            "summary",
            "findings",
            "panel_scores",
            "rule_runs",
            "metadata",
        }
        assert data["version"] == "1.0"
        assert data["score"] == 67

    def test_finding_shape(self, problematic_report: Report):
        finding = json.loads(render_json(problematic_report))["findings"][0]
        assert finding["rule_id"] == "Q1"
        assert finding["severity"] == "critical"
        assert finding["panel_ids"] == [1]
        assert finding["panel_titles"] == ["Request Rate"]

    def test_summary_and_runs(self, problematic_report: Report):
        data = json.loads(render_json(problematic_report))
        assert data["summary"]["total"] == 8
        assert data["summary"]["auto_fixable"] == 6
        assert len(data["rule_runs"]) == 25
        assert data["rule_runs"][-1]["status"] == "skip"

    def test_panel_score_keys_are_strings(self, problematic_report: Report):
        data = json.loads(render_json(problematic_report))
        assert set(data["panel_scores"]) == {"1", "2"}

    def test_json_schema(self):
        schema = get_json_schema()
        assert schema["title"] == "ReportSchema"
        assert "findings" in schema["properties"]


class TestRender:
    """Format dispatch."""

    def test_dispatch(self, healthy_report: Report):
        assert render(healthy_report, OutputFormat.TEXT) == render_text(healthy_report)
        assert render(healthy_report, OutputFormat.JSON) == render_json(healthy_report)

    def test_unknown_format(self, healthy_report: Report):
        with pytest.raises(ValueError, match="Unknown output format"):
            render(healthy_report, "xml")  # type: ignore[arg-type]
