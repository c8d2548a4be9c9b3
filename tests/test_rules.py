"""
Tests for the built-in rule catalog.

Each rule gets a detecting case, the closest clean case, and the edge
cases its description promises.
"""

from __future__ import annotations

import pytest

from dashsense.analyzer.models import Severity
from dashsense.analyzer.rules import (
    AmbiguousVectorMatching,
    DatasourceMixing,
    DeduplicationOverhead,
    DuplicateExpressions,
    DuplicateQueries,
    ExpensiveVariableQuery,
    HardcodedInterval,
    HighCardinalityGrouping,
    HighCardinalityTSDB,
    IncorrectAggregation,
    LateAggregation,
    LongRateRange,
    MissingLabelFilters,
    MissingMaxDataPoints,
    NoCollapsedRows,
    NoQueryFrontend,
    RangeTooWide,
    RateOnGauge,
    RefreshTooFrequent,
    RegexEquality,
    RepeatWithAll,
    SubqueryAbuse,
    TooManyPanels,
    UnboundedRegex,
    VariableExplosion,
)
from dashsense.cardinality import CardinalityData
from dashsense.config import Thresholds

from factories import context_for, make_context, make_dashboard, make_panel, make_row, make_variable


def check(rule_cls, ctx):
    return rule_cls().check(ctx)


def multi_all_variable(name: str, values: list[str], var_type: str = "custom", **extra) -> dict:
    options = [{"text": "All", "value": "$__all"}] + [{"text": v, "value": v} for v in values]
    return make_variable(
        name,
        var_type,
        multi=True,
        includeAll=True,
        options=options if values else [],
        **extra,
    )


# =============================================================================
# Query rules
# =============================================================================


class TestMissingLabelFilters:
    """Q1: selectors without label matchers."""

    def test_bare_metric(self):
        findings = check(MissingLabelFilters, context_for("up"))
        assert len(findings) == 1
        finding = findings[0]
        assert finding.rule_id == "Q1"
        assert finding.severity == Severity.CRITICAL
        assert finding.panel_ids == (1,)
        assert finding.confidence == 0.9
        assert "'up'" in finding.why

    def test_filtered_metric(self):
        assert check(MissingLabelFilters, context_for('up{job="api"}')) == []

    def test_name_matcher_alone_is_unscoped(self):
        assert len(check(MissingLabelFilters, context_for('{__name__="up"}'))) == 1

    def test_each_unscoped_selector(self):
        ctx = context_for('rate(a_total[5m]) / rate(b_total{job="x"}[5m]) + c')
        assert len(check(MissingLabelFilters, ctx)) == 2

    def test_measured_cardinality_raises_confidence(self):
        cardinality = CardinalityData(series_by_metric={"up": 5000})
        findings = check(MissingLabelFilters, context_for("up", cardinality=cardinality))
        assert findings[0].confidence == 0.95
        assert "5,000" in findings[0].why

    def test_unparseable_expression_is_ignored(self):
        assert check(MissingLabelFilters, context_for("sum(")) == []


class TestUnboundedRegex:
    """Q2: regex matchers that scan every label value."""

    @pytest.mark.parametrize("expr", [
        'up{job=~".*api"}',
        'up{job=~".+"}',
        'up{job=~"a.*b"}',
    ])
    def test_detects(self, expr):
        findings = check(UnboundedRegex, context_for(expr))
        assert len(findings) == 1
        assert findings[0].severity == Severity.HIGH

    @pytest.mark.parametrize("expr", [
        'up{job=~"api.*"}',
        'up{job=~"api|web"}',
        'up{job!~".*"}',
        'up{job="api"}',
    ])
    def test_ignores(self, expr):
        assert check(UnboundedRegex, context_for(expr)) == []


class TestRegexEquality:
    """Q3: regex matchers on literal values."""

    def test_literal_regex(self):
        findings = check(RegexEquality, context_for('up{job=~"api"}'))
        assert len(findings) == 1
        assert findings[0].auto_fixable is True
        assert findings[0].fix == 'Change job=~"api" to job="api"'

    @pytest.mark.parametrize("expr", [
        'up{job=~"api|web"}',
        'up{job!~"api"}',
        'up{job=~"$job"}',
        'up{job=~"${job:regex}"}',
    ])
    def test_ignores(self, expr):
        assert check(RegexEquality, context_for(expr)) == []

    def test_spaced_operator(self):
        findings = check(RegexEquality, context_for('rate(x{job =~ "api"}[5m])'))
        assert len(findings) == 1
        assert findings[0].auto_fixable is True

    def test_literal_placeholder_next_to_variable(self):
        ctx = context_for('up{job=~"placeholder", env=~"$env"}')
        findings = check(RegexEquality, ctx)
        assert len(findings) == 1
        assert "job" in findings[0].fix

    def test_single_quoted_value_is_not_auto_fixable(self):
        findings = check(RegexEquality, context_for("up{job=~'api'}"))
        assert len(findings) == 1
        assert findings[0].auto_fixable is False


class TestHighCardinalityGrouping:
    """Q4: too many or too explosive grouping labels."""

    def test_too_many_labels(self):
        findings = check(HighCardinalityGrouping, context_for('sum by (a, b, c, d) (x{job="y"})'))
        assert [f.title for f in findings] == ["High-cardinality grouping"]

    def test_four_labels_including_pod(self):
        findings = check(HighCardinalityGrouping, context_for('sum by (pod, a, b, c) (x{job="y"})'))
        assert [f.title for f in findings] == [
            "High-cardinality grouping",
            "High-cardinality grouping label",
        ]

    def test_risky_label(self):
        findings = check(HighCardinalityGrouping, context_for('sum by (instance) (x{job="y"})'))
        assert len(findings) == 1
        assert "'instance'" in findings[0].why

    def test_without_is_ignored(self):
        ctx = context_for('sum without (pod, a, b, c) (x{job="y"})')
        assert check(HighCardinalityGrouping, ctx) == []

    def test_safe_grouping(self):
        assert check(HighCardinalityGrouping, context_for('sum by (job) (x{job="y"})')) == []

    def test_measured_label_values(self):
        cardinality = CardinalityData(values_by_label={"pod": 3000})
        ctx = context_for('sum by (pod) (x{job="y"})', cardinality=cardinality)
        assert "3,000 distinct values" in check(HighCardinalityGrouping, ctx)[0].why

    def test_custom_label_list(self):
        thresholds = Thresholds(high_cardinality_labels=("trace_id",))
        ctx = context_for('sum by (trace_id) (x{job="y"})', thresholds=thresholds)
        assert len(check(HighCardinalityGrouping, ctx)) == 1


class TestLateAggregation:
    """Q5: aggregation over an unfiltered selector."""

    def test_detects(self):
        findings = check(LateAggregation, context_for("sum(rate(http_requests_total[5m]))"))
        assert len(findings) == 1
        assert "'http_requests_total'" in findings[0].why
        assert findings[0].confidence == 0.75

    def test_filtered(self):
        assert check(LateAggregation, context_for('sum(rate(x{job="a"}[5m]))')) == []

    def test_no_aggregation(self):
        assert check(LateAggregation, context_for("rate(x[5m])")) == []

    def test_measured(self):
        cardinality = CardinalityData(series_by_metric={"x": 20000})
        findings = check(LateAggregation, context_for("sum(x)", cardinality=cardinality))
        assert findings[0].confidence == 0.9
        assert "20,000" in findings[0].why


class TestLongRateRange:
    """Q6: rate windows longer than ten minutes."""

    @pytest.mark.parametrize("expr", [
        'rate(x{job="a"}[1h])',
        'delta(x{job="a"}[15m])',
        'increase(x{job="a"}[1d])',
    ])
    def test_detects(self, expr):
        assert len(check(LongRateRange, context_for(expr))) == 1

    @pytest.mark.parametrize("expr", [
        'rate(x{job="a"}[10m])',
        'avg_over_time(x{job="a"}[1h])',
        'rate(x{job="a"}[$__range])',
    ])
    def test_ignores(self, expr):
        assert check(LongRateRange, context_for(expr)) == []

    def test_why_names_window(self):
        finding = check(LongRateRange, context_for('rate(x{job="a"}[1h])'))[0]
        assert "1h range window" in finding.why


class TestHardcodedInterval:
    """Q7: literal windows instead of $__rate_interval."""

    def test_detects(self):
        findings = check(HardcodedInterval, context_for('rate(x{job="a"}[5m])'))
        assert len(findings) == 1
        assert "[5m]" in findings[0].why
        assert findings[0].auto_fixable is True

    def test_one_finding_per_target(self):
        ctx = context_for("sum(rate(a[5m])) / sum(rate(b[5m]))")
        assert len(check(HardcodedInterval, ctx)) == 1

    @pytest.mark.parametrize("expr", [
        "rate(x[$__rate_interval])",
        "rate(x[${__interval}])",
        "avg_over_time(x[5m])",
        "delta(x[5m])",
    ])
    def test_ignores(self, expr):
        assert check(HardcodedInterval, context_for(expr)) == []


class TestSubqueryAbuse:
    """Q8: nested, too-fine or too-long subqueries."""

    def test_nested(self):
        ctx = context_for('max_over_time(max_over_time(x{a="b"}[5m:10s])[1h:1m])')
        assert [f.title for f in check(SubqueryAbuse, ctx)] == ["Nested subquery"]

    def test_fine_step_and_ratio(self):
        ctx = context_for('max_over_time(x{a="b"}[2h:10s])')
        assert [f.title for f in check(SubqueryAbuse, ctx)] == [
            "Subquery with fine step over long range",
            "Subquery with excessive range/step ratio",
        ]

    def test_ratio_only(self):
        ctx = context_for('max_over_time(x{a="b"}[1d:1m])')
        findings = check(SubqueryAbuse, ctx)
        assert len(findings) == 1
        assert "1,440" in findings[0].why

    @pytest.mark.parametrize("expr", [
        'max_over_time(x{a="b"}[1h:30s])',
        'max_over_time(x{a="b"}[1h:])',
    ])
    def test_ignores(self, expr):
        assert check(SubqueryAbuse, context_for(expr)) == []


class TestDuplicateExpressions:
    """Q9: one expression evaluated by more than two panels."""

    def test_three_panels(self):
        panels = [
            make_panel(1, ["sum(rate(x[5m]))"]),
            make_panel(2, ["sum( rate(x[5m]) )"]),
            make_panel(3, ["sum(rate(x[5m]))\n"]),
        ]
        findings = check(DuplicateExpressions, make_context(make_dashboard(panels)))
        assert len(findings) == 1
        assert findings[0].panel_ids == (1, 2, 3)
        assert "Eliminates 2" in findings[0].impact

    def test_two_panels(self):
        panels = [make_panel(1, ["up"]), make_panel(2, ["up"])]
        assert check(DuplicateExpressions, make_context(make_dashboard(panels))) == []

    def test_repeat_within_panel_counts_once(self):
        panels = [make_panel(1, ["up", "up"]), make_panel(2, ["up"])]
        assert check(DuplicateExpressions, make_context(make_dashboard(panels))) == []


class TestIncorrectAggregation:
    """Q10: rate over an aggregation."""

    def test_textual_form_the_parser_rejects(self):
        ctx = context_for("rate(sum(x)[5m])")
        assert ctx.parse_error_count == 1
        assert len(check(IncorrectAggregation, ctx)) == 1

    def test_subquery_form(self):
        findings = check(IncorrectAggregation, context_for("rate(sum(x)[5m:])"))
        assert len(findings) == 1

    def test_aggregation_deep_inside_subquery(self):
        ctx = context_for("increase(max_over_time(sum(x)[5m:])[1h:])")
        findings = check(IncorrectAggregation, ctx)
        assert len(findings) == 1
        assert "subquery" in findings[0].why

    def test_correct_order(self):
        assert check(IncorrectAggregation, context_for("sum(rate(x[5m]))")) == []


class TestRateOnGauge:
    """Q11: rate()/irate() on gauge-named metrics."""

    @pytest.mark.parametrize("expr", [
        "rate(node_memory_MemFree_bytes[5m])",
        'irate(go_goroutines{job="a"}[1m])',
        "rate(process_open_fds[5m])",
    ])
    def test_detects(self, expr):
        findings = check(RateOnGauge, context_for(expr))
        assert len(findings) == 1
        assert findings[0].confidence == 0.6

    @pytest.mark.parametrize("expr", [
        "rate(http_requests_total[5m])",
        "rate(node_cpu_seconds_total[5m])",
        "rate(go_memstats_alloc_bytes_total[5m])",
        "deriv(go_goroutines[5m])",
        "rate(my_app_queue_depth[5m])",
    ])
    def test_ignores(self, expr):
        assert check(RateOnGauge, context_for(expr)) == []


class TestAmbiguousVectorMatching:
    """Q12: binary operations between metrics with implicit matching."""

    def test_detects(self):
        findings = check(AmbiguousVectorMatching, context_for("rate(a_total[5m]) / rate(b_total[5m])"))
        assert len(findings) == 1
        assert "'a_total'" in findings[0].why

    @pytest.mark.parametrize("expr", [
        "a / on(job) b",
        "a / ignoring(code) b",
        "a and b",
        "a / a",
        "a / 2",
        "sum(a) / sum(b)",
    ])
    def test_ignores(self, expr):
        assert check(AmbiguousVectorMatching, context_for(expr)) == []


# =============================================================================
# Dashboard rules
# =============================================================================


class TestTooManyPanels:
    """D1: visible panel count."""

    def test_over_limit(self):
        panels = [make_panel(i, ["up"]) for i in range(1, 27)]
        findings = check(TooManyPanels, make_context(make_dashboard(panels)))
        assert len(findings) == 1
        assert findings[0].is_dashboard_level
        assert "26 visible panels" in findings[0].why

    def test_at_limit(self):
        panels = [make_panel(i, ["up"]) for i in range(1, 26)]
        assert check(TooManyPanels, make_context(make_dashboard(panels))) == []

    def test_collapsed_panels_not_visible(self):
        nested = [make_panel(i, ["up"]) for i in range(2, 40)]
        panels = [make_panel(1, ["up"]), make_row(100, collapsed=True, panels=nested)]
        assert check(TooManyPanels, make_context(make_dashboard(panels))) == []


class TestRepeatWithAll:
    """D2: repeating over an Include All variable."""

    def test_detects(self):
        raw = make_dashboard(
            [make_panel(1, ["up"], repeat="host")],
            [make_variable("host", includeAll=True, multi=True)],
        )
        findings = check(RepeatWithAll, make_context(raw))
        assert len(findings) == 1
        assert findings[0].panel_ids == (1,)
        assert findings[0].severity == Severity.CRITICAL

    def test_without_include_all(self):
        raw = make_dashboard(
            [make_panel(1, ["up"], repeat="host")],
            [make_variable("host", includeAll=False)],
        )
        assert check(RepeatWithAll, make_context(raw)) == []

    def test_unknown_variable(self):
        raw = make_dashboard([make_panel(1, ["up"], repeat="missing")])
        assert check(RepeatWithAll, make_context(raw)) == []

    def test_repeated_row(self):
        raw = make_dashboard(
            [make_row(1, panels=[]) | {"repeat": "host"}],
            [make_variable("host", includeAll=True)],
        )
        assert len(check(RepeatWithAll, make_context(raw))) == 1


class TestVariableExplosion:
    """D3: cross-product of multi-select Include All variables."""

    def test_enumerated_product(self):
        variables = [multi_all_variable(n, ["a", "b", "c", "d"]) for n in ("x", "y", "z")]
        findings = check(VariableExplosion, make_context(make_dashboard(variables=variables)))
        assert len(findings) == 1
        assert "64" in findings[0].why
        assert findings[0].confidence == 0.9

    def test_under_limit(self):
        variables = [multi_all_variable("x", [str(i) for i in range(10)])]
        assert check(VariableExplosion, make_context(make_dashboard(variables=variables))) == []

    def test_custom_query_list(self):
        variables = [
            multi_all_variable("x", [], query="a,b,c,d,e,f,g,h"),
            multi_all_variable("y", [], query="a, b, c, d, e, f, g, h"),
        ]
        findings = check(VariableExplosion, make_context(make_dashboard(variables=variables)))
        assert "64" in findings[0].why

    def test_unmeasured_query_variables(self):
        variables = [
            multi_all_variable("pod", [], var_type="query", query="label_values(up, pod)"),
            multi_all_variable("node", [], var_type="query", query="label_values(up, node)"),
        ]
        findings = check(VariableExplosion, make_context(make_dashboard(variables=variables)))
        assert "10,000" in findings[0].why
        assert findings[0].confidence == 0.7

    def test_measured_query_variables(self):
        variables = [
            multi_all_variable("pod", [], var_type="query", query="label_values(up, pod)"),
            multi_all_variable("node", [], var_type="query", query={"query": "label_values(node)"}),
        ]
        cardinality = CardinalityData(values_by_label={"pod": 3, "node": 4})
        ctx = make_context(make_dashboard(variables=variables), cardinality=cardinality)
        assert check(VariableExplosion, ctx) == []

    def test_single_select_ignored(self):
        variables = [make_variable("x", "query", query="label_values(up, x)", includeAll=True)]
        assert check(VariableExplosion, make_context(make_dashboard(variables=variables))) == []

    def test_product_is_capped(self):
        variables = [multi_all_variable(f"v{i}", [], var_type="query", query="q") for i in range(6)]
        findings = check(VariableExplosion, make_context(make_dashboard(variables=variables)))
        assert "1,000,000" in findings[0].why


class TestExpensiveVariableQuery:
    """D4: query variables that run full PromQL."""

    def test_full_query(self):
        variables = [make_variable("job", query="sum(up) by (job)")]
        findings = check(ExpensiveVariableQuery, make_context(make_dashboard(variables=variables)))
        assert len(findings) == 1
        assert "$job" in findings[0].why

    def test_query_object(self):
        variables = [make_variable("job", query={"query": "query_result(up)"})]
        assert len(check(ExpensiveVariableQuery, make_context(make_dashboard(variables=variables)))) == 1

    @pytest.mark.parametrize("variable", [
        make_variable("job", query="label_values(up, job)"),
        make_variable("job", "custom", query="a,b,c"),
        make_variable("job", query=""),
        make_variable("interval", "interval", query="1m,5m"),
    ])
    def test_ignores(self, variable):
        assert check(ExpensiveVariableQuery, make_context(make_dashboard(variables=[variable]))) == []


class TestRefreshTooFrequent:
    """D5: refresh interval below 30s."""

    def test_detects(self):
        findings = check(RefreshTooFrequent, make_context(make_dashboard(refresh="10s")))
        assert len(findings) == 1
        assert "67%" in findings[0].impact
        assert findings[0].auto_fixable is True

    @pytest.mark.parametrize("refresh", ["30s", "1m", "", "junk"])
    def test_ignores(self, refresh):
        assert check(RefreshTooFrequent, make_context(make_dashboard(refresh=refresh))) == []


class TestRangeTooWide:
    """D6: default time window over 24h."""

    @pytest.mark.parametrize("start", ["now-7d", "now-2d", "now-30d/d"])
    def test_detects(self, start):
        raw = make_dashboard(time={"from": start, "to": "now"})
        assert len(check(RangeTooWide, make_context(raw))) == 1

    @pytest.mark.parametrize("start", ["now-6M", "now-2M/M"])
    def test_month_ranges(self, start):
        raw = make_dashboard(time={"from": start, "to": "now"})
        findings = check(RangeTooWide, make_context(raw))
        assert [f.rule_id for f in findings] == ["D6"]
        assert start in findings[0].why

    @pytest.mark.parametrize("start", ["now-24h", "now-1h", "2024-01-01T00:00:00.000Z", ""])
    def test_ignores(self, start):
        raw = make_dashboard(time={"from": start, "to": "now"})
        assert check(RangeTooWide, make_context(raw)) == []


class TestMissingMaxDataPoints:
    """D7: time-series panels without maxDataPoints."""

    def test_detects(self):
        raw = make_dashboard([make_panel(1, ["up"], panel_type="timeseries")])
        findings = check(MissingMaxDataPoints, make_context(raw))
        assert len(findings) == 1
        assert findings[0].panel_ids == (1,)

    def test_zero_is_missing(self):
        raw = make_dashboard([make_panel(1, ["up"], panel_type="graph", maxDataPoints=0)])
        assert len(check(MissingMaxDataPoints, make_context(raw))) == 1

    def test_nested_in_collapsed_row(self):
        nested = [make_panel(2, ["up"], panel_type="heatmap")]
        raw = make_dashboard([make_row(1, collapsed=True, panels=nested)])
        assert check(MissingMaxDataPoints, make_context(raw))[0].panel_ids == (2,)

    @pytest.mark.parametrize("panel", [
        make_panel(1, ["up"], panel_type="timeseries", maxDataPoints=1000),
        make_panel(1, ["up"], panel_type="stat"),
        make_panel(1, ["up"], panel_type="table"),
    ])
    def test_ignores(self, panel):
        assert check(MissingMaxDataPoints, make_context(make_dashboard([panel]))) == []


class TestDuplicateQueries:
    """D8: the same query text in more than two panels."""

    def test_three_panels(self):
        panels = [make_panel(i, ['up{job="api"}']) for i in (1, 2, 3)]
        findings = check(DuplicateQueries, make_context(make_dashboard(panels)))
        assert len(findings) == 1
        assert findings[0].panel_ids == (1, 2, 3)

    def test_two_panels(self):
        panels = [make_panel(i, ['up{job="api"}']) for i in (1, 2)]
        assert check(DuplicateQueries, make_context(make_dashboard(panels))) == []

    def test_counts_nested_panels(self):
        panels = [
            make_panel(1, ["up"]),
            make_row(10, collapsed=True, panels=[make_panel(2, ["up"]), make_panel(3, [" up "])]),
        ]
        assert len(check(DuplicateQueries, make_context(make_dashboard(panels)))) == 1


class TestDatasourceMixing:
    """D9: too many distinct datasources."""

    def test_three_sources(self):
        panels = [
            make_panel(1, ["up"], datasource={"type": "prometheus", "uid": "prom-a"}),
            make_panel(2, ["up"], datasource={"type": "prometheus", "uid": "prom-b"}),
            make_panel(3, ["up"], datasource={"type": "loki", "uid": "loki"}),
        ]
        findings = check(DatasourceMixing, make_context(make_dashboard(panels)))
        assert len(findings) == 1
        assert findings[0].severity == Severity.LOW

    def test_pseudo_and_variable_sources_excluded(self):
        panels = [
            make_panel(1, ["up"], datasource={"uid": "prom-a"}),
            make_panel(2, ["up"], datasource={"uid": "-- Mixed --"}),
            make_panel(3, ["up"], datasource={"uid": "$datasource"}),
            make_panel(4, ["up"], datasource="-- Grafana --"),
        ]
        assert check(DatasourceMixing, make_context(make_dashboard(panels))) == []


class TestNoCollapsedRows:
    """D10: five or more panels with nothing collapsed."""

    def test_no_rows(self):
        panels = [make_panel(i, ["up"]) for i in range(1, 6)]
        findings = check(NoCollapsedRows, make_context(make_dashboard(panels)))
        assert len(findings) == 1
        assert "no row panels" in findings[0].why

    def test_rows_none_collapsed(self):
        panels = [make_row(100)] + [make_panel(i, ["up"]) for i in range(1, 6)]
        findings = check(NoCollapsedRows, make_context(make_dashboard(panels)))
        assert "none are collapsed" in findings[0].why

    def test_collapsed_row(self):
        panels = [make_panel(i, ["up"]) for i in range(1, 4)]
        panels.append(make_row(100, collapsed=True, panels=[make_panel(4, ["up"]), make_panel(5, ["up"])]))
        assert check(NoCollapsedRows, make_context(make_dashboard(panels))) == []

    def test_small_dashboard(self):
        panels = [make_panel(i, ["up"]) for i in range(1, 5)]
        assert check(NoCollapsedRows, make_context(make_dashboard(panels))) == []


# =============================================================================
# Backend rules
# =============================================================================


class TestThanosAdvisories:
    """B1/B5: Thanos datasource detection."""

    @pytest.mark.parametrize("rule_cls", [NoQueryFrontend, DeduplicationOverhead])
    def test_panel_datasource(self, rule_cls):
        panel = make_panel(1, ['up{job="a"}'], datasource={"type": "prometheus", "uid": "thanos-querier"})
        findings = check(rule_cls, make_context(make_dashboard([panel])))
        assert len(findings) == 1
        assert findings[0].is_dashboard_level

    def test_target_datasource(self):
        panel = make_panel(1, ['up{job="a"}'])
        panel["targets"][0]["datasource"] = {"uid": "Thanos"}
        assert len(check(NoQueryFrontend, make_context(make_dashboard([panel])))) == 1

    def test_variable_datasource(self):
        raw = make_dashboard(variables=[make_variable("job", datasource={"uid": "thanos"})])
        assert len(check(DeduplicationOverhead, make_context(raw))) == 1

    @pytest.mark.parametrize("rule_cls", [NoQueryFrontend, DeduplicationOverhead])
    def test_plain_prometheus(self, rule_cls):
        panel = make_panel(1, ['up{job="a"}'], datasource={"uid": "prometheus"})
        assert check(rule_cls, make_context(make_dashboard([panel]))) == []


class TestHighCardinalityTSDB:
    """B6: head series above one million."""

    def test_requires_cardinality(self):
        assert HighCardinalityTSDB.requires_cardinality is True
        assert check(HighCardinalityTSDB, make_context(make_dashboard())) == []

    def test_over_limit(self):
        cardinality = CardinalityData(
            head_series_count=1_500_000,
            series_by_metric={"a": 10, "b": 300_000, "c": 20, "d": 5},
        )
        findings = check(HighCardinalityTSDB, make_context(make_dashboard(), cardinality=cardinality))
        assert len(findings) == 1
        assert "1,500,000" in findings[0].why
        assert "b (300,000), c (20), a (10)" in findings[0].fix

    def test_under_limit(self):
        cardinality = CardinalityData(head_series_count=500_000)
        assert check(HighCardinalityTSDB, make_context(make_dashboard(), cardinality=cardinality)) == []
