"""Analyzer rules module - individual detection rules."""

from dashsense.analyzer.rules.ambiguous_vector_matching import AmbiguousVectorMatching
from dashsense.analyzer.rules.base import Rule, RuleConfig
from dashsense.analyzer.rules.datasource_mixing import DatasourceMixing
from dashsense.analyzer.rules.duplicate_expressions import DuplicateExpressions
from dashsense.analyzer.rules.duplicate_queries import DuplicateQueries
from dashsense.analyzer.rules.expensive_variable_query import ExpensiveVariableQuery
from dashsense.analyzer.rules.hardcoded_interval import HardcodedInterval
from dashsense.analyzer.rules.high_cardinality_grouping import HighCardinalityGrouping
from dashsense.analyzer.rules.high_cardinality_tsdb import HighCardinalityTSDB
from dashsense.analyzer.rules.incorrect_aggregation import IncorrectAggregation
from dashsense.analyzer.rules.late_aggregation import LateAggregation
from dashsense.analyzer.rules.long_rate_range import LongRateRange
from dashsense.analyzer.rules.missing_label_filters import MissingLabelFilters
from dashsense.analyzer.rules.missing_max_data_points import MissingMaxDataPoints
from dashsense.analyzer.rules.no_collapsed_rows import NoCollapsedRows
from dashsense.analyzer.rules.range_too_wide import RangeTooWide
from dashsense.analyzer.rules.rate_on_gauge import RateOnGauge
from dashsense.analyzer.rules.refresh_too_frequent import RefreshTooFrequent
from dashsense.analyzer.rules.regex_equality import RegexEquality
from dashsense.analyzer.rules.repeat_with_all import RepeatWithAll
from dashsense.analyzer.rules.subquery_abuse import SubqueryAbuse
from dashsense.analyzer.rules.thanos import DeduplicationOverhead, NoQueryFrontend
from dashsense.analyzer.rules.too_many_panels import TooManyPanels
from dashsense.analyzer.rules.unbounded_regex import UnboundedRegex
from dashsense.analyzer.rules.variable_explosion import VariableExplosion

# Registration order: expression rules, structural rules, backend rules.
# Findings come out in this order.
DEFAULT_RULE_CLASSES: tuple[type[Rule], ...] = (
    MissingLabelFilters,
    UnboundedRegex,
    RegexEquality,
    HighCardinalityGrouping,
    LateAggregation,
    LongRateRange,
    HardcodedInterval,
    SubqueryAbuse,
    DuplicateExpressions,
    IncorrectAggregation,
    RateOnGauge,
    AmbiguousVectorMatching,
    TooManyPanels,
    RepeatWithAll,
    VariableExplosion,
    ExpensiveVariableQuery,
    RefreshTooFrequent,
    RangeTooWide,
    MissingMaxDataPoints,
    DuplicateQueries,
    DatasourceMixing,
    NoCollapsedRows,
    NoQueryFrontend,
    DeduplicationOverhead,
    HighCardinalityTSDB,
)


def default_rules() -> list[Rule]:
    """Fresh instances of every built-in rule, in registration order."""
    return [cls() for cls in DEFAULT_RULE_CLASSES]


__all__ = [
    "Rule",
    "RuleConfig",
    "DEFAULT_RULE_CLASSES",
    "default_rules",
    # Expression rules
    "MissingLabelFilters",
    "UnboundedRegex",
    "RegexEquality",
    "HighCardinalityGrouping",
    "LateAggregation",
    "LongRateRange",
    "HardcodedInterval",
    "SubqueryAbuse",
    "DuplicateExpressions",
    "IncorrectAggregation",
    "RateOnGauge",
    "AmbiguousVectorMatching",
    # Structural rules
    "TooManyPanels",
    "RepeatWithAll",
    "VariableExplosion",
    "ExpensiveVariableQuery",
    "RefreshTooFrequent",
    "RangeTooWide",
    "MissingMaxDataPoints",
    "DuplicateQueries",
    "DatasourceMixing",
    "NoCollapsedRows",
    # Backend rules
    "NoQueryFrontend",
    "DeduplicationOverhead",
    "HighCardinalityTSDB",
]
