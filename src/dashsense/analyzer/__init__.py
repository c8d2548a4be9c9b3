"""Analyzer module - rule engine, findings, cost estimation and scoring."""

from dashsense.analyzer.analyzer import Analyzer
from dashsense.analyzer.context import AnalysisContext, ParsedExpression, parse_expressions
from dashsense.analyzer.cost import FUNCTION_COSTS, estimate_query_cost
from dashsense.analyzer.models import (
    Finding,
    Report,
    ReportMetadata,
    RuleRun,
    RuleRunStatus,
    Severity,
)
from dashsense.analyzer.registry import RuleRegistry
from dashsense.analyzer.rules import Rule, RuleConfig, default_rules
from dashsense.analyzer.scoring import compute_panel_scores, compute_score, penalty

__all__ = [
    "Analyzer",
    "AnalysisContext",
    "ParsedExpression",
    "parse_expressions",
    "FUNCTION_COSTS",
    "estimate_query_cost",
    "Finding",
    "Report",
    "ReportMetadata",
    "RuleRun",
    "RuleRunStatus",
    "Severity",
    "RuleRegistry",
    "Rule",
    "RuleConfig",
    "default_rules",
    "compute_panel_scores",
    "compute_score",
    "penalty",
]
