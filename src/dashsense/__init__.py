"""DashSense - Static performance analyzer for Grafana dashboards and PromQL."""

__version__ = "0.3.0"
__license__ = "MIT"

# Exception hierarchy (import first so other modules can use it)
from dashsense.exceptions import (
    DashSenseError,
    AnalyzerError,
    RuleError,
    ConfigurationError,
    DashboardParseError,
    ExpressionParseError,
    CardinalityError,
    FixError,
)

# Public API exports
from dashsense.analyzer.analyzer import Analyzer
from dashsense.analyzer.context import AnalysisContext
from dashsense.analyzer.cost import estimate_query_cost
from dashsense.analyzer.models import (
    Finding,
    Report,
    ReportMetadata,
    RuleRun,
    RuleRunStatus,
    Severity,
)
from dashsense.analyzer.registry import RuleRegistry
from dashsense.analyzer.rules import Rule, default_rules
from dashsense.analyzer.scoring import compute_score
from dashsense.cardinality import CardinalityClient, CardinalityData
from dashsense.config import (
    Config,
    Thresholds,
    get_config,
)
from dashsense.dashboard import DashboardModel, load_dashboard
from dashsense.engine import AnalysisService, FixResult
from dashsense.fixer import apply_fixes
from dashsense.promql import parse_expression, substitute

__all__ = [
    # Exception hierarchy
    "DashSenseError",
    "AnalyzerError",
    "RuleError",
    "ConfigurationError",
    "DashboardParseError",
    "ExpressionParseError",
    "CardinalityError",
    "FixError",
    # Core
    "Analyzer",
    "AnalysisContext",
    "AnalysisService",
    "FixResult",
    "RuleRegistry",
    "Rule",
    "default_rules",
    "load_dashboard",
    "apply_fixes",
    "estimate_query_cost",
    "compute_score",
    # Models
    "DashboardModel",
    "Finding",
    "Report",
    "ReportMetadata",
    "RuleRun",
    "RuleRunStatus",
    "Severity",
    # PromQL
    "parse_expression",
    "substitute",
    # Enrichment
    "CardinalityClient",
    "CardinalityData",
    # Configuration
    "Config",
    "Thresholds",
    "get_config",
    # Metadata
    "__version__",
    "__license__",
]
