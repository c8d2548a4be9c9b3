"""
Base class for analyzer rules.

All rules inherit from Rule and implement check(). A rule is a pure,
stateless predicate over the AnalysisContext: the same context always
yields the same findings, and a rule never raises for input it cannot
classify; it simply reports nothing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable

from pydantic import BaseModel, ConfigDict

from dashsense.analyzer.models import Finding, Severity
from dashsense.promql.ast import METRIC_NAME_LABEL, Expr, MatchOp, NodeKind, walk

if TYPE_CHECKING:
    from dashsense.analyzer.context import AnalysisContext
    from dashsense.dashboard.models import PanelModel
    from dashsense.promql.ast import VectorSelector


class RuleConfig(BaseModel):
    """
    Base configuration for all rules.

    All configs support 'enabled' to allow disabling rules.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True


class Rule(ABC):
    """
    Abstract base class for analyzer rules.

    Attributes:
        rule_id: Stable identifier ("Q1", "D5", "B6"), never renumbered
        version: Semver string, bump when detection logic changes
        severity: Severity of findings from this rule
        description: One-line description for `dashsense rules`
        auto_fixable: Whether the fixer has a procedure for this rule
        requires_cardinality: Skip the rule when no TSDB data is available
        config_schema: Pydantic model for rule configuration

    Example:
        class TooManyPanels(Rule):
            rule_id = "D1"
            severity = Severity.HIGH
            description = "Too many visible panels"

            def check(self, ctx):
                count = len(ctx.dashboard.visible_panels())
                if count <= ctx.thresholds.max_visible_panels:
                    return []
                return [self.finding(title="Too many visible panels", ...)]
    """

    rule_id: str
    version: str = "1.0.0"
    severity: Severity
    description: str = ""
    auto_fixable: bool = False
    requires_cardinality: bool = False

    config_schema: type[RuleConfig] = RuleConfig

    def __init__(self, config: RuleConfig | dict[str, Any] | None = None) -> None:
        if config is None:
            self.config = self.config_schema()
        elif isinstance(config, dict):
            self.config = self.config_schema(**config)
        else:
            self.config = config

    @abstractmethod
    def check(self, ctx: AnalysisContext) -> list[Finding]:
        """
        Inspect the context and return findings.

        Returns:
            List of findings, or an empty list if nothing was detected.
        """

    def finding(
        self,
        *,
        title: str,
        panels: Iterable[PanelModel] = (),
        confidence: float = 1.0,
        auto_fixable: bool | None = None,
        **fields: Any,
    ) -> Finding:
        """
        Build a Finding carrying this rule's id, severity and fixability.

        ``auto_fixable`` overrides the class default for findings the fixer
        cannot act on.
        """
        panel_list = list(panels)
        return Finding(
            rule_id=self.rule_id,
            severity=self.severity,
            panel_ids=tuple(p.id for p in panel_list),
            panel_titles=tuple(p.title for p in panel_list),
            title=title,
            auto_fixable=self.auto_fixable if auto_fixable is None else auto_fixable,
            confidence=confidence,
            **fields,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.rule_id} v{self.version}>"


# =============================================================================
# Expression helpers shared by the Q rules
# =============================================================================

RATE_FUNCTIONS = frozenset({"rate", "irate", "increase", "delta", "idelta"})
INTERVAL_FUNCTIONS = frozenset({"rate", "irate", "increase"})

UNKNOWN_METRIC = "<unknown>"


def is_unscoped(selector: VectorSelector) -> bool:
    """True when a selector has no matcher other than the metric name."""
    return not selector.label_matchers


def selector_metric_name(selector: VectorSelector) -> str | None:
    """Metric name from the identifier, else from an equality ``__name__`` matcher."""
    if selector.name:
        return selector.name
    for matcher in selector.matchers:
        if matcher.name == METRIC_NAME_LABEL and matcher.op is MatchOp.EQUAL:
            return matcher.value
    return None


def first_metric_name(expr: Expr | None) -> str | None:
    """Name of the first selector (pre-order) in ``expr`` that has one."""
    for node in walk(expr):
        if node.kind is NodeKind.VECTOR_SELECTOR:
            name = selector_metric_name(node)
            if name:
                return name
    return None


def primary_metric_name(expr: Expr) -> str | None:
    """
    Metric a simple operand reads, looking through ranges, parentheses and
    a call's first argument. Anything more complex has no primary metric.
    """
    kind = expr.kind
    if kind is NodeKind.VECTOR_SELECTOR:
        return expr.name
    if kind is NodeKind.MATRIX_SELECTOR:
        return primary_metric_name(expr.selector)
    if kind is NodeKind.PAREN:
        return primary_metric_name(expr.expr)
    if kind is NodeKind.CALL and expr.args:
        return primary_metric_name(expr.args[0])
    return None


def truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
