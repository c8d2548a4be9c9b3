"""
AnalysisContext - the read-only bundle every rule receives.

Built once per run:
- the typed dashboard model and its query panels
- template variables
- one ParsedExpression per distinct raw expression string
- optional cardinality data and the configured thresholds

Expressions are keyed by the raw string exactly as written in the
dashboard. A query repeated across many panels or targets is substituted
and parsed once, and every rule sees the same entry for it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from dashsense.cardinality.models import CardinalityData
from dashsense.config import Thresholds
from dashsense.dashboard.models import DashboardModel, PanelModel, VariableModel
from dashsense.exceptions import ExpressionParseError
from dashsense.promql import Expr, ParserLimits, substitute, try_parse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedExpression:
    """
    Parse outcome for one raw expression.

    Exactly one of ``expr`` and ``error`` is set. ``substituted`` is what
    the parser saw; ``raw`` is what findings and fixes refer to.
    """

    raw: str
    substituted: str
    expr: Expr | None = None
    error: ExpressionParseError | None = None

    @property
    def ok(self) -> bool:
        return self.expr is not None


def parse_expressions(
    raws: Iterable[str],
    limits: ParserLimits | None = None,
) -> dict[str, ParsedExpression]:
    """
    Substitute and parse each distinct raw expression once.

    A failing expression is recorded with its error; it never stops the
    others from being parsed.
    """
    parsed: dict[str, ParsedExpression] = {}
    for raw in raws:
        if raw in parsed:
            continue
        substituted = substitute(raw)
        expr, error = try_parse(substituted, limits)
        if error is not None:
            logger.debug("Expression failed to parse: %r: %s", raw, error)
        parsed[raw] = ParsedExpression(raw=raw, substituted=substituted, expr=expr, error=error)
    return parsed


@dataclass(frozen=True)
class AnalysisContext:
    """
    Read-only inputs shared by all rules in one run.

    Attributes:
        dashboard: Typed dashboard model
        panels: Non-row panels with at least one expression, nested included
        variables: Template variables in dashboard order
        expressions: Raw expression string to its ParsedExpression
        cardinality: Measured TSDB data, or None when unavailable
        thresholds: Rule thresholds for this run
        prometheus_url: Configured Prometheus URL, empty when not set
    """

    dashboard: DashboardModel
    panels: tuple[PanelModel, ...]
    variables: tuple[VariableModel, ...]
    expressions: Mapping[str, ParsedExpression]
    thresholds: Thresholds
    cardinality: CardinalityData | None = None
    prometheus_url: str = ""

    @classmethod
    def build(
        cls,
        dashboard: DashboardModel,
        thresholds: Thresholds | None = None,
        cardinality: CardinalityData | None = None,
        prometheus_url: str = "",
        limits: ParserLimits | None = None,
    ) -> AnalysisContext:
        """Assemble the context, parsing every distinct expression once."""
        expressions = parse_expressions(dashboard.all_target_exprs(), limits)
        return cls(
            dashboard=dashboard,
            panels=tuple(dashboard.panels_with_targets()),
            variables=tuple(dashboard.variables),
            expressions=MappingProxyType(expressions),
            thresholds=thresholds or Thresholds(),
            cardinality=cardinality,
            prometheus_url=prometheus_url,
        )

    @property
    def has_cardinality(self) -> bool:
        return self.cardinality is not None

    @property
    def parse_error_count(self) -> int:
        return sum(1 for p in self.expressions.values() if not p.ok)

    def parsed(self, raw: str) -> Expr | None:
        """Parse tree for a raw expression, or None if it failed or is unknown."""
        entry = self.expressions.get(raw)
        return entry.expr if entry is not None else None

    def parsed_targets(self) -> Iterator[tuple[PanelModel, str, Expr]]:
        """
        Yield (panel, raw, expr) for every target whose expression parsed.

        Targets repeat per panel, so an expression used twice in one panel
        is yielded twice.
        """
        for panel in self.panels:
            for raw in panel.expressions:
                expr = self.parsed(raw)
                if expr is not None:
                    yield panel, raw, expr

    def raw_targets(self) -> Iterator[tuple[PanelModel, str]]:
        """Yield (panel, raw) for every non-empty target, parsed or not."""
        for panel in self.panels:
            for raw in panel.expressions:
                yield panel, raw

    def estimated_series(self, metric_name: str | None) -> int:
        """Measured series for a metric, else the heuristic default."""
        default = self.thresholds.default_series
        if self.cardinality is None:
            return default
        return self.cardinality.estimated_series(metric_name, default)

    def measured_series(self, metric_name: str | None) -> int | None:
        """Measured series for a metric, or None when not measured."""
        if self.cardinality is None or not self.cardinality.has_metric(metric_name):
            return None
        count = self.cardinality.estimated_series(metric_name, 0)
        return count if count > 0 else None
