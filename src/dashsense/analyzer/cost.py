"""
Relative query cost estimation.

A bottom-up fold over the expression tree. The number is unit-less and
only meaningful for ranking queries against each other:

    selector      series(metric)                  (measured, else default)
    range         inner * range / step
    aggregation   inner * (1 + 0.2 * depth + 0.1 * len(grouping))
    call          sum(args) * FUNCTION_COSTS.get(name, 1.0)
    binary        lhs + rhs
    subquery      inner * max(1, range / (sub_step or step))
    literals      0

``depth`` counts enclosing aggregations only; it does not grow through
calls, binaries or parentheses.
"""

from __future__ import annotations

from typing import Callable

from dashsense.cardinality.models import DEFAULT_HEURISTIC_SERIES, CardinalityData
from dashsense.promql.ast import (
    AggregateExpr,
    BinaryExpr,
    Call,
    Expr,
    MatrixSelector,
    NodeKind,
    SubqueryExpr,
    VectorSelector,
    visit,
)

DEFAULT_STEP_SECONDS = 15.0

FUNCTION_COSTS: dict[str, float] = {
    # rate family
    "rate": 1.0,
    "irate": 1.0,
    "increase": 1.0,
    "delta": 1.0,
    "idelta": 1.0,
    # quantiles
    "histogram_quantile": 2.0,
    "quantile_over_time": 2.0,
    # sorting
    "sort": 0.5,
    "sort_desc": 0.5,
    # label rewriting
    "label_replace": 0.3,
    "label_join": 0.3,
    # window aggregates
    "avg_over_time": 1.5,
    "sum_over_time": 1.5,
    "max_over_time": 1.5,
    "min_over_time": 1.5,
    "count_over_time": 1.5,
    "stddev_over_time": 1.5,
    # existence checks
    "absent": 0.1,
    "absent_over_time": 0.1,
    # scalars and constants
    "vector": 0.01,
    "scalar": 0.01,
    "time": 0.01,
}

AGGREGATION_DEPTH_FACTOR = 0.2
GROUPING_LABEL_FACTOR = 0.1


def function_cost(name: str) -> float:
    return FUNCTION_COSTS.get(name, 1.0)


def estimate_query_cost(
    expr: Expr | None,
    cardinality: CardinalityData | None = None,
    step_seconds: float = DEFAULT_STEP_SECONDS,
    default_series: int = DEFAULT_HEURISTIC_SERIES,
) -> float:
    """
    Estimate the relative cost of evaluating ``expr``.

    Args:
        expr: Parsed expression; None costs 0
        cardinality: Measured series counts; heuristic default when None
        step_seconds: Query resolution step; non-positive means 15s
        default_series: Series assumed for an unmeasured metric

    Example:
        >>> estimate_query_cost(parse_expression("up"))
        1000.0
        >>> estimate_query_cost(parse_expression("up[5m]"), step_seconds=15)
        20000.0
    """
    if expr is None:
        return 0.0
    if step_seconds <= 0:
        step_seconds = DEFAULT_STEP_SECONDS
    return _CostEstimator(cardinality, step_seconds, default_series).cost(expr, 0)


class _CostEstimator:
    def __init__(
        self,
        cardinality: CardinalityData | None,
        step_seconds: float,
        default_series: int,
    ) -> None:
        self.cardinality = cardinality
        self.step = step_seconds
        self.default_series = default_series

    def cost(self, expr: Expr, depth: int) -> float:
        handlers: dict[NodeKind, Callable[[Expr], float]] = {
            NodeKind.VECTOR_SELECTOR: self._selector,
            NodeKind.MATRIX_SELECTOR: lambda e: self._matrix(e, depth),
            NodeKind.AGGREGATE: lambda e: self._aggregate(e, depth),
            NodeKind.CALL: lambda e: self._call(e, depth),
            NodeKind.BINARY: lambda e: self._binary(e, depth),
            NodeKind.SUBQUERY: lambda e: self._subquery(e, depth),
            NodeKind.PAREN: lambda e: self.cost(e.expr, depth),
            NodeKind.UNARY: lambda e: self.cost(e.expr, depth),
        }
        return visit(expr, handlers, lambda e: 0.0)

    def _selector(self, sel: VectorSelector) -> float:
        if self.cardinality is None:
            return float(self.default_series)
        return float(self.cardinality.estimated_series(sel.name, self.default_series))

    def _matrix(self, node: MatrixSelector, depth: int) -> float:
        inner = self.cost(node.selector, depth)
        range_seconds = node.range_seconds if node.range_seconds > 0 else self.step
        return inner * (range_seconds / self.step)

    def _aggregate(self, node: AggregateExpr, depth: int) -> float:
        inner = self.cost(node.expr, depth + 1)
        factor = 1.0 + AGGREGATION_DEPTH_FACTOR * depth + GROUPING_LABEL_FACTOR * len(node.grouping)
        return inner * factor

    def _call(self, node: Call, depth: int) -> float:
        total = sum(self.cost(arg, depth) for arg in node.args)
        return total * function_cost(node.func)

    def _binary(self, node: BinaryExpr, depth: int) -> float:
        return self.cost(node.lhs, depth) + self.cost(node.rhs, depth)

    def _subquery(self, node: SubqueryExpr, depth: int) -> float:
        inner = self.cost(node.expr, depth)
        step = node.step_seconds if node.step_seconds and node.step_seconds > 0 else self.step
        evaluations = max(1.0, node.range_seconds / step)
        return inner * evaluations
