"""
PromQL abstract syntax tree.

The tree is a closed set of frozen node types, each tagged with a
NodeKind. Algorithms over the tree (cost estimation, rule shape matching)
dispatch on that tag through visit(), or traverse with walk(); there is no
per-node virtual method to override.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Mapping, TypeVar, Union

T = TypeVar("T")


class NodeKind(str, Enum):
    """Tag identifying each node type."""

    NUMBER = "number"
    STRING = "string"
    VECTOR_SELECTOR = "vector_selector"
    MATRIX_SELECTOR = "matrix_selector"
    SUBQUERY = "subquery"
    AGGREGATE = "aggregate"
    CALL = "call"
    BINARY = "binary"
    UNARY = "unary"
    PAREN = "paren"


class MatchOp(str, Enum):
    """Label matcher operators."""

    EQUAL = "="
    NOT_EQUAL = "!="
    REGEX = "=~"
    NOT_REGEX = "!~"

    @property
    def is_regex(self) -> bool:
        return self in (MatchOp.REGEX, MatchOp.NOT_REGEX)


METRIC_NAME_LABEL = "__name__"

SET_OPERATORS = frozenset({"and", "or", "unless"})
COMPARISON_OPERATORS = frozenset({"==", "!=", ">", "<", ">=", "<="})


@dataclass(frozen=True)
class Matcher:
    """A single ``label op "value"`` matcher."""

    name: str
    op: MatchOp
    value: str

    def __str__(self) -> str:
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'{self.name}{self.op.value}"{escaped}"'


@dataclass(frozen=True)
class NumberLiteral:
    value: float
    kind: NodeKind = field(default=NodeKind.NUMBER, init=False)


@dataclass(frozen=True)
class StringLiteral:
    value: str
    kind: NodeKind = field(default=NodeKind.STRING, init=False)


@dataclass(frozen=True)
class VectorSelector:
    """
    An instant vector selector.

    ``name`` is the metric name, taken from the bare identifier or from an
    equality ``__name__`` matcher. ``matchers`` holds every matcher written
    inside the braces, in source order.
    """

    name: str | None
    matchers: tuple[Matcher, ...] = ()
    offset_seconds: float | None = None
    at: str | None = None
    kind: NodeKind = field(default=NodeKind.VECTOR_SELECTOR, init=False)

    @property
    def label_matchers(self) -> tuple[Matcher, ...]:
        """Matchers that scope the selector, i.e. everything but ``__name__``."""
        return tuple(m for m in self.matchers if m.name != METRIC_NAME_LABEL)


@dataclass(frozen=True)
class MatrixSelector:
    """A range vector selector: ``selector[range]``."""

    selector: VectorSelector
    range_seconds: float
    kind: NodeKind = field(default=NodeKind.MATRIX_SELECTOR, init=False)


@dataclass(frozen=True)
class SubqueryExpr:
    """``expr[range:step]``; ``step_seconds`` is None when the step is omitted."""

    expr: "Expr"
    range_seconds: float
    step_seconds: float | None = None
    offset_seconds: float | None = None
    at: str | None = None
    kind: NodeKind = field(default=NodeKind.SUBQUERY, init=False)


@dataclass(frozen=True)
class AggregateExpr:
    """``op [by|without (labels)] ([param,] expr)``."""

    op: str
    expr: "Expr"
    param: "Expr | None" = None
    grouping: tuple[str, ...] = ()
    without: bool = False
    kind: NodeKind = field(default=NodeKind.AGGREGATE, init=False)


@dataclass(frozen=True)
class Call:
    func: str
    args: tuple["Expr", ...] = ()
    kind: NodeKind = field(default=NodeKind.CALL, init=False)


@dataclass(frozen=True)
class VectorMatching:
    """
    Label matching clause of a binary operation.

    ``on`` is True for ``on(...)`` and False for ``ignoring(...)``.
    ``card`` is one of "one-to-one", "many-to-one", "one-to-many".
    """

    on: bool
    labels: tuple[str, ...] = ()
    card: str = "one-to-one"
    include: tuple[str, ...] = ()


@dataclass(frozen=True)
class BinaryExpr:
    op: str
    lhs: "Expr"
    rhs: "Expr"
    matching: VectorMatching | None = None
    return_bool: bool = False
    kind: NodeKind = field(default=NodeKind.BINARY, init=False)

    @property
    def has_explicit_matching(self) -> bool:
        """``on(...)`` (even empty) or a non-empty ``ignoring(...)``."""
        if self.matching is None:
            return False
        return self.matching.on or bool(self.matching.labels)


@dataclass(frozen=True)
class UnaryExpr:
    op: str
    expr: "Expr"
    kind: NodeKind = field(default=NodeKind.UNARY, init=False)


@dataclass(frozen=True)
class ParenExpr:
    expr: "Expr"
    kind: NodeKind = field(default=NodeKind.PAREN, init=False)


Expr = Union[
    NumberLiteral,
    StringLiteral,
    VectorSelector,
    MatrixSelector,
    SubqueryExpr,
    AggregateExpr,
    Call,
    BinaryExpr,
    UnaryExpr,
    ParenExpr,
]


def children(expr: Expr) -> tuple[Expr, ...]:
    """Direct child expressions, in source order."""
    kind = expr.kind
    if kind is NodeKind.MATRIX_SELECTOR:
        return (expr.selector,)
    if kind in (NodeKind.SUBQUERY, NodeKind.UNARY, NodeKind.PAREN):
        return (expr.expr,)
    if kind is NodeKind.AGGREGATE:
        return (expr.param, expr.expr) if expr.param is not None else (expr.expr,)
    if kind is NodeKind.CALL:
        return expr.args
    if kind is NodeKind.BINARY:
        return (expr.lhs, expr.rhs)
    return ()


def walk(expr: Expr | None) -> Iterator[Expr]:
    """Yield ``expr`` and every descendant, depth-first pre-order."""
    if expr is None:
        return
    stack: list[Expr] = [expr]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


def visit(
    expr: Expr,
    handlers: Mapping[NodeKind, Callable[[Expr], T]],
    default: Callable[[Expr], T],
) -> T:
    """
    Dispatch ``expr`` to the handler registered for its kind.

    Recursive algorithms build their handler table once and call visit()
    on children from inside the handlers.
    """
    handler = handlers.get(expr.kind, default)
    return handler(expr)


def find_all(expr: Expr | None, kind: NodeKind) -> list[Expr]:
    """All nodes of one kind in ``expr``, pre-order."""
    return [node for node in walk(expr) if node.kind is kind]


def contains_kind(expr: Expr | None, kind: NodeKind) -> bool:
    return any(node.kind is kind for node in walk(expr))
