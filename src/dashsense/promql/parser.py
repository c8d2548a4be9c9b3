"""
PromQL parsing backed by the promql-parser library.

Use the real grammar: promql-parser is a port of the Prometheus parser,
so whatever it accepts is what Prometheus accepts, including function
arity and operand type checks. Its tree is converted into the tagged
nodes in dashsense.promql.ast so the rules and the cost estimator never
touch library types.

ParserLimits still apply around the library call: length and nesting
depth are checked before parsing, the time budget after.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone

import promql_parser

from dashsense.exceptions import ExpressionParseError
from dashsense.promql.ast import (
    SET_OPERATORS,
    AggregateExpr,
    BinaryExpr,
    Call,
    Expr,
    Matcher,
    MatchOp,
    MatrixSelector,
    METRIC_NAME_LABEL,
    NumberLiteral,
    ParenExpr,
    StringLiteral,
    SubqueryExpr,
    UnaryExpr,
    VectorMatching,
    VectorSelector,
)
from dashsense.promql.config import DEFAULT_LIMITS, ParserLimits

logger = logging.getLogger(__name__)

_MATCH_OPS = (
    (promql_parser.MatchOp.Equal, MatchOp.EQUAL),
    (promql_parser.MatchOp.NotEqual, MatchOp.NOT_EQUAL),
    (promql_parser.MatchOp.Re, MatchOp.REGEX),
    (promql_parser.MatchOp.NotRe, MatchOp.NOT_REGEX),
)

_CARDINALITIES = (
    (promql_parser.VectorMatchCardinality.OneToOne, "one-to-one"),
    (promql_parser.VectorMatchCardinality.ManyToOne, "many-to-one"),
    (promql_parser.VectorMatchCardinality.OneToMany, "one-to-many"),
    (promql_parser.VectorMatchCardinality.ManyToMany, "many-to-many"),
)

_OPENERS = frozenset("([")
_CLOSERS = frozenset(")]")
_QUOTES = frozenset("\"'`")


def nesting_depth(text: str) -> int:
    """Deepest parenthesis/bracket nesting in ``text``, ignoring string literals."""
    depth = 0
    deepest = 0
    quote: str | None = None
    escaped = False

    for ch in text:
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\" and quote != "`":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch in _OPENERS:
            depth += 1
            deepest = max(deepest, depth)
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
    return deepest


def _seconds(delta: timedelta | None) -> float | None:
    return delta.total_seconds() if delta is not None else None


def _at(modifier: promql_parser.AtModifier | None) -> str | None:
    if modifier is None:
        return None
    if modifier.type == promql_parser.AtModifierType.Start:
        return "start()"
    if modifier.type == promql_parser.AtModifierType.End:
        return "end()"
    when: datetime | None = modifier.at
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    timestamp = when.timestamp()
    return str(int(timestamp)) if timestamp == int(timestamp) else repr(timestamp)


def _match_op(op: promql_parser.MatchOp) -> MatchOp:
    for library_op, ours in _MATCH_OPS:
        if op == library_op:
            return ours
    raise ExpressionParseError(f"unsupported label matcher operator: {op!r}")


def _cardinality(card: promql_parser.VectorMatchCardinality) -> str:
    for library_card, ours in _CARDINALITIES:
        if card == library_card:
            return ours
    return "one-to-one"


def _selector(node: promql_parser.VectorSelector) -> VectorSelector:
    matchers = [
        Matcher(name=m.name, op=_match_op(m.op), value=m.value)
        for m in node.matchers.matchers
    ]
    for group in node.matchers.or_matchers:
        matchers.extend(
            Matcher(name=m.name, op=_match_op(m.op), value=m.value) for m in group
        )

    name = node.name
    if name is None:
        name = next(
            (m.value for m in matchers if m.name == METRIC_NAME_LABEL and m.op is MatchOp.EQUAL),
            None,
        )

    return VectorSelector(
        name=name,
        matchers=tuple(matchers),
        offset_seconds=_seconds(node.offset),
        at=_at(node.at),
    )


def _matching(op: str, modifier: promql_parser.BinModifier | None) -> VectorMatching | None:
    if modifier is None or modifier.matching is None:
        on, labels = False, ()
    else:
        on = modifier.matching.type == promql_parser.LabelModifierType.Include
        labels = tuple(modifier.matching.labels)

    if op in SET_OPERATORS:
        return VectorMatching(on=on, labels=labels, card="many-to-many")
    if modifier is None:
        return None

    card = _cardinality(modifier.card)
    if modifier.matching is None and card == "one-to-one":
        return None
    return VectorMatching(
        on=on,
        labels=labels,
        card=card,
        include=tuple(modifier.group_labels or ()),
    )


def _convert(node: object) -> Expr:
    """Map one promql-parser node (and its subtree) onto the tagged AST."""
    if isinstance(node, promql_parser.NumberLiteral):
        return NumberLiteral(value=float(node.val))
    if isinstance(node, promql_parser.StringLiteral):
        return StringLiteral(value=node.val)
    if isinstance(node, promql_parser.VectorSelector):
        return _selector(node)
    if isinstance(node, promql_parser.MatrixSelector):
        return MatrixSelector(
            selector=_selector(node.vector_selector),
            range_seconds=node.range.total_seconds(),
        )
    if isinstance(node, promql_parser.SubqueryExpr):
        return SubqueryExpr(
            expr=_convert(node.expr),
            range_seconds=node.range.total_seconds() if node.range is not None else 0.0,
            step_seconds=_seconds(node.step),
            offset_seconds=_seconds(node.offset),
            at=_at(node.at),
        )
    if isinstance(node, promql_parser.AggregateExpr):
        modifier = node.modifier
        return AggregateExpr(
            op=str(node.op).lower(),
            expr=_convert(node.expr),
            param=_convert(node.param) if node.param is not None else None,
            grouping=tuple(modifier.labels) if modifier is not None else (),
            without=(
                modifier is not None
                and modifier.type == promql_parser.AggModifierType.Without
            ),
        )
    if isinstance(node, promql_parser.Call):
        return Call(func=node.func.name, args=tuple(_convert(arg) for arg in node.args))
    if isinstance(node, promql_parser.BinaryExpr):
        op = str(node.op).lower()
        return BinaryExpr(
            op=op,
            lhs=_convert(node.lhs),
            rhs=_convert(node.rhs),
            matching=_matching(op, node.modifier),
            return_bool=node.modifier is not None and node.modifier.return_bool,
        )
    if isinstance(node, promql_parser.UnaryExpr):
        inner = _convert(node.expr)
        # -5 is a literal, not a negation
        if isinstance(inner, NumberLiteral):
            return NumberLiteral(value=-inner.value)
        return UnaryExpr(op="-", expr=inner)
    if isinstance(node, promql_parser.ParenExpr):
        return ParenExpr(expr=_convert(node.expr))
    raise ExpressionParseError(f"unsupported expression node: {type(node).__name__}")


def parse_expression(text: str, limits: ParserLimits | None = None) -> Expr:
    """
    Parse a PromQL expression.

    Args:
        text: Expression text, already passed through substitute() when it
            comes from a dashboard.
        limits: Length, depth and time bounds. Defaults to DEFAULT_LIMITS.

    Returns:
        The root node of the expression tree.

    Raises:
        ExpressionParseError: If the text is not valid PromQL or a limit is
            exceeded.

    Example:
        >>> expr = parse_expression('sum by (job) (rate(http_requests_total[5m]))')
        >>> expr.kind
        <NodeKind.AGGREGATE: 'aggregate'>
    """
    limits = limits or DEFAULT_LIMITS
    if not text.strip():
        raise ExpressionParseError("empty expression", position=0)
    if len(text) > limits.max_length:
        raise ExpressionParseError(
            f"expression too long: {len(text):,} characters (max {limits.max_length:,})"
        )
    depth = nesting_depth(text)
    if depth > limits.max_depth:
        raise ExpressionParseError(
            f"expression nested deeper than {limits.max_depth} levels ({depth})"
        )

    started = time.monotonic()
    try:
        tree = promql_parser.parse(text)
    except Exception as e:
        raise ExpressionParseError(str(e).strip() or "invalid PromQL expression") from e

    try:
        expr = _convert(tree)
    except RecursionError as e:
        raise ExpressionParseError("expression nested too deeply") from e

    elapsed = time.monotonic() - started
    if elapsed > limits.timeout_seconds:
        logger.warning("PromQL parse took %.3fs (budget %.3fs)", elapsed, limits.timeout_seconds)
        raise ExpressionParseError(f"parse timed out after {limits.timeout_seconds}s")
    return expr


def try_parse(
    text: str, limits: ParserLimits | None = None
) -> tuple[Expr | None, ExpressionParseError | None]:
    """Parse without raising: returns ``(expr, None)`` or ``(None, error)``."""
    try:
        return parse_expression(text, limits), None
    except ExpressionParseError as e:
        return None, e
