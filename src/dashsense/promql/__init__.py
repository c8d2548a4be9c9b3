"""PromQL preprocessing, parsing and expression-tree utilities."""

from dashsense.promql.ast import Expr, NodeKind, walk
from dashsense.promql.config import DEFAULT_LIMITS, ParserLimits
from dashsense.promql.parser import parse_expression, try_parse
from dashsense.promql.preprocess import (
    expression_hash,
    has_pattern_meta,
    normalize_expression,
    substitute,
)

__all__ = [
    "DEFAULT_LIMITS",
    "Expr",
    "NodeKind",
    "ParserLimits",
    "expression_hash",
    "has_pattern_meta",
    "normalize_expression",
    "parse_expression",
    "substitute",
    "try_parse",
    "walk",
]
