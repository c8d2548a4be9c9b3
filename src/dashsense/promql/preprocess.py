"""
Expression preprocessing and normalization.

Grafana expressions carry template syntax that is not valid PromQL until
the dashboard renders it: duration macros such as ``$__rate_interval``
and variable references such as ``$job`` or ``${job:regex}``. This module
rewrites them into parseable stand-ins for the parser only. Findings and
fixes always refer to the original raw string.

It also owns the normalization used for duplicate detection and the
string-level patterns shared by rules and the auto-fixer, so a fix and
the rule that requested it can never disagree about what they match.
"""

from __future__ import annotations

import hashlib
import re

DURATION_PLACEHOLDER = "5m"
VARIABLE_PLACEHOLDER = "placeholder"

DURATION_MACROS: tuple[str, ...] = ("__rate_interval", "__interval", "__range")

# Macros that already make a rate window follow the dashboard step
RATE_INTERVAL_MACROS: tuple[str, ...] = (
    "$__rate_interval",
    "${__rate_interval}",
    "$__interval",
    "${__interval}",
)

# Any run of "$" before a known duration macro, braced or bare. The bare
# form must not be followed by an identifier character so that
# "$__interval_ms" is left for the variable pass.
_DURATION_MACRO_RE = re.compile(
    r"\$+(?:\{(?:__rate_interval|__interval|__range)\}"
    r"|(?:__rate_interval|__interval|__range)(?![A-Za-z0-9_]))"
)

_WHITESPACE_RE = re.compile(r"[ \t\n\r]+")

PATTERN_META_CHARS = frozenset(".*+?()[]{}|^$\\")

# A regex matcher with a double-quoted value, spaces allowed around the
# operator: group 1 is the label name, group 2 the value.
REGEX_MATCHER_RE = re.compile(r'([A-Za-z_][A-Za-z0-9_]*)\s*=~\s*"([^"]*)"')

# A literal range bracket directly following rate/irate/increase. Group 1
# keeps everything up to the bracket so the fixer can swap only the
# duration.
HARDCODED_RANGE_RE = re.compile(
    r"\b((?:rate|irate|increase)\s*\([^()\[\]]*)\[(\d+(?:ms|[smhdwy]))\]"
)


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_ident_char(ch: str) -> bool:
    return _is_ident_start(ch) or ("0" <= ch <= "9")


def _replace_variable_refs(text: str) -> str:
    """
    Replace ``$name`` and ``${...}`` references with the placeholder.

    A run of consecutive ``$`` is one sigil. A sigil not followed by an
    identifier start or ``{`` is copied unchanged, as is a ``${`` with no
    closing brace.
    """
    out: list[str] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch != "$":
            out.append(ch)
            i += 1
            continue

        j = i
        while j < n and text[j] == "$":
            j += 1

        if j < n and text[j] == "{":
            close = text.find("}", j)
            if close == -1:
                out.append(text[i:j])
                i = j
                continue
            out.append(VARIABLE_PLACEHOLDER)
            i = close + 1
        elif j < n and _is_ident_start(text[j]):
            k = j + 1
            while k < n and _is_ident_char(text[k]):
                k += 1
            out.append(VARIABLE_PLACEHOLDER)
            i = k
        else:
            out.append(text[i:j])
            i = j

    return "".join(out)


def substitute(raw: str) -> str:
    """
    Rewrite Grafana template syntax into parseable PromQL.

    Two ordered passes:
    1. Duration macros (``$__rate_interval``, ``${__interval}``, ...) become
       ``5m``.
    2. Remaining variable references become ``placeholder``.

    The function is idempotent: ``substitute(substitute(x)) == substitute(x)``.

    Example:
        >>> substitute('rate(http_requests_total{job="$job"}[$__rate_interval])')
        'rate(http_requests_total{job="placeholder"}[5m])'
    """
    result = _DURATION_MACRO_RE.sub(DURATION_PLACEHOLDER, raw)
    return _replace_variable_refs(result)


def normalize_expression(raw: str) -> str:
    """Strip insignificant whitespace (space, tab, newline, carriage return)."""
    return _WHITESPACE_RE.sub("", raw)


def expression_hash(raw: str) -> str:
    """
    Hash of the normalized expression for duplicate grouping.

    Returns:
        16-character hex string
    """
    return hashlib.sha256(normalize_expression(raw).encode()).hexdigest()[:16]


def has_pattern_meta(value: str) -> bool:
    """
    Whether a matcher value uses any regex metacharacter.

    ``has_pattern_meta("200")`` is False; ``has_pattern_meta(".*error.*")``
    is True.
    """
    return any(ch in PATTERN_META_CHARS for ch in value)


def contains_rate_interval_macro(raw: str) -> bool:
    """Whether the raw expression already uses a step-following interval macro."""
    return any(macro in raw for macro in RATE_INTERVAL_MACROS)


def regex_matchers(raw: str) -> list[tuple[str, str]]:
    """``(label, value)`` for every double-quoted ``=~`` matcher as written in ``raw``."""
    return [(m.group(1), m.group(2)) for m in REGEX_MATCHER_RE.finditer(raw)]


def rewrite_exact_regex_matchers(raw: str) -> str:
    """Turn ``label=~"value"`` into ``label="value"`` wherever the value has no metacharacters."""

    def _replace(match: re.Match[str]) -> str:
        name, value = match.group(1), match.group(2)
        if has_pattern_meta(value):
            return match.group(0)
        return f'{name}="{value}"'

    return REGEX_MATCHER_RE.sub(_replace, raw)


def rewrite_hardcoded_ranges(raw: str) -> str:
    """Swap literal rate windows for ``$__rate_interval`` unless a macro is present."""
    if contains_rate_interval_macro(raw):
        return raw
    return HARDCODED_RANGE_RE.sub(r"\1[$__rate_interval]", raw)
