"""Duration literals shared by PromQL and Grafana time settings."""

from __future__ import annotations

import re

DURATION_UNITS: dict[str, float] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
    "w": 7 * 86400.0,
    "y": 365 * 86400.0,
}

_PART_RE = re.compile(r"(\d+)(ms|[smhdwy])")
DURATION_RE = re.compile(r"^(?:\d+(?:ms|[smhdwy]))+$")

# Grafana time settings add "M" (months of 30 days); PromQL has no month unit
RELATIVE_UNITS: dict[str, float] = {**DURATION_UNITS, "M": 30 * 86400.0}

_RELATIVE_PART_RE = re.compile(r"(\d+)(ms|[smhdwMy])")

# Grafana relative time, e.g. "now-7d", "now-6M" or "now-1d/d"
_RELATIVE_RE = re.compile(r"^now-((?:\d+(?:ms|[smhdwMy]))+)(?:/[smhdwMy])?$")


def is_duration(text: str) -> bool:
    """Whether ``text`` is a (possibly compound) duration literal like ``1h30m``."""
    return bool(DURATION_RE.match(text))


def parse_duration(text: str) -> float:
    """
    Parse a duration literal into seconds.

    Accepts compound forms ("1h30m") and every PromQL unit from ``ms`` to
    ``y``.

    Raises:
        ValueError: If ``text`` is not a duration literal.
    """
    text = text.strip()
    if not DURATION_RE.match(text):
        raise ValueError(f"invalid duration {text!r}")
    return sum(int(n) * DURATION_UNITS[unit] for n, unit in _PART_RE.findall(text))


def parse_relative_range(value: str) -> float:
    """
    Parse a Grafana "now-X" relative time into seconds.

    Accepts every PromQL unit plus Grafana's month (``now-6M``). A
    rounding suffix ("now-1d/d") is ignored.

    Raises:
        ValueError: If ``value`` is not a relative range.
    """
    match = _RELATIVE_RE.match(value.strip())
    if not match:
        raise ValueError(f"not a relative range: {value!r}")
    return sum(
        int(n) * RELATIVE_UNITS[unit] for n, unit in _RELATIVE_PART_RE.findall(match.group(1))
    )


def format_duration(seconds: float) -> str:
    """
    Render seconds as the shortest compound duration, e.g. 5400 -> "1h30m".

    Sub-millisecond remainders are dropped; zero renders as "0s".
    """
    millis = int(round(seconds * 1000))
    if millis <= 0:
        return "0s"

    parts: list[str] = []
    for unit in ("y", "w", "d", "h", "m", "s", "ms"):
        size = int(DURATION_UNITS[unit] * 1000)
        count, millis = divmod(millis, size)
        if count:
            parts.append(f"{count}{unit}")
    return "".join(parts)
