"""
Auto-fixer for the raw dashboard document.

Works on the loosely-typed dict, never on DashboardModel, so every field
the typed model does not know about survives the round trip. The input
is deep-copied; callers always get a new document back.

Each procedure is idempotent and only writes leaf values: it either
overwrites a string/number or, when the target is missing, creates it
with the fixed safe value.

    Q3  =~"value" -> ="value" where value has no regex metacharacters
    Q7  rate(m[5m]) -> rate(m[$__rate_interval]) unless a macro is present
    D5  refresh -> "1m"
    D6  time.from -> "now-1h"
    D7  maxDataPoints -> 1000 on time-series panels without a positive value

Usage:
    from dashsense.fixer import apply_fixes

    patched, count = apply_fixes(raw_dashboard, report.findings)
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Callable, Iterable, Iterator

from dashsense.analyzer.models import Finding
from dashsense.dashboard.models import TIME_SERIES_PANEL_TYPES, coerce_max_data_points
from dashsense.exceptions import FixError
from dashsense.promql.preprocess import rewrite_exact_regex_matchers, rewrite_hardcoded_ranges

logger = logging.getLogger(__name__)

SAFE_REFRESH = "1m"
SAFE_TIME_FROM = "now-1h"
SAFE_MAX_DATA_POINTS = 1000

FixProcedure = Callable[[dict[str, Any], Finding], None]


def iter_raw_panels(dashboard: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Top-level panels followed by each one's nested panels; non-dicts skipped."""
    panels = dashboard.get("panels")
    if not isinstance(panels, list):
        return
    for panel in panels:
        if not isinstance(panel, dict):
            continue
        yield panel
        nested = panel.get("panels")
        if isinstance(nested, list):
            for child in nested:
                if isinstance(child, dict):
                    yield child


def _rewrite_target_exprs(dashboard: dict[str, Any], rewrite: Callable[[str], str]) -> None:
    for panel in iter_raw_panels(dashboard):
        targets = panel.get("targets")
        if not isinstance(targets, list):
            continue
        for target in targets:
            if not isinstance(target, dict):
                continue
            expr = target.get("expr")
            if isinstance(expr, str) and expr:
                target["expr"] = rewrite(expr)


def fix_regex_equality(dashboard: dict[str, Any], finding: Finding) -> None:
    _rewrite_target_exprs(dashboard, rewrite_exact_regex_matchers)


def fix_hardcoded_interval(dashboard: dict[str, Any], finding: Finding) -> None:
    _rewrite_target_exprs(dashboard, rewrite_hardcoded_ranges)


def fix_refresh(dashboard: dict[str, Any], finding: Finding) -> None:
    dashboard["refresh"] = SAFE_REFRESH


def fix_time_range(dashboard: dict[str, Any], finding: Finding) -> None:
    time_range = dashboard.get("time")
    if not isinstance(time_range, dict):
        time_range = {"to": "now"}
        dashboard["time"] = time_range
    time_range["from"] = SAFE_TIME_FROM


def fix_max_data_points(dashboard: dict[str, Any], finding: Finding) -> None:
    for panel in iter_raw_panels(dashboard):
        if panel.get("type") not in TIME_SERIES_PANEL_TYPES:
            continue
        current = coerce_max_data_points(panel.get("maxDataPoints"))
        if current is None or current <= 0:
            panel["maxDataPoints"] = SAFE_MAX_DATA_POINTS


FIX_PROCEDURES: dict[str, FixProcedure] = {
    "Q3": fix_regex_equality,
    "Q7": fix_hardcoded_interval,
    "D5": fix_refresh,
    "D6": fix_time_range,
    "D7": fix_max_data_points,
}


def can_fix(finding: Finding) -> bool:
    return finding.auto_fixable and finding.rule_id in FIX_PROCEDURES


def apply_fixes(
    dashboard: dict[str, Any],
    findings: Iterable[Finding],
) -> tuple[dict[str, Any], int]:
    """
    Apply every applicable fix to a copy of the raw dashboard.

    Findings that are not auto-fixable, or whose rule has no procedure,
    are skipped. The count is the number of findings acted on.

    Raises:
        FixError: If the document is not a JSON object or a procedure
            cannot patch it.
    """
    if not isinstance(dashboard, dict):
        raise FixError(f"Dashboard must be a JSON object, got {type(dashboard).__name__}")

    patched = copy.deepcopy(dashboard)
    fix_count = 0

    for finding in findings:
        if not can_fix(finding):
            continue
        procedure = FIX_PROCEDURES[finding.rule_id]
        try:
            procedure(patched, finding)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise FixError(f"Applying fix for {finding.rule_id} failed: {e}") from e
        fix_count += 1
        logger.debug("Applied fix for %s", finding.rule_id)

    return patched, fix_count


def apply_fixes_json(
    text: str | bytes,
    findings: Iterable[Finding],
    indent: int = 2,
) -> tuple[str, int]:
    """apply_fixes() over serialized JSON, returning re-encoded JSON."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FixError(f"Parsing dashboard JSON failed: {e}") from e

    patched, fix_count = apply_fixes(data, findings)

    try:
        return json.dumps(patched, indent=indent, ensure_ascii=False), fix_count
    except (TypeError, ValueError) as e:
        raise FixError(f"Encoding patched dashboard failed: {e}") from e
