"""
Severity-weighted health score.

    score = round(100 * k / (penalty + k)),  penalty = sum of severity weights

with k fixed at 100. Zero penalty scores 100; any finding scores strictly
less and no finding set goes below 1. penalty == k lands on 50 (about
ten High findings).
"""

from __future__ import annotations

from typing import Iterable

from dashsense.analyzer.models import Finding

SCORE_K = 100.0
PERFECT_SCORE = 100


def penalty(findings: Iterable[Finding]) -> int:
    return sum(f.severity.weight for f in findings)


def compute_score(findings: Iterable[Finding]) -> int:
    """Score a finding set; the empty set scores 100."""
    total = penalty(findings)
    if total == 0:
        return PERFECT_SCORE
    score = round(100.0 * SCORE_K / (total + SCORE_K))
    # rounding hits 0 past a penalty of 19,900
    return max(score, 1)


def compute_panel_scores(findings: Iterable[Finding]) -> dict[int, int]:
    """Score each panel named by at least one finding, using only its findings."""
    by_panel: dict[int, list[Finding]] = {}
    for finding in findings:
        for panel_id in dict.fromkeys(finding.panel_ids):
            by_panel.setdefault(panel_id, []).append(finding)
    return {panel_id: compute_score(group) for panel_id, group in by_panel.items()}
