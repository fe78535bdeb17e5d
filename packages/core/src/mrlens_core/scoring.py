"""Weighted 0-100 quality score over check results."""

from __future__ import annotations

import math
from typing import Mapping, Optional

from mrlens_core.checks.types import CATEGORY_ORDER, DEFAULT_CATEGORY_WEIGHTS, CheckResult, CheckStatus

FALLBACK_WEIGHT = 10
_POINTS = {CheckStatus.PASS: 10, CheckStatus.WARN: 5, CheckStatus.FAIL: 0}


def _group(results: list[CheckResult]) -> dict[str, list[CheckResult]]:
    groups: dict[str, list[CheckResult]] = {}
    for result in results:
        groups.setdefault(result.category, []).append(result)
    return groups


def calculate_score(results: list[CheckResult], weights: Optional[Mapping] = None) -> int:
    """Score a run from 0 to 100.

    Each category present scores (10*PASS + 5*WARN) / count on a 0-10 scale.
    Category scores are averaged by weight, scaled to 100, rounded half-up
    and clamped. Categories without a configured weight use FALLBACK_WEIGHT.
    An empty run scores 100.
    """
    if not results:
        return 100

    weights = DEFAULT_CATEGORY_WEIGHTS if weights is None else weights
    weighted_total = 0.0
    weight_sum = 0.0

    for category, group in _group(results).items():
        weight = weights.get(category) or FALLBACK_WEIGHT
        category_score = sum(_POINTS[r.status] for r in group) / len(group)
        weighted_total += category_score * weight
        weight_sum += weight

    if weight_sum <= 0:
        return 100

    score = math.floor(weighted_total / weight_sum * 10 + 0.5)
    return max(0, min(100, score))


def category_breakdown(results: list[CheckResult]) -> dict[str, dict[str, int]]:
    """Per-category PASS/WARN/FAIL counts, keyed by category name in report order."""
    groups = _group(results)
    breakdown = {}
    for category in CATEGORY_ORDER:
        group = groups.get(category)
        if not group:
            continue
        breakdown[category.value] = {
            status.value: sum(1 for r in group if r.status == status) for status in CheckStatus
        }
    return breakdown


def summarize_results(results: list[CheckResult]) -> str:
    passed = sum(1 for r in results if r.status == CheckStatus.PASS)
    warned = sum(1 for r in results if r.status == CheckStatus.WARN)
    failed = sum(1 for r in results if r.status == CheckStatus.FAIL)
    return f"{len(results)} checks: {passed} PASS / {warned} WARN / {failed} FAIL"
