"""Deterministic, heuristic checks over unified diffs."""

from mrlens_core.checks.engine import run_checks
from mrlens_core.checks.registry import ALL_CHECKS, CHECKS, checks_by_category, get_check
from mrlens_core.checks.report import format_check_results
from mrlens_core.checks.types import (
    CATEGORY_ORDER,
    DEFAULT_CATEGORY_WEIGHTS,
    Change,
    CheckCategory,
    CheckConfig,
    CheckContext,
    CheckDefinition,
    CheckResult,
    CheckStatus,
)

__all__ = [
    "ALL_CHECKS",
    "CATEGORY_ORDER",
    "CHECKS",
    "DEFAULT_CATEGORY_WEIGHTS",
    "Change",
    "CheckCategory",
    "CheckConfig",
    "CheckContext",
    "CheckDefinition",
    "CheckResult",
    "CheckStatus",
    "checks_by_category",
    "format_check_results",
    "get_check",
    "run_checks",
]
