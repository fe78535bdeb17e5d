"""Static table of every built-in check, in evaluation order."""

from __future__ import annotations

from typing import Optional

from mrlens_core.checks.architecture import ARCHITECTURE_CHECKS
from mrlens_core.checks.code_quality import CODE_QUALITY_CHECKS
from mrlens_core.checks.observability import OBSERVABILITY_CHECKS
from mrlens_core.checks.performance import PERFORMANCE_CHECKS
from mrlens_core.checks.repo_hygiene import REPO_HYGIENE_CHECKS
from mrlens_core.checks.security import SECURITY_CHECKS
from mrlens_core.checks.testing import TESTING_CHECKS
from mrlens_core.checks.types import CheckCategory, CheckDefinition

ALL_CHECKS: list[CheckDefinition] = [
    *SECURITY_CHECKS,
    *CODE_QUALITY_CHECKS,
    *ARCHITECTURE_CHECKS,
    *PERFORMANCE_CHECKS,
    *TESTING_CHECKS,
    *OBSERVABILITY_CHECKS,
    *REPO_HYGIENE_CHECKS,
]

CHECKS: dict[str, CheckDefinition] = {c.key: c for c in ALL_CHECKS}

if len(CHECKS) != len(ALL_CHECKS):
    raise RuntimeError("Duplicate check key in the built-in registry")


def get_check(key: str) -> Optional[CheckDefinition]:
    return CHECKS.get(key)


def checks_by_category(category: CheckCategory | str) -> list[CheckDefinition]:
    category = CheckCategory(category)
    return [c for c in ALL_CHECKS if c.category == category]
