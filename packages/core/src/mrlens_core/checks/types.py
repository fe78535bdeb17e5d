"""Types shared by the deterministic check engine and the scorer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional


class CheckStatus(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class CheckCategory(str, Enum):
    SECURITY = "SECURITY"
    CODE_QUALITY = "CODE_QUALITY"
    ARCHITECTURE = "ARCHITECTURE"
    PERFORMANCE = "PERFORMANCE"
    TESTING = "TESTING"
    OBSERVABILITY = "OBSERVABILITY"
    REPO_HYGIENE = "REPO_HYGIENE"


# Reporting and suggestion prioritisation both walk categories in this order.
CATEGORY_ORDER: list[CheckCategory] = list(CheckCategory)

DEFAULT_CATEGORY_WEIGHTS: dict[CheckCategory, float] = {
    CheckCategory.SECURITY: 20,
    CheckCategory.CODE_QUALITY: 15,
    CheckCategory.ARCHITECTURE: 15,
    CheckCategory.PERFORMANCE: 10,
    CheckCategory.TESTING: 15,
    CheckCategory.OBSERVABILITY: 10,
    CheckCategory.REPO_HYGIENE: 5,
}


@dataclass(frozen=True)
class Change:
    """A single file's diff within a changeset."""

    path: str
    diff: str
    status: str = "modified"  # added | removed | renamed | modified


@dataclass
class CheckContext:
    """Everything a check may look at for one review."""

    changes: list[Change] = field(default_factory=list)
    title: Optional[str] = None
    description: Optional[str] = None


@dataclass
class CheckResult:
    key: str
    title: str
    category: CheckCategory
    status: CheckStatus
    details: str
    file_path: Optional[str] = None
    line_hint: Optional[int] = None


@dataclass(frozen=True)
class CheckConfig:
    """Per-tenant override for one check, looked up by check key."""

    check_key: str
    enabled: bool = True
    severity_override: Optional[CheckStatus] = None
    thresholds: dict = field(default_factory=dict)


Evaluate = Callable[[CheckContext, dict], CheckResult]


@dataclass(frozen=True)
class CheckDefinition:
    """A registered check: static description plus its evaluate function.

    evaluate receives the context and the tenant's thresholds (an empty dict
    when none are configured) and must return exactly one CheckResult.
    """

    key: str
    title: str
    category: CheckCategory
    default_severity: CheckStatus
    rationale: str
    evaluate: Evaluate
