"""Building blocks for check implementations.

Each check module declares its checks with the @check decorator. The decorated
function inspects the context and returns a Verdict; the decorator wraps it in
a CheckDefinition whose evaluate() stamps the key and category onto the
result, so an implementation can never report under the wrong identity.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Callable, Optional

from mrlens_core.checks.types import CheckCategory, CheckContext, CheckDefinition, CheckResult, CheckStatus

_MAX_LISTED = 5

CODE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py")
TS_EXTENSIONS = (".ts", ".tsx")
TEST_PATH_RE = re.compile(r"(\.test\.|\.spec\.|__tests__|(^|/)tests?/|(^|/)test_[^/]+\.py$|_test\.py$|(^|/)conftest\.py$)")


@dataclass(frozen=True)
class Issue:
    file: str
    line: Optional[int] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class Verdict:
    status: CheckStatus
    title: str
    details: str
    file_path: Optional[str] = None
    line_hint: Optional[int] = None


def is_test_path(path: str) -> bool:
    return bool(TEST_PATH_RE.search(path))


def has_extension(path: str, extensions: tuple[str, ...]) -> bool:
    return path.lower().endswith(extensions)


def format_issues(issues: list[Issue], limit: int = _MAX_LISTED) -> str:
    """Render up to `limit` issues as markdown bullets."""
    lines = []
    for issue in issues[:limit]:
        line = f"- `{issue.file}`"
        if issue.line is not None:
            line += f" (line {issue.line})"
        if issue.note:
            line += f": {issue.note}"
        lines.append(line)
    if len(issues) > limit:
        lines.append(f"- ... and {len(issues) - limit} more")
    return "\n".join(lines)


def flag(
    issues: list[Issue],
    status: CheckStatus,
    title: str,
    heading: str,
    advice: str = "",
    limit: int = _MAX_LISTED,
) -> Verdict:
    """Build a non-passing verdict pointing at the first issue."""
    details = f"{heading}\n{format_issues(issues, limit)}"
    if advice:
        details += f"\n\n{advice}"
    first = issues[0]
    return Verdict(status, title, details, file_path=first.file, line_hint=first.line)


def ok(title: str, details: str) -> Verdict:
    return Verdict(CheckStatus.PASS, title, details)


def threshold(thresholds: dict, name: str, default: int) -> int:
    """Read a positive integer threshold, falling back to the default."""
    value = thresholds.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return default
    return int(value)


def check(
    registry: list[CheckDefinition],
    *,
    key: str,
    title: str,
    category: CheckCategory,
    default_severity: CheckStatus,
    rationale: str,
) -> Callable[[Callable[[CheckContext, dict], Verdict]], CheckDefinition]:
    def decorator(fn: Callable[[CheckContext, dict], Verdict]) -> CheckDefinition:
        @functools.wraps(fn)
        def evaluate(ctx: CheckContext, thresholds: Optional[dict] = None) -> CheckResult:
            verdict = fn(ctx, thresholds or {})
            return CheckResult(
                key=key,
                title=verdict.title,
                category=category,
                status=verdict.status,
                details=verdict.details,
                file_path=verdict.file_path,
                line_hint=verdict.line_hint,
            )

        definition = CheckDefinition(
            key=key,
            title=title,
            category=category,
            default_severity=default_severity,
            rationale=rationale,
            evaluate=evaluate,
        )
        registry.append(definition)
        return definition

    return decorator
