"""Observability checks."""

from __future__ import annotations

import re

from mrlens_core.checks.base import CODE_EXTENSIONS, Issue, check, flag, has_extension, ok
from mrlens_core.checks.diff import added_lines_by_file
from mrlens_core.checks.types import CheckCategory, CheckDefinition, CheckStatus

OBSERVABILITY_CHECKS: list[CheckDefinition] = []

_ASYNC_MARKERS = ("await ", ".then(")
_HANDLER_MARKERS = ("catch", "try", "except")
_CRITICAL_OPS = ("create", "delete", "update", "remove", "save", "destroy")
_LOG_MARKERS = ("logger", "log", "console")
_INTERPOLATED_LOG_RE = re.compile(r"console\.log\(.*\$\{|(logger|logging)\.\w+\(\s*f[\"']")


def _window(lines, i: int, before: int, after: int) -> str:
    return " ".join(line.text for line in lines[max(0, i - before) : i + after])


@check(
    OBSERVABILITY_CHECKS,
    key="missing-error-handling",
    title="Missing error handling",
    category=CheckCategory.OBSERVABILITY,
    default_severity=CheckStatus.WARN,
    rationale="Encourages proper error handling and logging.",
)
def missing_error_handling(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        for i, line in enumerate(lines):
            if not any(m in line.text for m in _ASYNC_MARKERS):
                continue
            if not any(m in _window(lines, i, 3, 3) for m in _HANDLER_MARKERS):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Missing error handling",
            "Found async operations without error handling:",
            "Add try-catch or error callbacks.",
        )
    return ok("Error handling present", "No missing error handling detected.")


@check(
    OBSERVABILITY_CHECKS,
    key="missing-logging",
    title="Missing logging",
    category=CheckCategory.OBSERVABILITY,
    default_severity=CheckStatus.WARN,
    rationale="Encourages logging for critical operations.",
)
def missing_logging(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        if not has_extension(path, CODE_EXTENSIONS):
            continue
        for i, line in enumerate(lines):
            if not any(op in line.text for op in _CRITICAL_OPS):
                continue
            if any(m in line.text for m in _LOG_MARKERS):
                continue
            context = _window(lines, i, 5, 5)
            if "logger" not in context and "log(" not in context:
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Missing logging",
            "Found critical operations without logging:",
            "Consider adding logging for observability.",
        )
    return ok("Logging present", "No missing logging detected.")


@check(
    OBSERVABILITY_CHECKS,
    key="unstructured-logging",
    title="Unstructured logging",
    category=CheckCategory.OBSERVABILITY,
    default_severity=CheckStatus.WARN,
    rationale="Encourages structured logging for better observability.",
)
def unstructured_logging(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        for line in lines:
            if _INTERPOLATED_LOG_RE.search(line.text):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Unstructured logging",
            "Found unstructured logging:",
            "Pass values as logger arguments or structured fields instead of interpolating them.",
        )
    return ok("Structured logging used", "No unstructured logging detected.")
