"""Testing checks."""

from __future__ import annotations

import re

from mrlens_core.checks.base import CODE_EXTENSIONS, Issue, check, flag, has_extension, is_test_path, ok
from mrlens_core.checks.diff import added_lines, first_added_line
from mrlens_core.checks.types import CheckCategory, CheckDefinition, CheckStatus

TESTING_CHECKS: list[CheckDefinition] = []

_EMPTY_DESCRIPTION_RE = re.compile(r"^\s*(test|it|describe)\s*\(['\"]\s*['\"]|^\s*def\s+test_?\s*\(")
_ASYNC_TEST_RE = re.compile(r"async\s+(test|it|describe)\s*\(|async\s+def\s+test")
_ASSERTION_MARKERS = ("expect(", "assert(", "assert ")
_PENDING_MARKERS = ("Promise", "asyncio.")
_AWAIT_LOOKBACK = 5
_TEST_CODE_RE = re.compile(
    r"\bjest\.|\bvitest\.|\b(describe|it|test)\(|\bexpect\(|\bimport pytest\b|\bpytest\.|unittest\.mock|MagicMock\("
)


@check(
    TESTING_CHECKS,
    key="test-coverage-heuristic",
    title="Test coverage",
    category=CheckCategory.TESTING,
    default_severity=CheckStatus.WARN,
    rationale="Encourages adding tests alongside code changes.",
)
def test_coverage_heuristic(ctx, thresholds):
    code_files = [c for c in ctx.changes if has_extension(c.path, CODE_EXTENSIONS) and not is_test_path(c.path)]
    has_tests = any(is_test_path(c.path) for c in ctx.changes)
    if code_files and not has_tests:
        return flag(
            [Issue(c.path, line=first_added_line(c.diff)) for c in code_files],
            CheckStatus.WARN,
            "No test files changed",
            "Code files changed but no test files detected:",
            "Consider adding or updating tests.",
        )
    detail = "No code files changed." if not code_files else "Test files included with code changes."
    return ok("Test coverage present", detail)


@check(
    TESTING_CHECKS,
    key="missing-test-descriptions",
    title="Missing test descriptions",
    category=CheckCategory.TESTING,
    default_severity=CheckStatus.WARN,
    rationale="Encourages descriptive test names for better maintainability.",
)
def missing_test_descriptions(ctx, thresholds):
    test_files = [c for c in ctx.changes if is_test_path(c.path)]
    if not test_files:
        return ok("No test files changed", "No test files to analyze.")

    issues = []
    for change in test_files:
        for line in added_lines(change.diff):
            if _EMPTY_DESCRIPTION_RE.search(line.text):
                issues.append(Issue(change.path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Missing test descriptions",
            "Found tests without descriptions:",
            "Add descriptive test names.",
        )
    return ok("Test descriptions present", "All tests have descriptions.")


@check(
    TESTING_CHECKS,
    key="async-tests-without-await",
    title="Async tests without await",
    category=CheckCategory.TESTING,
    default_severity=CheckStatus.WARN,
    rationale="Prevents flaky tests from missing await statements.",
)
def async_tests_without_await(ctx, thresholds):
    test_files = [c for c in ctx.changes if is_test_path(c.path)]
    if not test_files:
        return ok("No test files changed", "No test files to analyze.")

    issues = []
    for change in test_files:
        lines = added_lines(change.diff)
        in_async_test = False
        for i, line in enumerate(lines):
            if _ASYNC_TEST_RE.search(line.text):
                in_async_test = True
            elif in_async_test and any(m in line.text for m in _ASSERTION_MARKERS):
                recent = " ".join(l.text for l in lines[max(0, i - _AWAIT_LOOKBACK) : i + 1])
                if "await" not in recent and any(m in line.text for m in _PENDING_MARKERS):
                    issues.append(Issue(change.path, line.line_no))
            elif "}" in line.text or ");" in line.text:
                in_async_test = False
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Async tests without await",
            "Found async test operations without await:",
            "Add await to prevent flaky tests.",
        )
    return ok("Async tests properly awaited", "No missing await statements in async tests.")


@check(
    TESTING_CHECKS,
    key="test-only-code",
    title="Test-only code in production",
    category=CheckCategory.TESTING,
    default_severity=CheckStatus.FAIL,
    rationale="Prevents test utilities from leaking into production code.",
)
def test_only_code(ctx, thresholds):
    issues = []
    for change in ctx.changes:
        if is_test_path(change.path) or not has_extension(change.path, CODE_EXTENSIONS):
            continue
        for line in added_lines(change.diff):
            if _TEST_CODE_RE.search(line.text):
                issues.append(Issue(change.path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.FAIL,
            "Test-only code in production",
            "Found test code in production files:",
            "Remove test utilities from production code.",
        )
    return ok("No test code in production", "No test-only code detected in production files.")
