"""Code quality checks."""

from __future__ import annotations

import re

from mrlens_core.checks.base import TS_EXTENSIONS, Issue, check, flag, has_extension, ok, threshold
from mrlens_core.checks.diff import ADDED, added_lines_by_file, walk_diff
from mrlens_core.checks.types import CheckCategory, CheckDefinition, CheckStatus

CODE_QUALITY_CHECKS: list[CheckDefinition] = []

_TODO_MARKERS = ("TODO", "FIXME", "HACK")
_CONSOLE_RE = re.compile(r"console\.(log|debug|info)\b")
_DEBUGGER_RE = re.compile(r"\bdebugger\b|\bbreakpoint\(\)|pdb\.set_trace\(")
_PRINT_RE = re.compile(r"^\s*print\(")
_ANY_MARKERS = (": any", "as any", "<any>")
_REMOTE_CALL_RE = re.compile(r"fetch\(|axios\.|\.then\(|requests\.(get|post|put|patch|delete)\(|httpx\.")
_TRY_LOOKBACK = 20
_LONG_CONDITION_RE = re.compile(r"\b(if|while)\s*\(?[^:{]{100,}")
_BOOL_OPS_RE = re.compile(r"&&|\|\||\band\b|\bor\b")
_MAGIC_RE = re.compile(r"\b(\d{3,}|\d+\.\d+)\b")
_MAGIC_SKIP_LINE_RE = re.compile(r"^\s*(//|#)|/\*|\bimport\b|\bexport\b|\brequire\b|\bfrom\b")
_MAGIC_SKIP_WORDS_RE = re.compile(r"version|date|timestamp|port|timeout", re.IGNORECASE)
_DUPLICATE_BLOCK = 5


@check(
    CODE_QUALITY_CHECKS,
    key="todo-fixme",
    title="TODO/FIXME comments",
    category=CheckCategory.CODE_QUALITY,
    default_severity=CheckStatus.FAIL,
    rationale="Prevents leaving temporary comments that should be addressed.",
)
def todo_fixme(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        for line in lines:
            upper = line.text.upper()
            if any(marker in upper for marker in _TODO_MARKERS):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(issues, CheckStatus.FAIL, "TODO/FIXME comments found", "Found TODO/FIXME comments:")
    return ok("No TODO/FIXME comments", "No TODO/FIXME comments found.")


@check(
    CODE_QUALITY_CHECKS,
    key="debug-logging",
    title="Debug logging",
    category=CheckCategory.CODE_QUALITY,
    default_severity=CheckStatus.FAIL,
    rationale="Prevents committing debug statements that should be removed.",
)
def debug_logging(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        for line in lines:
            if _CONSOLE_RE.search(line.text):
                issues.append(Issue(path, line.line_no, "console"))
            elif _DEBUGGER_RE.search(line.text):
                issues.append(Issue(path, line.line_no, "debugger"))
            elif path.endswith(".py") and _PRINT_RE.search(line.text):
                issues.append(Issue(path, line.line_no, "print"))
    if issues:
        return flag(issues, CheckStatus.FAIL, "Debug logging found", "Found debug logging:")
    return ok("No debug logging", "No console.log, print, or debugger statements found.")


@check(
    CODE_QUALITY_CHECKS,
    key="any-types",
    title="Any types in TypeScript",
    category=CheckCategory.CODE_QUALITY,
    default_severity=CheckStatus.WARN,
    rationale="Encourages type safety by avoiding any types.",
)
def any_types(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        if not has_extension(path, TS_EXTENSIONS):
            continue
        for line in lines:
            if any(marker in line.text for marker in _ANY_MARKERS):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Any types found",
            "Found `any` types:",
            "Consider using more specific types.",
        )
    return ok("No any types", "No `any` types found.")


@check(
    CODE_QUALITY_CHECKS,
    key="missing-try-catch",
    title="Missing try-catch for async calls",
    category=CheckCategory.CODE_QUALITY,
    default_severity=CheckStatus.WARN,
    rationale="Encourages proper error handling for async operations.",
)
def missing_try_catch(ctx, thresholds):
    issues = []
    for change in ctx.changes:
        # Remember the diff positions of added lines that open a try block.
        try_positions: list[int] = []
        for line in walk_diff(change.diff):
            if line.kind != ADDED:
                continue
            if "try" in line.text:
                try_positions.append(line.index)
            if not _REMOTE_CALL_RE.search(line.text):
                continue
            if not any(line.index - _TRY_LOOKBACK <= pos < line.index for pos in try_positions):
                issues.append(Issue(change.path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Missing try-catch for async calls",
            "Found async calls without try-catch:",
            "Consider adding error handling.",
        )
    return ok("Error handling present", "No obvious missing try-catch blocks.")


@check(
    CODE_QUALITY_CHECKS,
    key="long-functions",
    title="Long functions",
    category=CheckCategory.CODE_QUALITY,
    default_severity=CheckStatus.WARN,
    rationale="Encourages smaller, more maintainable functions.",
)
def long_functions(ctx, thresholds):
    max_lines = threshold(thresholds, "maxLines", 100)
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        # A run of consecutive non-blank, non-comment added lines approximates one function.
        run_start = None
        run_length = 0
        for line in lines + [None]:
            stripped = line.text.strip() if line is not None else ""
            if stripped and not stripped.startswith(("//", "#")):
                if run_length == 0:
                    run_start = line.line_no
                run_length += 1
                continue
            if run_length > max_lines:
                issues.append(Issue(path, run_start, f"{run_length} lines"))
            run_length = 0
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Long functions detected",
            f"Found functions exceeding {max_lines} lines:",
            "Consider breaking into smaller functions.",
        )
    return ok("Function length reasonable", f"No functions exceed {max_lines} lines.")


@check(
    CODE_QUALITY_CHECKS,
    key="complex-conditionals",
    title="Complex conditionals",
    category=CheckCategory.CODE_QUALITY,
    default_severity=CheckStatus.WARN,
    rationale="Detects overly complex if/while conditions that reduce readability.",
)
def complex_conditionals(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        for line in lines:
            if _LONG_CONDITION_RE.search(line.text) or len(_BOOL_OPS_RE.findall(line.text)) > 3:
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Complex conditionals found",
            "Found complex conditionals:",
            "Consider extracting to variables or functions.",
        )
    return ok("Conditionals are readable", "No overly complex conditionals detected.")


def _is_magic(token: str) -> bool:
    if "." in token:
        return float(token) != int(float(token))
    return int(token) > 100


@check(
    CODE_QUALITY_CHECKS,
    key="magic-numbers",
    title="Magic numbers",
    category=CheckCategory.CODE_QUALITY,
    default_severity=CheckStatus.WARN,
    rationale="Encourages using named constants instead of magic numbers.",
)
def magic_numbers(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        for line in lines:
            if _MAGIC_SKIP_LINE_RE.search(line.text) or _MAGIC_SKIP_WORDS_RE.search(line.text):
                continue
            if any(_is_magic(token) for token in _MAGIC_RE.findall(line.text)):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Magic numbers found",
            "Found magic numbers:",
            "Consider using named constants.",
        )
    return ok("No magic numbers", "No obvious magic numbers detected.")


@check(
    CODE_QUALITY_CHECKS,
    key="duplicate-code",
    title="Duplicate code",
    category=CheckCategory.CODE_QUALITY,
    default_severity=CheckStatus.WARN,
    rationale="Detects potential code duplication that could be extracted.",
)
def duplicate_code(ctx, thresholds):
    blocks: dict[str, list[Issue]] = {}
    for path, lines in added_lines_by_file(ctx.changes).items():
        for i in range(len(lines) - _DUPLICATE_BLOCK + 1):
            window = lines[i : i + _DUPLICATE_BLOCK]
            normalized = "\n".join(line.text for line in window).strip().lower()
            if not normalized:
                continue
            blocks.setdefault(normalized, []).append(Issue(path, window[0].line_no))

    issues = []
    for locations in blocks.values():
        if len(locations) < 2:
            continue
        others = ", ".join(f"`{loc.file}` (line {loc.line})" for loc in locations[1:])
        issues.append(Issue(locations[0].file, locations[0].line, f"duplicated at {others}"))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Duplicate code detected",
            "Found duplicate code blocks:",
            "Consider extracting to a shared function.",
        )
    return ok("No duplicate code", "No obvious code duplication detected.")
