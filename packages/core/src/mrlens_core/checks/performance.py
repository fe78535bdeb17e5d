"""Performance checks."""

from __future__ import annotations

import re

from mrlens_core.checks.base import Issue, check, flag, has_extension, ok
from mrlens_core.checks.diff import added_lines_by_file, first_added_line
from mrlens_core.checks.types import CheckCategory, CheckDefinition, CheckStatus

PERFORMANCE_CHECKS: list[CheckDefinition] = []

_LOOP_MARKERS = ("for (", ".map(", ".forEach(")
_PY_LOOP_RE = re.compile(r"\bfor\s+[\w, ()]+\s+in\s")
_DB_CALL_MARKERS = (".find", ".objects.get(", ".objects.filter(", "session.query(", ".execute(")
_JS_LOOP_RE = re.compile(r"for\s*\(|\.forEach\s*\(|\.map\s*\(")
_MAX_LOOP_DEPTH = 2
_LARGE_LIBRARIES = ("lodash", "moment", "rxjs", "@mui/material", "antd")
_SCHEMA_ANCHOR_RE = re.compile(r"CREATE\s+TABLE|@id\b|@unique\b|REFERENCES", re.IGNORECASE)


@check(
    PERFORMANCE_CHECKS,
    key="n-plus-one-queries",
    title="N+1 query risk",
    category=CheckCategory.PERFORMANCE,
    default_severity=CheckStatus.WARN,
    rationale="Detects patterns that could lead to N+1 query problems.",
)
def n_plus_one_queries(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        if not has_extension(path, (".ts", ".tsx", ".py")):
            continue
        for line in lines:
            in_loop = any(m in line.text for m in _LOOP_MARKERS) or bool(_PY_LOOP_RE.search(line.text))
            if in_loop and any(m in line.text for m in _DB_CALL_MARKERS):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Potential N+1 query risk",
            "Found loops with database calls:",
            "Consider batching the queries or eager-loading the relation.",
        )
    return ok("No N+1 query risks", "No obvious N+1 query patterns detected.")


def _schema_missing_index(path: str, diff: str) -> bool:
    if "schema.prisma" in path:
        has_key = "@id" in diff or "@unique" in diff
        return has_key and "@@index" not in diff and "@relation" not in diff
    if path.endswith(".sql"):
        upper = diff.upper()
        return "CREATE TABLE" in upper and "REFERENCES" in upper and "CREATE INDEX" not in upper
    return False


@check(
    PERFORMANCE_CHECKS,
    key="missing-indexes",
    title="Missing database indexes",
    category=CheckCategory.PERFORMANCE,
    default_severity=CheckStatus.WARN,
    rationale="Encourages adding indexes for frequently queried fields.",
)
def missing_indexes(ctx, thresholds):
    schema_changes = [c for c in ctx.changes if "schema.prisma" in c.path or c.path.endswith(".sql")]
    if not schema_changes:
        return ok("No schema changes", "No schema changes to analyze.")

    issues = [
        Issue(c.path, line=first_added_line(c.diff, _SCHEMA_ANCHOR_RE) or first_added_line(c.diff))
        for c in schema_changes
        if _schema_missing_index(c.path, c.diff)
    ]
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Potential missing indexes",
            "Schema changes without explicit indexes:",
            "Consider adding indexes for frequently queried fields.",
        )
    return ok("Indexes present", "No missing indexes detected.")


def _deep_python_loops(lines) -> list[int]:
    """Line numbers of loops nested more than two deep, judged by indentation."""
    found = []
    open_loops: list[int] = []
    for line in lines:
        if not line.text.strip():
            continue
        indent = len(line.text) - len(line.text.lstrip())
        while open_loops and open_loops[-1] >= indent:
            open_loops.pop()
        if _PY_LOOP_RE.match(line.text.lstrip()):
            open_loops.append(indent)
            if len(open_loops) > _MAX_LOOP_DEPTH:
                found.append(line.line_no)
    return found


def _deep_brace_loops(lines) -> list[int]:
    found = []
    depth = 0
    for line in lines:
        if _JS_LOOP_RE.search(line.text):
            depth += 1
            if depth > _MAX_LOOP_DEPTH:
                found.append(line.line_no)
        elif "}" in line.text or ")" in line.text:
            depth = max(0, depth - 1)
    return found


@check(
    PERFORMANCE_CHECKS,
    key="inefficient-loops",
    title="Inefficient loops",
    category=CheckCategory.PERFORMANCE,
    default_severity=CheckStatus.WARN,
    rationale="Detects nested loops and other inefficient iteration patterns.",
)
def inefficient_loops(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        finder = _deep_python_loops if path.endswith(".py") else _deep_brace_loops
        issues.extend(Issue(path, line_no) for line_no in finder(lines))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Inefficient loops detected",
            "Found deeply nested loops:",
            "Consider optimizing or using more efficient algorithms.",
        )
    return ok("Loop efficiency acceptable", "No inefficient loop patterns detected.")


@check(
    PERFORMANCE_CHECKS,
    key="large-bundle-size",
    title="Large bundle size risk",
    category=CheckCategory.PERFORMANCE,
    default_severity=CheckStatus.WARN,
    rationale="Detects imports that could significantly increase bundle size.",
)
def large_bundle_size(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        if not has_extension(path, (".ts", ".tsx", ".js", ".jsx")):
            continue
        for line in lines:
            if "import " not in line.text:
                continue
            for library in _LARGE_LIBRARIES:
                if library in line.text and f"from '{library}/" not in line.text:
                    issues.append(Issue(path, line.line_no, library))
                    break
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Large bundle size risk",
            "Found full library imports:",
            "Consider using tree-shakeable imports (e.g., 'lodash/function' instead of 'lodash').",
        )
    return ok("Bundle size acceptable", "No large bundle size risks detected.")
