"""Repository hygiene checks."""

from __future__ import annotations

import posixpath
import re

from mrlens_core.checks.base import Issue, check, flag, ok, threshold
from mrlens_core.checks.diff import added_lines_by_file
from mrlens_core.checks.types import CheckCategory, CheckDefinition, CheckStatus

REPO_HYGIENE_CHECKS: list[CheckDefinition] = []

_CONFLICT_RE = re.compile(r"^(<{7}|={7}|>{7})")
BINARY_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".pdf", ".zip", ".exe", ".dll", ".so", ".dylib")
_SENSITIVE_PATH_RES = [
    re.compile(r"\.env$"),
    re.compile(r"\.pem$"),
    re.compile(r"\.key$"),
    re.compile(r"\.p12$"),
    re.compile(r"\.pfx$"),
    re.compile(r"id_rsa"),
    re.compile(r"id_dsa"),
    re.compile(r"\.secret$"),
    re.compile(r"credentials"),
    re.compile(r"\.config\.local"),
]
_TRAILING_WS_RE = re.compile(r"[ \t]+$")


@check(
    REPO_HYGIENE_CHECKS,
    key="merge-conflict-markers",
    title="Merge conflict markers",
    category=CheckCategory.REPO_HYGIENE,
    default_severity=CheckStatus.FAIL,
    rationale="Prevents committing unresolved merge conflicts.",
)
def merge_conflict_markers(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        issues.extend(Issue(path, line.line_no) for line in lines if _CONFLICT_RE.match(line.text))
    if issues:
        return flag(
            issues,
            CheckStatus.FAIL,
            "Merge conflict markers found",
            "Found merge conflict markers:",
            "Resolve conflicts before committing.",
        )
    return ok("No merge conflict markers", "No merge conflict markers detected.")


@check(
    REPO_HYGIENE_CHECKS,
    key="large-files",
    title="Large files",
    category=CheckCategory.REPO_HYGIENE,
    default_severity=CheckStatus.WARN,
    rationale="Prevents committing large files that bloat the repository.",
)
def large_files(ctx, thresholds):
    max_size = threshold(thresholds, "maxFileSize", 100000)
    issues = [
        Issue(c.path, note=f"{round(len(c.diff) / 1024)}KB") for c in ctx.changes if len(c.diff) > max_size
    ]
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Large files detected",
            f"Found large files (>{round(max_size / 1024)}KB):",
            "Consider using Git LFS or external storage.",
            limit=len(issues),
        )
    return ok("File sizes acceptable", "No large files detected.")


@check(
    REPO_HYGIENE_CHECKS,
    key="binary-files",
    title="Binary files",
    category=CheckCategory.REPO_HYGIENE,
    default_severity=CheckStatus.WARN,
    rationale="Detects binary files that should use Git LFS.",
)
def binary_files(ctx, thresholds):
    issues = [Issue(c.path) for c in ctx.changes if posixpath.splitext(c.path)[1].lower() in BINARY_EXTENSIONS]
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Binary files detected",
            "Found binary files:",
            "Consider using Git LFS for large binaries.",
        )
    return ok("No binary files", "No binary files detected.")


@check(
    REPO_HYGIENE_CHECKS,
    key="sensitive-files",
    title="Sensitive files",
    category=CheckCategory.REPO_HYGIENE,
    default_severity=CheckStatus.FAIL,
    rationale="Prevents committing sensitive configuration or credential files.",
)
def sensitive_files(ctx, thresholds):
    issues = [
        Issue(c.path) for c in ctx.changes if any(p.search(c.path.lower()) for p in _SENSITIVE_PATH_RES)
    ]
    if issues:
        return flag(
            issues,
            CheckStatus.FAIL,
            "Sensitive files detected",
            "Found potentially sensitive files:",
            "Remove sensitive files and ensure they're in .gitignore.",
            limit=len(issues),
        )
    return ok("No sensitive files", "No sensitive files detected.")


@check(
    REPO_HYGIENE_CHECKS,
    key="trailing-whitespace",
    title="Trailing whitespace",
    category=CheckCategory.REPO_HYGIENE,
    default_severity=CheckStatus.WARN,
    rationale="Maintains consistent code formatting.",
)
def trailing_whitespace(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        issues.extend(Issue(path, line.line_no) for line in lines if _TRAILING_WS_RE.search(line.text))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Trailing whitespace found",
            "Found trailing whitespace:",
            "Remove trailing whitespace for consistency.",
        )
    return ok("No trailing whitespace", "No trailing whitespace detected.")
