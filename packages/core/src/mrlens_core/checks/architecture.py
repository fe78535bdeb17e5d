"""Architecture checks."""

from __future__ import annotations

import posixpath
import re

from mrlens_core.checks.base import CODE_EXTENSIONS, Issue, check, flag, has_extension, ok, threshold
from mrlens_core.checks.diff import added_lines, added_lines_by_file, first_added_line
from mrlens_core.checks.types import Change, CheckCategory, CheckDefinition, CheckStatus

ARCHITECTURE_CHECKS: list[CheckDefinition] = []

_JS_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
_JS_IMPORT_RE = re.compile(r"from\s+['\"]([^'\"]+)['\"]|require\(['\"]([^'\"]+)['\"]\)")
_PY_IMPORT_RE = re.compile(r"^\s*(?:from\s+([\w.]+)\s+import|import\s+([\w.]+))")

DEFAULT_ALLOWED_PREFIXES = ["apps/", "packages/", "infra/", "src/", "tests/", "docs/", "scripts/", "."]
_ROOT_FILES = {
    "package.json",
    "pnpm-workspace.yaml",
    "tsconfig.base.json",
    "pyproject.toml",
    "README.md",
    "Makefile",
    "Dockerfile",
}

_SCHEMA_FILES = ("schema.prisma", "/models.py")
_MIGRATION_DIRS = ("migrations/", "alembic/versions/")
_INDEX_NAMES = {"index.ts", "index.tsx", "index.js", "index.jsx"}
_RAW_QUERY_RE = re.compile(r"\.(query|execute|raw)\(", re.IGNORECASE)
_SQL_VERBS = ("SELECT", "INSERT", "UPDATE", "DELETE")


def _module_key(path: str) -> str:
    stem = posixpath.splitext(path)[0]
    if stem.endswith("/index") or stem.endswith("/__init__"):
        stem = posixpath.dirname(stem)
    return stem


def _import_targets(path: str, text: str) -> list[str]:
    """Return the module keys an added line imports, relative imports resolved against path."""
    if path.endswith(".py"):
        match = _PY_IMPORT_RE.match(text)
        if not match:
            return []
        return [(match.group(1) or match.group(2)).replace(".", "/")]
    match = _JS_IMPORT_RE.search(text)
    if not match:
        return []
    spec = match.group(1) or match.group(2)
    if spec.startswith("."):
        spec = posixpath.normpath(posixpath.join(posixpath.dirname(path), spec))
    return [posixpath.splitext(spec)[0]]


def _resolves_to(target: str, path: str) -> bool:
    key = _module_key(path)
    return key == target or key.endswith("/" + target)


@check(
    ARCHITECTURE_CHECKS,
    key="circular-dependencies",
    title="Circular dependencies",
    category=CheckCategory.ARCHITECTURE,
    default_severity=CheckStatus.WARN,
    rationale="Detects potential circular import dependencies.",
)
def circular_dependencies(ctx, thresholds):
    imports: dict[str, set[str]] = {}
    for path, lines in added_lines_by_file(ctx.changes).items():
        if not has_extension(path, CODE_EXTENSIONS):
            continue
        targets = {t for line in lines for t in _import_targets(path, line.text)}
        if targets:
            imports[path] = targets

    issues = []
    for path, targets in imports.items():
        for other, other_targets in imports.items():
            if other == path:
                continue
            if any(_resolves_to(t, other) for t in targets) and any(_resolves_to(t, path) for t in other_targets):
                issues.append(Issue(path, note=f"imports `{other}` which imports it back"))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Circular dependencies detected",
            "Found circular dependencies:",
            "Consider refactoring to break the cycle.",
        )
    return ok("No circular dependencies", "No circular dependencies detected.")


@check(
    ARCHITECTURE_CHECKS,
    key="unexpected-paths",
    title="Unexpected file paths",
    category=CheckCategory.ARCHITECTURE,
    default_severity=CheckStatus.WARN,
    rationale="Ensures files are organized in expected directories.",
)
def unexpected_paths(ctx, thresholds):
    prefixes = thresholds.get("allowedPrefixes")
    if not isinstance(prefixes, list) or not prefixes:
        prefixes = DEFAULT_ALLOWED_PREFIXES
    prefixes = tuple(str(p) for p in prefixes)

    issues = [
        Issue(change.path, line=first_added_line(change.diff))
        for change in ctx.changes
        if not change.path.startswith(prefixes) and change.path not in _ROOT_FILES
    ]
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Unexpected file paths",
            "Files changed outside expected directories:",
        )
    return ok("All paths expected", "All changed files are in expected directories.")


@check(
    ARCHITECTURE_CHECKS,
    key="schema-without-migration",
    title="Schema change without migration",
    category=CheckCategory.ARCHITECTURE,
    default_severity=CheckStatus.WARN,
    rationale="Ensures schema changes include corresponding migrations.",
)
def schema_without_migration(ctx, thresholds):
    schema_changes = [c for c in ctx.changes if any(marker in c.path for marker in _SCHEMA_FILES)]
    migration_added = any(any(d in c.path for d in _MIGRATION_DIRS) for c in ctx.changes)
    if schema_changes and not migration_added:
        return flag(
            [Issue(c.path, line=first_added_line(c.diff)) for c in schema_changes],
            CheckStatus.WARN,
            "Schema changed without migration",
            "Schema files were modified but no migration file was added:",
            "Generate a migration for the schema change.",
        )
    detail = "Schema change includes migration." if schema_changes else "No schema changes detected."
    return ok("Migrations present", detail)


@check(
    ARCHITECTURE_CHECKS,
    key="large-diff",
    title="Large diff",
    category=CheckCategory.ARCHITECTURE,
    default_severity=CheckStatus.WARN,
    rationale="Encourages smaller, more reviewable changes.",
)
def large_diff(ctx, thresholds):
    max_size = threshold(thresholds, "maxSize", 8000)
    max_lines = threshold(thresholds, "maxLines", 400)
    issues = []
    for change in ctx.changes:
        size = len(change.diff)
        added = len(added_lines(change.diff))
        if size > max_size or added > max_lines:
            note = f"{size} chars, {added} added lines"
            issues.append(Issue(change.path, line=first_added_line(change.diff), note=note))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Large diff detected",
            f"Large changes detected (>{max_size} chars or >{max_lines} added lines):",
            "Consider breaking into smaller commits.",
            limit=len(issues),
        )
    return ok("Diff size reasonable", "All file changes are within reasonable size limits.")


@check(
    ARCHITECTURE_CHECKS,
    key="missing-index-files",
    title="Missing index files",
    category=CheckCategory.ARCHITECTURE,
    default_severity=CheckStatus.WARN,
    rationale="Encourages proper module organization with index files.",
)
def missing_index_files(ctx, thresholds):
    # First changed module per directory, in changeset order.
    first_file: dict[str, Change] = {}
    with_index: set[str] = set()
    for change in ctx.changes:
        if not has_extension(change.path, _JS_EXTENSIONS) or "node_modules" in change.path:
            continue
        directory, name = posixpath.split(change.path)
        if not directory:
            continue
        first_file.setdefault(directory, change)
        if name in _INDEX_NAMES:
            with_index.add(directory)

    issues = [
        Issue(change.path, line=first_added_line(change.diff), note=f"no index file in `{d}/`")
        for d, change in first_file.items()
        if d not in with_index and len(d.split("/")) > 2
    ]
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Missing index files",
            "New directories without index files:",
            "Consider adding index.ts for cleaner imports.",
        )
    return ok("Index files present", "No missing index files detected.")


@check(
    ARCHITECTURE_CHECKS,
    key="direct-db-access",
    title="Direct database access",
    category=CheckCategory.ARCHITECTURE,
    default_severity=CheckStatus.WARN,
    rationale="Encourages using abstraction layers instead of direct DB access.",
)
def direct_db_access(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        if not has_extension(path, (".ts", ".tsx", ".py")):
            continue
        for line in lines:
            if _RAW_QUERY_RE.search(line.text) and any(verb in line.text for verb in _SQL_VERBS):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Direct database access detected",
            "Found direct SQL queries:",
            "Consider using an ORM or a repository pattern.",
        )
    return ok("No direct database access", "No direct database access detected.")
