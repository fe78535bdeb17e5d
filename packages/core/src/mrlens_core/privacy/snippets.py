"""Selection of minimal, redacted code context around failing checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from mrlens_core.checks.diff import ADDED, DiffLine, count_hunks, walk_diff
from mrlens_core.checks.types import Change, CheckResult
from mrlens_core.privacy.redaction import is_denylisted, redact_text, should_process_file
from mrlens_core.utils.code import is_binary_change

logger = logging.getLogger(__name__)

MAX_DIFF_CHARS = 100000


class SkipReason(str, Enum):
    DENYLISTED = "denylisted"
    NOT_IN_ALLOWLIST = "not_in_allowlist"
    BINARY = "binary"
    TOO_LARGE = "too_large"
    NO_DIFF_HUNKS = "no_diff_hunks"
    PARSE_FAILED = "parse_failed"


@dataclass
class CodeSnippet:
    path: str
    content: str
    line_start: int
    line_end: int
    redacted: bool


@dataclass
class SkippedFile:
    file_path: str
    reason: SkipReason
    diff_hunks_count: Optional[int] = None


@dataclass
class SnippetRedactionReport:
    files_redacted: int = 0
    total_lines_removed: int = 0
    patterns_matched: list[str] = field(default_factory=list)


@dataclass
class SnippetSelection:
    snippets: list[CodeSnippet] = field(default_factory=list)
    total_chars: int = 0
    redaction_report: SnippetRedactionReport = field(default_factory=SnippetRedactionReport)
    skipped_files: list[SkippedFile] = field(default_factory=list)


@dataclass
class _Window:
    content: str
    line_start: int
    line_end: int
    line_count: int


def _render(lines: list[DiffLine]) -> str:
    return "\n".join(f"{line.kind}{line.text}" for line in lines)


def _numbered_span(lines: list[DiffLine]) -> tuple[int, int]:
    numbers = [line.line_no for line in lines if line.line_no is not None]
    return min(numbers), max(numbers)


def _window_around(parsed: list[DiffLine], target: int, context: int, max_lines: int) -> Optional[_Window]:
    """Diff lines within `context` of the new-file line `target`, capped at max_lines."""
    if max_lines <= 0:
        return None
    for position, line in enumerate(parsed):
        if line.line_no == target:
            break
    else:
        return None

    start = max(0, position - context)
    window = parsed[start : position + context + 1]
    if len(window) > max_lines:
        # Re-centre on the target so it stays inside the cap.
        target_at = position - start
        first = max(0, min(target_at - max_lines // 2, len(window) - max_lines))
        window = window[first : first + max_lines]
    start_line, end_line = _numbered_span(window)
    return _Window(_render(window), start_line, end_line, len(window))


def _leading_added(parsed: list[DiffLine], max_lines: int) -> Optional[_Window]:
    if max_lines <= 0:
        return None
    added = [line for line in parsed if line.kind == ADDED][:max_lines]
    if not added:
        return None
    return _Window(_render(added), added[0].line_no, added[-1].line_no, len(added))


def _pick_window(parsed: list[DiffLine], result: CheckResult, context: int, max_lines: int) -> Optional[_Window]:
    window = None
    if result.line_hint:
        window = _window_around(parsed, result.line_hint, context, max_lines)
    if window is None:
        window = _leading_added(parsed, max_lines)
    return window


def _admission_skip(path: str) -> Optional[SkipReason]:
    if should_process_file(path):
        return None
    return SkipReason.DENYLISTED if is_denylisted(path) else SkipReason.NOT_IN_ALLOWLIST


def _change_skip(path: str, change: Optional[Change]) -> Optional[SkippedFile]:
    if change is None or not change.diff.strip():
        return SkippedFile(path, SkipReason.NO_DIFF_HUNKS)
    hunks = count_hunks(change.diff)
    if is_binary_change(path, change.diff):
        return SkippedFile(path, SkipReason.BINARY, hunks)
    if len(change.diff) > MAX_DIFF_CHARS:
        return SkippedFile(path, SkipReason.TOO_LARGE, hunks)
    if hunks == 0:
        return SkippedFile(path, SkipReason.NO_DIFF_HUNKS, 0)
    return None


def select_snippets(
    changes: list[Change],
    failing_results: list[CheckResult],
    max_total_chars: int = 6000,
    max_lines_per_file: int = 40,
    context_lines: int = 10,
) -> SnippetSelection:
    """Extract redacted snippets for the files named by failing results.

    Results without a file path contribute nothing. All snippets taken from
    one file share `max_lines_per_file`; a window that would exceed what is
    left is shrunk around its target. Files that cannot be
    used are reported in `skipped_files` with a reason, once per file.
    Every snippet is redacted before it is counted, and the snippet that
    would overflow `max_total_chars` is truncated to fit, so `total_chars`
    never exceeds the budget.
    """
    selection = SnippetSelection()
    skipped_paths: set[str] = set()

    def skip(entry: SkippedFile) -> None:
        logger.debug("Skipping %s for snippets: %s", entry.file_path, entry.reason.value)
        skipped_paths.add(entry.file_path)
        selection.skipped_files.append(entry)

    by_file: dict[str, list[CheckResult]] = {}
    for result in failing_results:
        path = result.file_path
        if not path or path in skipped_paths:
            continue
        reason = _admission_skip(path)
        if reason is not None:
            skip(SkippedFile(path, reason))
            continue
        by_file.setdefault(path, []).append(result)

    changes_by_path = {change.path: change for change in changes}
    seen: set[tuple[str, int, int]] = set()
    redacted_paths: set[str] = set()

    for path, results in by_file.items():
        if selection.total_chars >= max_total_chars:
            break

        change = changes_by_path.get(path)
        problem = _change_skip(path, change)
        if problem is not None:
            skip(problem)
            continue

        parsed = list(walk_diff(change.diff))
        if not parsed:
            skip(SkippedFile(path, SkipReason.PARSE_FAILED, count_hunks(change.diff)))
            continue

        produced = False
        lines_used = 0
        for result in results:
            if selection.total_chars >= max_total_chars:
                break
            lines_left = max_lines_per_file - lines_used
            if lines_left <= 0:
                break

            window = _pick_window(parsed, result, context_lines, max_lines_per_file)
            if window is None:
                continue
            produced = True

            key = (path, window.line_start, window.line_end)
            if key in seen:
                continue
            seen.add(key)

            if window.line_count > lines_left:
                window = _pick_window(parsed, result, context_lines, lines_left)
            lines_used += window.line_count

            content, report = redact_text(window.content)
            remaining = max_total_chars - selection.total_chars
            if len(content) > remaining:
                content = content[:remaining]

            selection.snippets.append(
                CodeSnippet(
                    path=path,
                    content=content,
                    line_start=window.line_start,
                    line_end=window.line_end,
                    redacted=report.altered,
                )
            )
            selection.total_chars += len(content)

            summary = selection.redaction_report
            summary.total_lines_removed += report.lines_removed
            for name in report.patterns_matched:
                if name not in summary.patterns_matched:
                    summary.patterns_matched.append(name)
            if report.altered:
                redacted_paths.add(path)

        if not produced and max_lines_per_file > 0:
            # Hunks parsed but held nothing to show, e.g. a deletion-only diff.
            skip(SkippedFile(path, SkipReason.NO_DIFF_HUNKS, count_hunks(change.diff)))

    selection.redaction_report.files_redacted = len(redacted_paths)
    return selection
