"""Unified-diff walking shared by the checks and the snippet selector.

New-file line numbers are derived from the `+start` of each @@ hunk header.
Added and context lines advance the counter; removed lines and the
"\\ No newline at end of file" marker do not. Lines that appear before the
first hunk header (file headers such as `--- a/x` / `+++ b/x`) or after a
malformed header carry no line number and are never reported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from mrlens_core.checks.types import Change

_HUNK_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")

ADDED = "+"
REMOVED = "-"
CONTEXT = " "


@dataclass(frozen=True)
class DiffLine:
    index: int  # position in diff.splitlines()
    kind: str  # ADDED | REMOVED | CONTEXT
    line_no: int | None  # new-file line number; None for removed lines
    text: str  # content without the leading marker


@dataclass(frozen=True)
class AddedLine:
    line_no: int
    text: str


def parse_hunk_start(header: str) -> int | None:
    """Return the new-file start line of an @@ header, or None if malformed."""
    match = _HUNK_RE.match(header)
    return int(match.group(1)) if match else None


def count_hunks(diff: str) -> int:
    return sum(1 for line in diff.splitlines() if line.startswith("@@"))


def walk_diff(diff: str) -> Iterator[DiffLine]:
    """Yield every line inside a well-formed hunk with its new-file line number."""
    file_line: int | None = None

    for index, line in enumerate(diff.splitlines()):
        if line.startswith("@@"):
            file_line = parse_hunk_start(line)
            continue
        if file_line is None:
            continue
        if line.startswith("\\"):
            continue

        if line.startswith(ADDED):
            yield DiffLine(index, ADDED, file_line, line[1:])
            file_line += 1
        elif line.startswith(REMOVED):
            yield DiffLine(index, REMOVED, None, line[1:])
        else:
            # Some tools strip the single space from blank context lines.
            yield DiffLine(index, CONTEXT, file_line, line[1:] if line else "")
            file_line += 1


def added_lines(diff: str) -> list[AddedLine]:
    return [AddedLine(d.line_no, d.text) for d in walk_diff(diff) if d.kind == ADDED]


def first_added_line(diff: str, pattern: re.Pattern | None = None) -> int | None:
    """New-file line of the first added line, or of the first one matching `pattern`."""
    for d in walk_diff(diff):
        if d.kind == ADDED and (pattern is None or pattern.search(d.text)):
            return d.line_no
    return None


def added_lines_by_file(changes: list[Change]) -> dict[str, list[AddedLine]]:
    """Map each path with at least one added line to its added lines, in changeset order."""
    result: dict[str, list[AddedLine]] = {}
    for change in changes:
        lines = added_lines(change.diff)
        if lines:
            result.setdefault(change.path, []).extend(lines)
    return result
