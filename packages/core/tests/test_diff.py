"""Tests for unified-diff walking and new-file line numbering."""

import re

from mrlens_core.checks.diff import (
    ADDED,
    CONTEXT,
    REMOVED,
    added_lines,
    added_lines_by_file,
    count_hunks,
    first_added_line,
    parse_hunk_start,
    walk_diff,
)
from mrlens_core.checks.types import Change

PATCH = """\
--- a/app.py
+++ b/app.py
@@ -10,3 +10,4 @@ def main():
 context one
-removed line
+added one
+added two
 context two
\\ No newline at end of file
@@ -40,2 +41,2 @@
+late addition
 tail"""


class TestParseHunkStart:
    def test_reads_new_file_start(self):
        assert parse_hunk_start("@@ -1,5 +7,9 @@ def foo():") == 7

    def test_single_line_range(self):
        assert parse_hunk_start("@@ -1 +1 @@") == 1

    def test_malformed_header_returns_none(self):
        assert parse_hunk_start("@@ garbage @@") is None


class TestWalkDiff:
    def test_line_numbers_follow_hunk_headers(self):
        lines = list(walk_diff(PATCH))
        numbered = [(d.kind, d.line_no, d.text) for d in lines]
        assert numbered[:5] == [
            (CONTEXT, 10, "context one"),
            (REMOVED, None, "removed line"),
            (ADDED, 11, "added one"),
            (ADDED, 12, "added two"),
            (CONTEXT, 13, "context two"),
        ]
        assert (ADDED, 41, "late addition") in numbered

    def test_file_headers_are_not_reported(self):
        texts = [d.text for d in walk_diff(PATCH)]
        assert "++ b/app.py" not in texts
        assert "-- a/app.py" not in texts

    def test_no_newline_marker_is_skipped(self):
        assert all("No newline" not in d.text for d in walk_diff(PATCH))

    def test_lines_after_malformed_header_are_dropped(self):
        assert list(walk_diff("@@ nonsense @@\n+x\n+y")) == []

    def test_index_is_position_in_diff(self):
        added = [d for d in walk_diff(PATCH) if d.kind == ADDED]
        assert added[0].index == 5

    def test_blank_context_line_advances_counter(self):
        lines = list(walk_diff("@@ -1,3 +1,3 @@\n a\n\n+b"))
        assert lines[-1].line_no == 3


class TestAddedLines:
    def test_only_added_lines(self):
        assert [(a.line_no, a.text) for a in added_lines(PATCH)] == [
            (11, "added one"),
            (12, "added two"),
            (41, "late addition"),
        ]

    def test_empty_diff(self):
        assert added_lines("") == []

    def test_by_file_skips_files_without_additions(self):
        changes = [
            Change(path="a.py", diff="@@ -1 +1 @@\n+x = 1"),
            Change(path="b.py", diff="@@ -1,1 +1,0 @@\n-gone"),
        ]
        result = added_lines_by_file(changes)
        assert list(result) == ["a.py"]
        assert result["a.py"][0].text == "x = 1"


def test_count_hunks():
    assert count_hunks(PATCH) == 2
    assert count_hunks("") == 0


class TestFirstAddedLine:
    def test_first_added(self):
        assert first_added_line(PATCH) == 11

    def test_first_matching(self):
        assert first_added_line(PATCH, re.compile(r"late")) == 41

    def test_none_when_nothing_added(self):
        assert first_added_line("@@ -1,2 +0,0 @@\n-a\n-b") is None
        assert first_added_line(PATCH, re.compile(r"absent")) is None
