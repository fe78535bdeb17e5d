"""Gatekeeping for anything that leaves the process toward an external model."""

from mrlens_core.privacy.redaction import (
    RedactionReport,
    is_allowlisted,
    is_denylisted,
    redact_text,
    should_process_file,
)
from mrlens_core.privacy.snippets import (
    CodeSnippet,
    SkippedFile,
    SkipReason,
    SnippetRedactionReport,
    SnippetSelection,
    select_snippets,
)

__all__ = [
    "CodeSnippet",
    "RedactionReport",
    "SkipReason",
    "SkippedFile",
    "SnippetRedactionReport",
    "SnippetSelection",
    "is_allowlisted",
    "is_denylisted",
    "redact_text",
    "select_snippets",
    "should_process_file",
]
