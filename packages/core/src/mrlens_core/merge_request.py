"""Source-control metadata for the merge request under review."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class MergeRequest:
    """Provider-neutral view of a merge (pull) request.

    `approvals_count` is None when the provider could not tell us; callers
    must not read None as zero.
    """

    project_id: str
    iid: int
    title: str
    description: str = ""
    head_sha: str = ""
    merge_commit_sha: Optional[str] = None
    web_url: Optional[str] = None
    state: str = "open"  # open | closed | merged
    merged_at: Optional[str] = None  # ISO-8601 UTC timestamp
    merged_by: Optional[str] = None
    approvals_count: Optional[int] = None

    @property
    def merged(self) -> bool:
        return self.state == "merged"
