"""PyGithub adapter: pull requests in, provider-neutral MergeRequest/Change out."""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Optional

from github import Github, GithubException

from mrlens_core.checks.types import Change
from mrlens_core.merge_request import MergeRequest

logger = logging.getLogger(__name__)

COMMENT_MARKER = "<!-- mrlens-review -->"

_STATUS_MAP = {
    "added": "added",
    "removed": "removed",
    "renamed": "renamed",
}


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def count_approvals(pr) -> Optional[int]:
    """Count reviewers whose latest verdict is APPROVED.

    Comment-only reviews do not replace an earlier verdict. Returns None when
    the reviews cannot be listed, so callers can tell "unknown" from zero.
    """
    latest: dict[str, str] = {}
    try:
        for review in pr.get_reviews():
            if review.user is None or review.state == "COMMENTED":
                continue
            latest[review.user.login] = review.state
    except GithubException as e:
        logger.warning("Could not list reviews for PR #%s: %s", pr.number, e)
        return None
    return sum(1 for state in latest.values() if state == "APPROVED")


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def fetch_merge_request(repo, pr) -> MergeRequest:
    merged = bool(pr.merged)
    return MergeRequest(
        project_id=repo.full_name,
        iid=pr.number,
        title=pr.title or "",
        description=pr.body or "",
        head_sha=pr.head.sha,
        merge_commit_sha=pr.merge_commit_sha if merged else None,
        web_url=pr.html_url,
        state="merged" if merged else pr.state,
        merged_at=_iso(pr.merged_at) if merged else None,
        merged_by=pr.merged_by.login if merged and pr.merged_by is not None else None,
        approvals_count=count_approvals(pr),
    )


def fetch_changes(pr) -> list[Change]:
    """Map the PR's files to Changes.

    GitHub omits the patch for binary and very large files; those become
    Changes with an empty diff.
    """
    changes = []
    for f in pr.get_files():
        changes.append(
            Change(
                path=f.filename,
                diff=f.patch or "",
                status=_STATUS_MAP.get(f.status, "modified"),
            )
        )
    logger.debug("Fetched %d changed file(s) for PR #%s", len(changes), pr.number)
    return changes


def post_review_comment(pr, body: str) -> None:
    """Create the review comment, or edit ours in place if it already exists."""
    body = f"{body}\n\n{COMMENT_MARKER}"
    for comment in pr.get_issue_comments():
        if COMMENT_MARKER in (comment.body or ""):
            comment.edit(body)
            logger.info("Updated review comment %s on PR #%s", comment.id, pr.number)
            return
    pr.create_issue_comment(body)
    logger.info("Posted review comment on PR #%s", pr.number)
