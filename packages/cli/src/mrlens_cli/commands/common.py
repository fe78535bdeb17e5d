"""Helpers shared by commands that operate on a single pull request."""

from __future__ import annotations

import click
from github import GithubException

from mrlens_cli.auth import require_github_token
from mrlens_core.checks.types import Change
from mrlens_core.gh.pull_request import fetch_changes, fetch_merge_request, get_pull, get_repo
from mrlens_core.merge_request import MergeRequest
from mrlens_store.memory import MemoryStore


def fetch_pull(config: dict, repo: str, pr_number: int) -> tuple[object, MergeRequest, list[Change]]:
    """Return the PyGithub pull request plus its MergeRequest and Changes."""
    token = require_github_token(config)
    try:
        this_repo = get_repo(repo, token=token)
        pr = get_pull(this_repo, pr_number)
    except GithubException:
        raise click.UsageError(f"PR #{pr_number} not found in {repo}.")
    return pr, fetch_merge_request(this_repo, pr), fetch_changes(pr)


def tenant_of(config: dict) -> str:
    return config.get("tenant") or "default"


def warn_if_ephemeral(store, console) -> None:
    """Tell the user that writes to an in-memory store end with the process."""
    if isinstance(store, MemoryStore):
        console.print(
            "[yellow]Using the in-memory store: nothing written by this command is kept "
            "after it exits. Set `store: sqlite` in .mrlens.yml to persist the corpus.[/yellow]"
        )
