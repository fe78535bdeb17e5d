"""review command: run the review pipeline on a pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markdown import Markdown

from mrlens_cli.commands.common import fetch_pull, tenant_of
from mrlens_core.gh.pull_request import post_review_comment
from mrlens_core.reviewer import build_suggester, run_review

console = Console()


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--ai/--no-ai",
    "ai",
    default=None,
    help="Request AI fix suggestions for failing checks. Overrides ai_enabled in the config file.",
)
@click.option(
    "--model",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--post", is_flag=True, help="Post (or update) the review as a PR comment.")
@click.pass_context
def review_cmd(ctx, repo: str, pr_number: int, ai: bool | None, model: str | None, post: bool):
    """Review a pull request with deterministic checks.

    Prints the score and per-category findings. Merged PRs are considered for
    the GOLD corpus; open PRs are matched against it.

    \b
    Environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      OPENAI_API_KEY       Required with --ai and model openai
      ANTHROPIC_API_KEY    Required with --ai and model anthropic
    """
    config = dict(ctx.obj["config"])
    if model:
        config["model"] = model
    use_ai = config.get("ai_enabled", False) if ai is None else ai

    suggester = None
    if use_ai:
        try:
            suggester = build_suggester(config)
        except ValueError as e:
            raise click.UsageError(str(e))

    pr, mr, changes = fetch_pull(config, repo, pr_number)
    console.print(f"[cyan]Reviewing {repo}#{pr_number}: {mr.title} ({len(changes)} file(s))[/cyan]")

    try:
        summary = run_review(mr, changes, config, ctx.obj["store"], suggester=suggester, tenant_id=tenant_of(config))
    except ValueError as e:
        raise click.UsageError(f"Invalid configuration: {e}")

    console.print(Markdown(summary.comment))
    if summary.suggestions_error:
        console.print(f"[yellow]AI suggestions unavailable: {summary.suggestions_error}[/yellow]")

    if post:
        post_review_comment(pr, summary.comment)
        console.print(f"[green]Review posted to {repo}#{pr_number}.[/green]")
