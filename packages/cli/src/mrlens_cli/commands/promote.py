"""promote command: add a merged pull request to the GOLD corpus."""

from __future__ import annotations

import click
from rich.console import Console

from mrlens_cli.commands.common import fetch_pull, tenant_of, warn_if_ephemeral
from mrlens_core.reviewer import run_review

console = Console()


@click.command("promote")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Merged pull request number.")
@click.pass_context
def promote_cmd(ctx, repo: str, pr_number: int):
    """Score a merged pull request and store it as a GOLD exemplar if it qualifies.

    Running it again for the same PR is safe: identical content is never
    stored twice, and a stored exemplar is only replaced by a higher score.
    """
    config = ctx.obj["config"]
    _, mr, changes = fetch_pull(config, repo, pr_number)
    if not mr.merged:
        raise click.UsageError(f"PR #{pr_number} is not merged; only merged PRs can be promoted.")

    try:
        summary = run_review(mr, changes, config, ctx.obj["store"], tenant_id=tenant_of(config))
    except ValueError as e:
        raise click.UsageError(f"Invalid configuration: {e}")

    console.print(f"Score: [bold]{summary.score}/100[/bold] ({summary.summary})")
    warn_if_ephemeral(ctx.obj["store"], console)

    if summary.gold is not None:
        if summary.gold.created:
            console.print(f"[green]Promoted to GOLD: {summary.gold.id}[/green]")
        elif summary.gold.updated:
            console.print(f"[green]Updated GOLD exemplar {summary.gold.id} with a higher score.[/green]")
        else:
            console.print(f"[yellow]Already in the GOLD corpus: {summary.gold.id}[/yellow]")
        return

    if summary.gold_evaluation is not None:
        console.print(f"[yellow]Not promoted: {summary.gold_evaluation.reason}[/yellow]")
        return

    raise click.ClickException(f"GOLD promotion failed: {summary.gold_error}")
