"""precedents command: show GOLD exemplars similar to a pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from mrlens_cli.commands.common import fetch_pull, tenant_of
from mrlens_core.knowledge.features import compute_feature_signature
from mrlens_core.knowledge.precedents import find_gold_precedents

console = Console()


@click.command("precedents")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.pass_context
def precedents_cmd(ctx, repo: str, pr_number: int):
    """Rank stored GOLD exemplars by similarity to a pull request."""
    config = ctx.obj["config"]
    _, mr, changes = fetch_pull(config, repo, pr_number)

    signature = compute_feature_signature(mr.title, mr.description, changes)
    result = find_gold_precedents(
        ctx.obj["store"],
        tenant_of(config),
        signature,
        min_overlap=int(config.get("gold_min_overlap", 5)),
        max_references=int(config.get("gold_max_references", 3)),
    )

    if not result.matches:
        console.print("[yellow]No similar GOLD exemplars found.[/yellow]")
        return

    table = Table(
        title=f"GOLD precedents for {repo}#{pr_number} ({len(result.matches)} of {result.total_found})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Title", max_width=40)
    table.add_column("Score", justify="right", width=6)
    table.add_column("Similarity", justify="right", width=10)
    table.add_column("Overlap", justify="right", width=8)
    table.add_column("Matched tokens", max_width=40)
    table.add_column("Link")

    for p in result.matches:
        table.add_row(
            p.title[:40],
            str(p.score),
            f"{p.similarity * 100:.1f}%",
            str(p.overlap),
            ", ".join(p.matched_tokens[:8]),
            p.source_url or "",
        )

    console.print(table)
