"""knowledge command: list the tenant's GOLD exemplars or ingested docs."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from mrlens_cli.commands.common import tenant_of
from mrlens_store.models import DOC, GOLD_MR

console = Console()

_APPROVAL_STYLE = {
    "known-yes": "green",
    "known-no": "red",
    "unknown": "dim",
}


def _gold_table(tenant: str, sources) -> Table:
    table = Table(title=f"GOLD corpus: {tenant}", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold", width=8)
    table.add_column("Title", max_width=40)
    table.add_column("Project", max_width=24)
    table.add_column("Score", justify="right", width=6)
    table.add_column("Approvals", width=10)
    table.add_column("Merged At", width=20)

    for s in sources:
        meta = s.metadata
        state = meta.approval_state.value
        style = _APPROVAL_STYLE.get(state, "white")
        table.add_row(
            s.id[:8],
            s.title[:40],
            f"{meta.project_id}!{meta.mr_iid}",
            str(meta.score),
            f"[{style}]{state}[/{style}]",
            (meta.merged_at or "")[:19].replace("T", " "),
        )
    return table


def _doc_table(tenant: str, sources) -> Table:
    table = Table(title=f"Docs: {tenant}", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold", width=8)
    table.add_column("Path", max_width=50)
    table.add_column("Bytes", justify="right", width=8)
    table.add_column("Updated At", width=20)

    for s in sources:
        table.add_row(
            s.id[:8],
            s.metadata.file_path,
            str(s.metadata.file_size),
            s.updated_at[:19].replace("T", " "),
        )
    return table


@click.command("knowledge")
@click.option("--limit", default=20, show_default=True, help="Maximum number of sources to show.")
@click.option("--docs", "show_docs", is_flag=True, help="List ingested docs instead of GOLD exemplars.")
@click.pass_context
def knowledge_cmd(ctx, limit: int, show_docs: bool):
    """List stored GOLD exemplars (or docs), newest first."""
    config = ctx.obj["config"]
    tenant = tenant_of(config)
    sources = ctx.obj["store"].list_sources(tenant, type=DOC if show_docs else GOLD_MR)
    if not sources:
        if show_docs:
            console.print("[yellow]No docs ingested yet.[/yellow]")
        else:
            console.print("[yellow]No GOLD exemplars stored yet.[/yellow]")
        return

    build = _doc_table if show_docs else _gold_table
    console.print(build(tenant, sources[:limit]))
    if len(sources) > limit:
        console.print(f"[dim]{len(sources) - limit} more not shown (use --limit).[/dim]")
