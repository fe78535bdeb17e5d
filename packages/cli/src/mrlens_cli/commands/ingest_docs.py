"""ingest-docs command: load a repository's markdown docs into the corpus."""

from __future__ import annotations

import click
from rich.console import Console

from mrlens_cli.commands.common import tenant_of, warn_if_ephemeral
from mrlens_core.knowledge.docs import ingest_docs

console = Console()


@click.command("ingest-docs")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.pass_context
def ingest_docs_cmd(ctx, path: str):
    """Store README and docs/**/*.md files under PATH as DOC sources.

    Files are keyed by their path relative to PATH. Unchanged files are
    skipped, and edited files replace their previous version.
    """
    config = ctx.obj["config"]
    tenant = tenant_of(config)
    store = ctx.obj["store"]

    console.print(f"Ingesting docs from [bold]{path}[/bold] for tenant [bold]{tenant}[/bold]")
    warn_if_ephemeral(store, console)

    results, failed = ingest_docs(store, tenant, path)

    created = sum(1 for r in results if r.created)
    updated = sum(1 for r in results if r.updated)
    unchanged = len(results) - created - updated
    total_bytes = sum(r.bytes for r in results)
    console.print(
        f"[green]{len(results)} files processed:[/green] {created} created, "
        f"{updated} updated, {unchanged} unchanged ({total_bytes:,} bytes)"
    )
    for r in results[:10]:
        state = "created" if r.created else "updated" if r.updated else "unchanged"
        console.print(f"  {r.id[:12]}  {r.path} [dim]({state})[/dim]")
    if len(results) > 10:
        console.print(f"  [dim]... and {len(results) - 10} more[/dim]")

    if failed:
        raise click.ClickException(f"Failed to ingest {len(failed)} file(s): {', '.join(failed)}")
