"""CLI entry point for mrlens.

Commands:
  review      run checks, scoring and optional AI suggestions on a pull request
  promote     evaluate a merged pull request and add it to the GOLD corpus
  precedents  show GOLD exemplars similar to a pull request
  knowledge   list the GOLD exemplars (or ingested docs) stored for the tenant
  ingest-docs load README and docs/ markdown files into the corpus
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from mrlens_cli.commands.ingest_docs import ingest_docs_cmd
from mrlens_cli.commands.knowledge import knowledge_cmd
from mrlens_cli.commands.precedents import precedents_cmd
from mrlens_cli.commands.promote import promote_cmd
from mrlens_cli.commands.review import review_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured knowledge store from .mrlens.yml settings.

    Store selection:
      store: memory → MemoryStore (lives for this process only)
      (default)     → SQLiteStore (store_path, default .mrlens.db)
    """
    store_type = config.get("store", "sqlite")

    if store_type == "memory":
        from mrlens_store.memory import MemoryStore

        return MemoryStore()

    if store_type != "sqlite":
        console.print(f"[yellow]Unknown store {store_type!r}. Falling back to SQLite.[/yellow]")

    from mrlens_store.sqlite import SQLiteStore

    db_path = config.get("store_path") or ".mrlens.db"
    return SQLiteStore(db_path=db_path)


@click.group()
@click.version_option(
    version=importlib.metadata.version("mrlens"),
    prog_name="mrlens",
)
@click.option(
    "--config",
    "config_path",
    default=".mrlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="MRLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Deterministic merge request reviews backed by a GOLD precedent corpus."""
    from mrlens_cli.auth import resolve_github_token
    from mrlens_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except (ValueError, OSError) as e:
        raise click.UsageError(f"Could not load {config_path}: {e}")

    token = resolve_github_token()
    if token:
        config["github_token"] = token

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(review_cmd)
main.add_command(promote_cmd)
main.add_command(precedents_cmd)
main.add_command(knowledge_cmd)
main.add_command(ingest_docs_cmd)
