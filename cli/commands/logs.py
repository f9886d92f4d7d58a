"""Run log commands."""

from __future__ import annotations

import asyncio
import json

import typer

from faqbot.logstore import LogStore

logs_app = typer.Typer(help="Inspect or clear the pipeline run log.", no_args_is_help=True)


@logs_app.command("list")
def logs_list(
    limit: int = typer.Option(20, "--limit", "-n", help="Show at most this many entries."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON entries."),
) -> None:
    """List run records, newest first."""
    store = LogStore()
    entries = asyncio.run(store.get_logs())[:limit]

    if as_json:
        typer.echo(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False))
        return
    if not entries:
        typer.echo(f"[logs] No entries in {store.path}.")
        return
    for entry in entries:
        status = f"✗ {entry.error}" if entry.error else "✓"
        keywords = ", ".join(entry.keywords or [])
        typer.echo(f"  {entry.timestamp}  {entry.url}  [{keywords}]  {status}")


@logs_app.command("clear")
def logs_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete every run record."""
    store = LogStore()
    if not yes:
        typer.confirm(f"Clear all entries in {store.path}?", abort=True)
    asyncio.run(store.clear_all_logs())
    typer.echo(f"[logs] Cleared {store.path}.")
