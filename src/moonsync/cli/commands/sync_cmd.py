# ABOUTME: The `moonsync sync` command for syncing reader highlights into the vault.
# ABOUTME: Runs one pass, prints the summary line and a per-book table on failures or first run.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from moonsync.cli.options import (
    build_resolver,
    config_option,
    open_store,
    resolve_settings,
    source_option,
    vault_option,
)
from moonsync.sync.pipeline import summarize, sync_from_source
from moonsync.sync.synchronizer import SyncOutcome, SyncResult

console = Console()

_OUTCOME_STYLES = {
    SyncOutcome.CREATED: "green",
    SyncOutcome.UPDATED: "cyan",
    SyncOutcome.UNCHANGED: "dim",
    SyncOutcome.DELETED: "yellow",
    SyncOutcome.SKIPPED: "dim",
}


def print_result_details(result: SyncResult) -> None:
    """Per-book table, shown when something failed or on the first sync of a vault."""
    if not (result.errors or result.first_run) or not (result.outcomes or result.errors):
        return

    table = Table()
    table.add_column("Book", style="bold")
    table.add_column("Result")
    for title, outcome in result.outcomes.items():
        style = _OUTCOME_STYLES[outcome]
        table.add_row(title, f"[{style}]{outcome.value}[/{style}]")
    for title, message in result.errors:
        table.add_row(title, f"[red]failed: {message}[/red]")
    console.print(table)


@click.command("sync")
@config_option
@source_option
@vault_option
def sync(config_path: Path | None, source_path: Path | None, vault_path: Path | None) -> None:
    """Sync Moon+ Reader highlights and progress into book notes."""
    settings = resolve_settings(config_path, vault_path=vault_path, source_path=source_path)
    store = open_store(settings)
    resolver, http_client = build_resolver()
    try:
        result = sync_from_source(settings, store, resolver, cover_fetcher=http_client.get_bytes)
    finally:
        http_client.close()

    line = summarize(result)
    if not result.success:
        console.print(f"[red]{line}[/red]")
        raise SystemExit(1)

    console.print(f"[green]{line}[/green]" if not result.errors else f"[yellow]{line}[/yellow]")
    print_result_details(result)
