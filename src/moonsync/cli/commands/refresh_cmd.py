# ABOUTME: The `moonsync refresh-metadata` command.
# ABOUTME: Drops the metadata cache so every book is looked up again, then runs a sync.

from pathlib import Path

import click
from rich.console import Console

from moonsync.cli.commands.sync_cmd import print_result_details
from moonsync.cli.options import (
    build_resolver,
    config_option,
    open_store,
    resolve_settings,
    source_option,
    vault_option,
)
from moonsync.sync.pipeline import force_refresh_metadata, summarize

console = Console()


@click.command("refresh-metadata")
@config_option
@source_option
@vault_option
def refresh_metadata(
    config_path: Path | None, source_path: Path | None, vault_path: Path | None
) -> None:
    """Re-fetch metadata for every book, ignoring the local cache."""
    settings = resolve_settings(config_path, vault_path=vault_path, source_path=source_path)
    store = open_store(settings)
    resolver, http_client = build_resolver()
    try:
        result = force_refresh_metadata(
            settings, store, resolver, cover_fetcher=http_client.get_bytes
        )
    finally:
        http_client.close()

    line = summarize(result)
    if not result.success:
        console.print(f"[red]Failed to refresh metadata: {line}[/red]")
        raise SystemExit(1)
    console.print(f"[green]{line}[/green]")
    print_result_details(result)
