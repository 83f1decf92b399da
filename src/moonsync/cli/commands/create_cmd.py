# ABOUTME: The `moonsync create` command for books not read in Moon+ Reader.
# ABOUTME: Writes a manual note with fetched metadata and cover.

from pathlib import Path

import click
from rich.console import Console

from moonsync.cli.options import (
    build_resolver,
    config_option,
    open_store,
    resolve_settings,
    vault_option,
)
from moonsync.sync.pipeline import SyncError, create_book_document

console = Console()


@click.command("create")
@click.argument("title")
@click.option("-a", "--author", default="", help="Book author (improves the metadata lookup).")
@config_option
@vault_option
def create(title: str, author: str, config_path: Path | None, vault_path: Path | None) -> None:
    """Create a manual note for TITLE."""
    settings = resolve_settings(config_path, vault_path=vault_path)
    store = open_store(settings)
    resolver, http_client = build_resolver()
    try:
        path = create_book_document(
            title, author, settings, store, resolver, cover_fetcher=http_client.get_bytes
        )
    except SyncError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        http_client.close()

    console.print(f'[green]Created note for "{title}":[/green] {path}')
