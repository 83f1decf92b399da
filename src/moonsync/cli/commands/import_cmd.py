# ABOUTME: The `moonsync import-export` command for Moon+ Reader "share highlights" text.
# ABOUTME: Parses an exported file and writes it as a regular book note.

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
from moonsync.sync.pipeline import SyncError, import_manual_export

console = Console()


@click.command("import-export")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@vault_option
def import_export(path: Path, config_path: Path | None, vault_path: Path | None) -> None:
    """Import a Moon+ Reader highlights export file into a note."""
    settings = resolve_settings(config_path, vault_path=vault_path)
    store = open_store(settings)
    content = path.read_text(encoding="utf-8")

    resolver, http_client = build_resolver()
    try:
        note_path, count = import_manual_export(
            content, settings, store, resolver, cover_fetcher=http_client.get_bytes
        )
    except SyncError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        http_client.close()

    console.print(f"[green]Imported {count} highlight(s):[/green] {note_path}")
