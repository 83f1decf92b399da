# ABOUTME: The `moonsync inspect` command for viewing one reader sidecar file.
# ABOUTME: Decodes an .an or .po file and prints its contents as a table.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from moonsync.formats.annotations import (
    POSITION_SUFFIX,
    AnnotationDecodeError,
    decode_annotation_data,
)
from moonsync.formats.position import parse_position_file
from moonsync.writer.markdown import format_date, get_callout_type

console = Console()

_PREVIEW_LENGTH = 60


def _preview(text: str) -> str:
    flat = text.replace("\n", " ")
    return flat if len(flat) <= _PREVIEW_LENGTH else flat[: _PREVIEW_LENGTH - 3] + "..."


def _inspect_position(path: Path) -> None:
    progress = parse_position_file(path)
    if progress is None:
        console.print(f"[red]Error:[/red] {path.name} is not a valid position file")
        raise SystemExit(1)

    table = Table(title=path.name, show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Progress", f"{progress.progress:.1f}%")
    table.add_row("Chapter", str(progress.chapter))
    last_read = format_date(progress.timestamp) if progress.timestamp else "[dim]unknown[/dim]"
    table.add_row("Last read", last_read)
    console.print(table)


def _inspect_annotations(path: Path) -> None:
    try:
        parsed = decode_annotation_data(path.read_bytes(), path.name)
    except (AnnotationDecodeError, OSError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    title = parsed.highlights[0].book if parsed.highlights else parsed.book_title
    console.print(f"[bold]{title}[/bold]" + (f" by {parsed.author}" if parsed.author else ""))

    table = Table()
    table.add_column("Pos", justify="right", style="dim")
    table.add_column("Ch", justify="right")
    table.add_column("Type")
    table.add_column("Text")
    table.add_column("Note")
    for highlight in parsed.highlights:
        table.add_row(
            str(highlight.position),
            str(highlight.chapter),
            get_callout_type(highlight.color),
            _preview(highlight.text),
            _preview(highlight.note) if highlight.has_note else "",
        )
    console.print(table)
    console.print(f"{len(parsed.highlights)} highlight(s)")


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(path: Path) -> None:
    """Show what MoonSync decodes from an annotation (.an) or position (.po) file."""
    if path.name.endswith(POSITION_SUFFIX):
        _inspect_position(path)
    else:
        _inspect_annotations(path)
