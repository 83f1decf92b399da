# ABOUTME: Renders book records into Obsidian Markdown notes and the library index note.
# ABOUTME: Pure functions: same record and settings in, same text out (except last_synced).

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from moonsync.config import SyncSettings
from moonsync.core.types import BookRecord, HighlightRecord

_INVALID_FILENAME_RE = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE_RE = re.compile(r"\s+")
_MAX_FILENAME_LENGTH = 100

USER_SECTION_HEADING = "## My Notes"
USER_SECTION_PLACEHOLDER = "*Add your thoughts about this book here.*"

HIGHLIGHTS_START_MARKER = "<!-- moonsync:highlights:start -->"
HIGHLIGHTS_END_MARKER = "<!-- moonsync:highlights:end -->"

TRACKING_FIELDS: tuple[str, ...] = (
    "title",
    "author",
    "progress",
    "current_chapter",
    "last_read",
    "last_synced",
    "moon_reader_path",
    "highlights_count",
    "notes_count",
    "highlights_hash",
)
BIBLIOGRAPHIC_FIELDS: tuple[str, ...] = (
    "published_date",
    "publisher",
    "page_count",
    "genres",
    "series",
    "language",
)
# Header keys the renderer owns, in emission order. Any other key in an
# existing note belongs to the user and is carried over on regeneration.
OWNED_FIELDS: tuple[str, ...] = (*TRACKING_FIELDS, *BIBLIOGRAPHIC_FIELDS, "cover")

MANUAL_NOTE_FLAG = "manual_note"
CUSTOM_METADATA_FLAG = "custom_metadata"


def generate_filename(title: str) -> str:
    """Make a safe note filename (without extension) from a book title."""
    name = _INVALID_FILENAME_RE.sub("", title)
    name = _WHITESPACE_RE.sub(" ", name).strip()
    return name[:_MAX_FILENAME_LENGTH]


def cover_filename(title: str) -> str:
    return f"{generate_filename(title)}.jpg"


def get_callout_type(color: int) -> str:
    """Map a packed RGB highlight color to an Obsidian callout type.

    Thresholds are checked top to bottom and the first match wins:
    yellow, blue, green, red, orange, then the quote default.
    """
    r = (color >> 16) & 0xFF
    g = (color >> 8) & 0xFF
    b = color & 0xFF

    if r > 200 and g > 200 and b < 100:
        return "quote"
    if b > r and b > g and b > 150:
        return "info"
    if g > r and g > b and g > 150:
        return "tip"
    if r > g and r > b and r > 150:
        return "warning"
    if r > 200 and 100 < g < 200 and b < 100:
        return "warning"
    return "quote"


def _utc(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def format_date(timestamp_ms: int) -> str:
    """Format an epoch-millisecond timestamp as "Nov 14, 2023" (UTC)."""
    moment = _utc(timestamp_ms)
    return f"{moment:%b} {moment.day}, {moment.year}"


def format_iso_date(timestamp_ms: int) -> str:
    return _utc(timestamp_ms).date().isoformat()


def format_progress(progress: float) -> str:
    return f"{progress:.1f}%"


def format_highlight(
    highlight: HighlightRecord, *, use_colors: bool = True, show_notes: bool = True
) -> str:
    """Render one highlight as a callout with an optional Chapter/date header."""
    callout = get_callout_type(highlight.color) if use_colors else "quote"
    header_parts = []
    if highlight.chapter > 0:
        header_parts.append(f"Chapter {highlight.chapter}")
    if highlight.timestamp:
        header_parts.append(format_date(highlight.timestamp))
    header = " • ".join(header_parts)

    lines = [f"> [!{callout}] {header}" if header else f"> [!{callout}]"]
    for text_line in highlight.text.strip().split("\n"):
        lines.append(f"> {text_line}" if text_line else ">")

    if show_notes and highlight.has_note:
        note_lines = highlight.note.strip().split("\n")
        lines.append(">")
        lines.append(f"> **Note:** {note_lines[0]}")
        lines.extend(f"> {line}" if line else ">" for line in note_lines[1:])

    return "\n".join(lines)


def format_header_value(key: str, value: Any) -> list[str]:
    """Render one header entry as YAML lines.

    Strings and numbers are written as JSON scalars (valid YAML); lists are
    written in block style, one quoted item per line.
    """
    if isinstance(value, bool):
        return [f"{key}: {'true' if value else 'false'}"]
    if isinstance(value, list):
        return [f"{key}:", *(f"  - {json.dumps(str(item), ensure_ascii=False)}" for item in value)]
    if isinstance(value, int | float):
        return [f"{key}: {value}"]
    text = str(value).replace("\n", " ")
    return [f"{key}: {json.dumps(text, ensure_ascii=False)}"]


def render_header_fields(
    book: BookRecord,
    settings: SyncSettings,
    *,
    today: date,
    content_hash: str,
) -> dict[str, Any]:
    """Compute the renderer-owned header fields for a book, in emission order.

    Tracking fields are always present when they have a value. Bibliographic
    fields are included only with show_metadata, the cover only with show_covers.
    """
    fields: dict[str, Any] = {"title": book.title}
    if book.author:
        fields["author"] = book.author
    if book.progress is not None:
        fields["progress"] = format_progress(book.progress)
    if book.current_chapter is not None:
        fields["current_chapter"] = book.current_chapter
    if book.last_read_timestamp:
        fields["last_read"] = format_iso_date(book.last_read_timestamp)
    fields["last_synced"] = today.isoformat()
    if book.filename:
        fields["moon_reader_path"] = book.filename
    fields["highlights_count"] = book.highlight_count
    fields["notes_count"] = book.note_count
    fields["highlights_hash"] = content_hash

    if settings.show_metadata:
        metadata = book.metadata
        for name in BIBLIOGRAPHIC_FIELDS:
            value = getattr(metadata, name)
            if value:
                fields[name] = value

    if settings.show_covers and book.metadata.cover_path:
        fields["cover"] = book.metadata.cover_path
    return fields


def render_frontmatter(fields: dict[str, Any], extra_lines: Iterable[str] = ()) -> str:
    """Render a header block from owned fields followed by preserved raw lines."""
    lines = ["---"]
    for key, value in fields.items():
        lines.extend(format_header_value(key, value))
    lines.extend(extra_lines)
    lines.append("---")
    return "\n".join(lines)


def render_highlights_block(highlights: list[HighlightRecord], settings: SyncSettings) -> str:
    """Render the "## Highlights" section, or an empty string when there are none."""
    if not highlights:
        return ""
    parts = ["## Highlights", ""]
    for highlight in highlights:
        parts.append(
            format_highlight(
                highlight,
                use_colors=settings.show_highlight_colors,
                show_notes=settings.show_notes,
            )
        )
        parts.append("")
    return "\n".join(parts)


def render_user_section(user_notes: str | None = None) -> str:
    content = user_notes.strip() if user_notes and user_notes.strip() else USER_SECTION_PLACEHOLDER
    return f"{USER_SECTION_HEADING}\n\n{content}\n"


def _render_title_block(
    title: str, author: str, cover_path: str | None, settings: SyncSettings
) -> list[str]:
    lines = [f"# {title}"]
    if author:
        lines.append(f"**Author:** {author}")
    lines.append("")
    if settings.show_covers and cover_path:
        lines.append(f"![[{cover_path}|200]]")
        lines.append("")
    return lines


def _render_description(description: str | None, settings: SyncSettings) -> list[str]:
    if not (settings.show_description and description and description.strip()):
        return []
    return ["## Description", description.strip(), ""]


def render_book_body(
    book: BookRecord, settings: SyncSettings, user_notes: str | None = None
) -> str:
    lines = _render_title_block(book.title, book.author, book.metadata.cover_path, settings)

    if settings.show_reading_progress and (
        book.progress is not None or book.current_chapter is not None
    ):
        lines.append("## Reading Progress")
        if book.progress is not None:
            lines.append(f"- **Progress:** {format_progress(book.progress)}")
        if book.current_chapter is not None:
            lines.append(f"- **Chapter:** {book.current_chapter}")
        if book.last_read_timestamp:
            lines.append(f"- **Last read:** {format_date(book.last_read_timestamp)}")
        lines.append("")

    lines.extend(_render_description(book.metadata.description, settings))

    highlights = render_highlights_block(book.highlights, settings)
    if highlights:
        lines.append(highlights)

    lines.append(render_user_section(user_notes))
    return "\n".join(lines)


def render_book_document(
    book: BookRecord,
    settings: SyncSettings,
    *,
    today: date,
    content_hash: str,
    extra_header_lines: Iterable[str] = (),
    user_notes: str | None = None,
) -> str:
    """Render the full note for a synced book.

    Args:
        book: The book with highlights sorted and metadata attached.
        settings: Display toggles.
        today: Value of the last_synced field.
        content_hash: Highlights hash stored for change detection.
        extra_header_lines: Raw header lines of user-owned keys to carry over.
        user_notes: Authored content of the "My Notes" section, if any.
    """
    fields = render_header_fields(book, settings, today=today, content_hash=content_hash)
    header = render_frontmatter(fields, extra_header_lines)
    return f"{header}\n{render_book_body(book, settings, user_notes)}"


def render_managed_highlights(highlights: list[HighlightRecord], settings: SyncSettings) -> str:
    """Highlights block wrapped in markers, for splicing into manually written notes."""
    block = render_highlights_block(highlights, settings).rstrip("\n")
    inner = f"{block}\n" if block else ""
    return f"{HIGHLIGHTS_START_MARKER}\n{inner}{HIGHLIGHTS_END_MARKER}"


def render_manual_template(
    title: str,
    author: str,
    settings: SyncSettings,
    *,
    today: date,
    metadata_fields: dict[str, Any] | None = None,
    description: str | None = None,
    cover_path: str | None = None,
) -> str:
    """Render the starting note for a book created by hand.

    The note is flagged manual_note so later syncs keep its body and only
    splice in a highlights block.
    """
    fields: dict[str, Any] = {"title": title}
    if author:
        fields["author"] = author
    fields["last_synced"] = today.isoformat()
    fields["highlights_count"] = 0
    fields[MANUAL_NOTE_FLAG] = True
    if settings.show_metadata and metadata_fields:
        for name in BIBLIOGRAPHIC_FIELDS:
            if metadata_fields.get(name):
                fields[name] = metadata_fields[name]
    if settings.show_covers and cover_path:
        fields["cover"] = cover_path

    lines = _render_title_block(title, author, cover_path, settings)
    lines.extend(_render_description(description, settings))
    lines.extend(["## Highlights", "", "> [!quote]", "> Add your highlights here...", ""])
    lines.append(render_user_section())
    return f"{render_frontmatter(fields)}\n" + "\n".join(lines)


@dataclass
class IndexEntry:
    """One book's line in the library index, derived from its note."""

    title: str
    filename: str
    author: str = ""
    highlights_count: int = 0
    notes_count: int = 0
    progress: float | None = None
    last_read: str | None = None
    cover: str | None = None


def _collage_entries(entries: list[IndexEntry], settings: SyncSettings) -> list[IndexEntry]:
    with_covers = [e for e in entries if e.cover]
    if settings.cover_collage_sort == "recent":
        # Most recently read first; never-read books go last, alphabetically.
        with_covers.sort(key=lambda e: e.title.lower())
        with_covers.sort(key=lambda e: e.last_read or "", reverse=True)
    else:
        with_covers.sort(key=lambda e: e.title.lower())
    if settings.cover_collage_limit > 0:
        with_covers = with_covers[: settings.cover_collage_limit]
    return with_covers


def render_index(entries: list[IndexEntry], settings: SyncSettings, *, today: date) -> str:
    """Render the library index note: totals, optional cover collage, one line per book."""
    total_books = len(entries)
    total_highlights = sum(e.highlights_count for e in entries)
    total_notes = sum(e.notes_count for e in entries)
    with_progress = [e.progress for e in entries if e.progress is not None]

    lines = [
        "---",
        f"total_books: {total_books}",
        f"total_highlights: {total_highlights}",
        f"total_notes: {total_notes}",
        f"last_synced: {today.isoformat()}",
        "---",
        "# Reading Library",
        "",
    ]

    if settings.show_cover_collage:
        collage = _collage_entries(entries, settings)
        if collage:
            lines.append(" ".join(f"[[{e.filename}|![[{e.cover}|100]]]]" for e in collage))
            lines.append("")

    lines.append("## Summary")
    lines.append(f"- **Books:** {total_books}")
    lines.append(f"- **Highlights:** {total_highlights}")
    lines.append(f"- **Notes:** {total_notes}")
    if with_progress:
        average = sum(with_progress) / len(with_progress)
        lines.append(f"- **Average Progress:** {format_progress(average)}")
    lines.append("")

    lines.append("## Books")
    lines.append("")
    for entry in sorted(entries, key=lambda e: e.title.lower()):
        by_author = f" by {entry.author}" if entry.author else ""
        progress = f" ({entry.progress:.0f}%)" if entry.progress is not None else ""
        lines.append(
            f"- [[{entry.filename}|{entry.title}]]{by_author}{progress}"
            f" - {entry.highlights_count} highlights, {entry.notes_count} notes"
        )
    lines.append("")
    return "\n".join(lines)
