# ABOUTME: Generates the Obsidian Bases view over the generated book notes.
# ABOUTME: One table view and one cards (gallery) view, regenerated wholesale.

import json

from moonsync.config import SyncSettings
from moonsync.writer.markdown import BIBLIOGRAPHIC_FIELDS

_COLUMNS: tuple[tuple[str, str], ...] = (
    ("author", "Author"),
    ("progress", "Progress"),
    ("highlights_count", "Highlights"),
    ("notes_count", "Notes"),
    ("last_read", "Last Read"),
    ("published_date", "Published"),
    ("publisher", "Publisher"),
    ("page_count", "Pages"),
    ("genres", "Genres"),
    ("series", "Series"),
    ("language", "Language"),
)


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def render_base_file(settings: SyncSettings) -> str:
    """Render the .base file that lists every note in the output folder.

    The index note is filtered out. Bibliographic columns are only listed
    when show_metadata is on.
    """
    columns = [c for c in _COLUMNS if settings.show_metadata or c[0] not in BIBLIOGRAPHIC_FIELDS]

    lines = [
        "filters:",
        "  and:",
        f"    - file.inFolder({_quote(settings.output_folder)})",
        '    - file.ext == "md"',
        f"    - file.name != {_quote(settings.index_note_title)}",
        "properties:",
    ]
    for key, label in columns:
        lines.append(f"  note.{key}:")
        lines.append(f"    displayName: {_quote(label)}")

    lines.append("views:")
    lines.append("  - type: table")
    lines.append('    name: "All Books"')
    lines.append("    order:")
    lines.append("      - file.name")
    lines.extend(f"      - note.{key}" for key, _ in columns)
    lines.append("    sort:")
    lines.append("      - property: file.name")
    lines.append("        direction: ASC")

    lines.append("  - type: cards")
    lines.append('    name: "Gallery"')
    if settings.show_covers:
        lines.append("    image: note.cover")
    lines.append("    order:")
    lines.append("      - file.name")
    lines.append("      - note.author")
    lines.append("      - note.progress")
    lines.append("    sort:")
    lines.append("      - property: note.last_read")
    lines.append("        direction: DESC")
    lines.append("")
    return "\n".join(lines)

