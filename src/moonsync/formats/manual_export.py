# ABOUTME: Parser for notes exported by hand from Moon+ Reader's "share highlights" screen.
# ABOUTME: Turns the bulleted export text into HighlightRecords for a one-off import.

import re
from dataclasses import dataclass, field

from moonsync.core.types import HighlightRecord

# "Title - Author (Highlight: 12; Note: 3)"
_HEADER_RE = re.compile(r"^(.+?)\s+-\s+(.+?)\s+\(Highlight:\s+\d+;\s+Note:\s+\d+\)$")
_CHAPTER_NUMBER_RE = re.compile(r"Chapter\s+(\d+)", re.IGNORECASE)
_TRAILING_NOTE_RE = re.compile(r"^(.*?)\s+\((.+)\)$")

_CHAPTER_MARKER = "◆"
_HIGHLIGHT_MARKER = "▪"
_SEPARATOR_PREFIX = "───"

# Moon+ Reader's default yellow, as signed ARGB.
DEFAULT_EXPORT_COLOR = -256


@dataclass
class ManualExport:
    """Title, author, and highlights recovered from a manual export."""

    title: str
    author: str
    highlights: list[HighlightRecord] = field(default_factory=list)


def parse_manual_export(content: str, *, timestamp: int = 0) -> ManualExport | None:
    """Parse a manual export note.

    Format::

        Title - Author (Highlight: X; Note: Y)
        ───────────────
        ◆ Chapter Name
        ▪ highlight text
        ▪ highlight text (note text)

    Returns None if the first line is not a recognizable export header.
    Exports carry no positions, so highlights are numbered in file order.
    """
    lines = content.split("\n")
    header = _HEADER_RE.match(lines[0].strip()) if lines else None
    if header is None:
        return None

    title = header.group(1).strip()
    author = header.group(2).strip()
    export = ManualExport(title=title, author=author)

    chapter = 0
    for raw in lines[1:]:
        line = raw.strip()
        if not line or line.startswith(_SEPARATOR_PREFIX):
            continue

        if line.startswith(_CHAPTER_MARKER):
            chapter_name = line[len(_CHAPTER_MARKER):].strip()
            number = _CHAPTER_NUMBER_RE.search(chapter_name)
            chapter = int(number.group(1)) if number else chapter + 1
            continue

        if line.startswith(_HIGHLIGHT_MARKER):
            text = line[len(_HIGHLIGHT_MARKER):].strip()
            note = ""
            note_match = _TRAILING_NOTE_RE.match(text)
            if note_match:
                text = note_match.group(1).strip()
                note = note_match.group(2).strip()
            if not text:
                continue

            index = len(export.highlights)
            export.highlights.append(
                HighlightRecord(
                    id=index,
                    book=title,
                    filename="",
                    chapter=chapter,
                    position=index,
                    length=len(text),
                    color=DEFAULT_EXPORT_COLOR,
                    timestamp=timestamp,
                    note=note,
                    text=text,
                )
            )

    return export
