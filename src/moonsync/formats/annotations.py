# ABOUTME: Decoder for Moon+ Reader .an annotation files (zlib-compressed, line-oriented).
# ABOUTME: Walks highlight blocks with a line cursor and resolves note/text by lookahead.

import logging
import re
import zlib
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from moonsync.core.types import HighlightRecord

logger = logging.getLogger(__name__)

BLOCK_SENTINEL = "#"
ZERO_SENTINEL = "0"

# Sidecar suffixes written next to each book in the reader's cache folder.
ANNOTATION_SUFFIX = ".an"
POSITION_SUFFIX = ".po"

_BOOK_EXTENSION_RE = re.compile(r"\.(epub|mobi|pdf|azw3?|fb2|txt)$", re.IGNORECASE)
_LEADING_INT_RE = re.compile(r"^\s*(-?\d+)")


class AnnotationDecodeError(Exception):
    """Raised when an annotation file cannot be decompressed or decoded."""


@dataclass
class AnnotationFile:
    """Result of decoding one annotation file.

    book_title and author come from the filename and are only used as a
    fallback identity when no highlight carries an in-stream title.
    """

    filename: str
    book_title: str
    author: str
    highlights: list[HighlightRecord] = field(default_factory=list)


class LineCursor:
    """Forward-only cursor over decoded lines.

    peek() never moves; advance() returns the current line and moves past it.
    Both return None once the cursor runs off the end.
    """

    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self._index = 0

    @property
    def exhausted(self) -> bool:
        return self._index >= len(self._lines)

    @property
    def index(self) -> int:
        return self._index

    def peek(self, offset: int = 0) -> str | None:
        target = self._index + offset
        if 0 <= target < len(self._lines):
            return self._lines[target]
        return None

    def advance(self) -> str | None:
        line = self.peek()
        if not self.exhausted:
            self._index += 1
        return line

    def skip_while(self, predicate: Callable[[str], bool]) -> None:
        while not self.exhausted and predicate(self._lines[self._index]):
            self._index += 1


def normalize_book_title(title: str, author: str | None = None) -> str:
    """Strip a known ebook extension and a trailing ' - Author' suffix from a title."""
    normalized = _BOOK_EXTENSION_RE.sub("", title)
    if author:
        suffix = f" - {author}"
        if normalized.endswith(suffix):
            normalized = normalized[: -len(suffix)]
    return normalized.strip()


def strip_sidecar_suffix(filename: str) -> str:
    """Remove the .an/.po suffix and the book extension from a cache filename.

    "Dune - Frank Herbert.epub.an" -> "Dune - Frank Herbert"
    """
    base = filename
    for suffix in (ANNOTATION_SUFFIX, POSITION_SUFFIX):
        if base.endswith(suffix):
            base = base[: -len(suffix)]
            break
    return _BOOK_EXTENSION_RE.sub("", base)


def split_title_author(filename: str) -> tuple[str, str]:
    """Split a 'Title - Author.ext.an' cache filename into (title, author).

    Only the first ' - ' separates the title; the remainder is the author
    (authors may themselves contain ' - ').
    """
    base = strip_sidecar_suffix(filename)
    parts = base.split(" - ")
    title = parts[0] or base
    author = " - ".join(parts[1:]) if len(parts) > 1 else ""
    return title, author


def _parse_int(line: str | None) -> int:
    """Parse the leading integer of a line; malformed or missing values become 0."""
    if not line:
        return 0
    match = _LEADING_INT_RE.match(line)
    return int(match.group(1)) if match else 0


def _clean_text(line: str) -> str:
    return line.replace("<BR>", "\n").strip()


def _is_payload_terminator(line: str) -> bool:
    return line == ZERO_SENTINEL or line == ""


def _read_payload(cursor: LineCursor) -> tuple[str, str]:
    """Read the (note, text) payload that follows a block's scalar fields.

    Two non-sentinel lines mean note then text; a single line is text only.
    A genuine two-line highlight without a note is indistinguishable from a
    note plus text, and is read as the latter.
    """
    note = ""
    text = ""
    first = cursor.peek()
    if first is not None and first != ZERO_SENTINEL:
        cursor.advance()
        second = cursor.peek()
        if second is not None and not _is_payload_terminator(second):
            note = _clean_text(first)
            text = _clean_text(second)
            cursor.advance()
        else:
            text = _clean_text(first)
    return note, text


def _read_block(cursor: LineCursor, author: str) -> HighlightRecord | None:
    """Read one block; the cursor is positioned just after its '#' line."""
    highlight_id = _parse_int(cursor.advance())
    title = cursor.advance() or ""
    full_path = cursor.advance() or ""
    cursor.advance()  # lowercased path, unused
    chapter = _parse_int(cursor.advance())
    cursor.advance()  # always-zero placeholder
    position = _parse_int(cursor.advance())
    length = _parse_int(cursor.advance())
    color = _parse_int(cursor.advance())
    timestamp = _parse_int(cursor.advance())

    cursor.skip_while(lambda line: line == "")
    note, text = _read_payload(cursor)
    cursor.skip_while(_is_payload_terminator)

    if not text:
        return None

    return HighlightRecord(
        id=highlight_id,
        book=normalize_book_title(title, author),
        filename=full_path,
        chapter=chapter,
        position=position,
        length=length,
        color=color,
        timestamp=timestamp,
        note=note,
        text=text,
    )


def decode_annotation_lines(lines: list[str], author: str = "") -> list[HighlightRecord]:
    """Decode highlight blocks from already-decompressed lines, in file order."""
    cursor = LineCursor(lines)
    cursor.skip_while(lambda line: line != BLOCK_SENTINEL)

    highlights: list[HighlightRecord] = []
    while not cursor.exhausted:
        if cursor.advance() != BLOCK_SENTINEL:
            continue
        if cursor.exhausted:
            break
        record = _read_block(cursor, author)
        if record is not None:
            highlights.append(record)
    return highlights


def decode_annotation_data(data: bytes, filename: str) -> AnnotationFile:
    """Decode the raw bytes of one .an file.

    Args:
        data: Compressed file content.
        filename: The file's own name, used for the fallback title and author.

    Returns:
        An AnnotationFile with every block whose highlight text is non-empty.

    Raises:
        AnnotationDecodeError: If the data is not a valid zlib stream.
    """
    try:
        raw = zlib.decompress(data)
    except zlib.error as exc:
        raise AnnotationDecodeError(f"Cannot decompress {filename}: {exc}") from exc

    text = raw.decode("utf-8", errors="replace")
    lines = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]

    title, author = split_title_author(filename)
    return AnnotationFile(
        filename=filename,
        book_title=normalize_book_title(title),
        author=author,
        highlights=decode_annotation_lines(lines, author),
    )


def parse_annotation_file(path: Path) -> AnnotationFile | None:
    """Read and decode an annotation file, returning None if it cannot be decoded.

    Failures are logged and never raised, so one bad file does not affect the
    rest of the cache directory.
    """
    try:
        data = path.read_bytes()
        return decode_annotation_data(data, path.name)
    except (OSError, AnnotationDecodeError) as exc:
        logger.warning("Failed to parse annotation file %s: %s", path.name, exc)
        return None
