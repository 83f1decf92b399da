# ABOUTME: Parsed view of an existing note: header entries, body, and user-authored sections.
# ABOUTME: Header entries keep their raw lines so user-owned keys survive regeneration verbatim.

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from moonsync.core.types import BookMetadata
from moonsync.store.documents import DocumentStore, normalize_path
from moonsync.writer.markdown import (
    BIBLIOGRAPHIC_FIELDS,
    CUSTOM_METADATA_FLAG,
    HIGHLIGHTS_END_MARKER,
    HIGHLIGHTS_START_MARKER,
    MANUAL_NOTE_FLAG,
    OWNED_FIELDS,
    USER_SECTION_HEADING,
    USER_SECTION_PLACEHOLDER,
    format_header_value,
    format_progress,
)

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"
NOTE_SUFFIX = ".md"

_KEY_RE = re.compile(r"^([A-Za-z_][\w-]*):(.*)$")
_NOTE_MARKER_RE = re.compile(r"^>\s*\*\*Note:\*\*", re.MULTILINE)
_PROGRESS_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*%?$")


@dataclass
class HeaderEntry:
    """One top-level header key and the raw lines it spans (continuations included)."""

    key: str
    lines: list[str]

    @property
    def inline_value(self) -> str:
        return self.lines[0].split(":", 1)[1].strip()


def _parse_scalar(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def parse_header_value(entry: HeaderEntry) -> Any:
    """Interpret a header entry's value.

    Inline values are read as JSON scalars when possible ("true", 3, "a b"),
    otherwise as plain text. An empty inline value followed by "- item" lines
    is a block list. Inline flow lists ([a, b]) are read as lists too.
    """
    inline = entry.inline_value
    if inline:
        value = _parse_scalar(inline)
        if isinstance(value, str) and inline.startswith("[") and inline.endswith("]"):
            return [_parse_scalar(item.strip()) for item in inline[1:-1].split(",") if item.strip()]
        return value

    items = []
    for line in entry.lines[1:]:
        stripped = line.strip()
        if stripped.startswith("- "):
            items.append(_parse_scalar(stripped[2:].strip()))
    return items or None


def split_frontmatter(text: str) -> tuple[list[str] | None, str]:
    """Split a note into header lines and body.

    Returns (None, text) when the note does not open with a "---" block.
    """
    lines = text.split("\n")
    if not lines or lines[0].rstrip("\r") != FRONTMATTER_DELIMITER:
        return None, text
    for index in range(1, len(lines)):
        if lines[index].rstrip("\r") == FRONTMATTER_DELIMITER:
            header = [line.rstrip("\r") for line in lines[1:index]]
            return header, "\n".join(lines[index + 1:])
    return None, text


def parse_header_entries(lines: list[str]) -> list[HeaderEntry]:
    entries: list[HeaderEntry] = []
    for line in lines:
        match = _KEY_RE.match(line)
        if match:
            entries.append(HeaderEntry(key=match.group(1), lines=[line]))
        elif entries:
            entries[-1].lines.append(line)
        # Lines before the first key (comments) are dropped.
    return entries


def extract_section(body: str, heading: str, *, to_end: bool = False) -> str | None:
    """Return the text under a "## Heading" up to the next level-1/2 heading.

    With to_end, everything after the heading is returned, including later
    headings the user added below it.
    """
    lines = body.split("\n")
    for index, line in enumerate(lines):
        if line.strip() == heading:
            collected = []
            for following in lines[index + 1:]:
                if not to_end and (following.startswith("## ") or following.startswith("# ")):
                    break
                collected.append(following)
            return "\n".join(collected).strip()
    return None


def splice_managed_block(body: str, block: str) -> str:
    """Replace the marker-delimited highlights block in body, or append one."""
    start = body.find(HIGHLIGHTS_START_MARKER)
    end = body.find(HIGHLIGHTS_END_MARKER, start + 1) if start != -1 else -1
    if start != -1 and end != -1:
        return body[:start] + block + body[end + len(HIGHLIGHTS_END_MARKER):]
    return f"{body.rstrip()}\n\n{block}\n"


@dataclass
class PersistedDocument:
    """A note already in the vault, as found at the start of a sync pass."""

    path: str
    header: list[HeaderEntry] = field(default_factory=list)
    body: str = ""
    has_frontmatter: bool = False

    @classmethod
    def parse(cls, path: str, text: str) -> "PersistedDocument":
        header_lines, body = split_frontmatter(text)
        if header_lines is None:
            return cls(path=path, body=text)
        return cls(
            path=path,
            header=parse_header_entries(header_lines),
            body=body,
            has_frontmatter=True,
        )

    @property
    def stem(self) -> str:
        name = self.path.rsplit("/", 1)[-1]
        return name[: -len(NOTE_SUFFIX)] if name.endswith(NOTE_SUFFIX) else name

    def entry(self, key: str) -> HeaderEntry | None:
        for candidate in self.header:
            if candidate.key == key:
                return candidate
        return None

    def get(self, key: str, default: Any = None) -> Any:
        found = self.entry(key)
        if found is None:
            return default
        value = parse_header_value(found)
        return default if value is None else value

    def _get_text(self, key: str) -> str | None:
        value = self.get(key)
        if value is None or value == "":
            return None
        return str(value)

    def _get_int(self, key: str) -> int | None:
        value = self.get(key)
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        try:
            return int(str(value))
        except ValueError:
            return None

    @property
    def title(self) -> str | None:
        return self._get_text("title")

    @property
    def author(self) -> str:
        return self._get_text("author") or ""

    @property
    def highlights_count(self) -> int | None:
        return self._get_int("highlights_count")

    @property
    def notes_count(self) -> int:
        """Stored notes_count, or the number of rendered note lines for older notes."""
        stored = self._get_int("notes_count")
        if stored is not None:
            return stored
        return len(_NOTE_MARKER_RE.findall(self.body))

    @property
    def highlights_hash(self) -> str | None:
        return self._get_text("highlights_hash")

    @property
    def progress(self) -> str | None:
        """Progress as the renderer formats it ("33.3%"), whatever way it was stored."""
        value = self.get("progress")
        if value is None:
            return None
        if isinstance(value, int | float) and not isinstance(value, bool):
            return format_progress(float(value))
        match = _PROGRESS_RE.match(str(value).strip())
        if match:
            return format_progress(float(match.group(1)))
        return str(value)

    @property
    def progress_value(self) -> float | None:
        text = self.progress
        if text is None:
            return None
        match = _PROGRESS_RE.match(text)
        return float(match.group(1)) if match else None

    @property
    def last_read(self) -> str | None:
        return self._get_text("last_read")

    @property
    def cover(self) -> str | None:
        return self._get_text("cover")

    @property
    def is_manual(self) -> bool:
        return self.get(MANUAL_NOTE_FLAG) is True

    @property
    def has_custom_metadata(self) -> bool:
        return self.get(CUSTOM_METADATA_FLAG) is True

    @property
    def is_book_note(self) -> bool:
        """Whether this note was produced by a sync or the manual creation flow."""
        return self.title is not None and (
            self.entry("highlights_count") is not None or self.is_manual
        )

    @property
    def user_notes(self) -> str | None:
        """Authored content of the "My Notes" section; None if empty or the placeholder."""
        content = extract_section(self.body, USER_SECTION_HEADING, to_end=True)
        if not content or content == USER_SECTION_PLACEHOLDER:
            return None
        return content

    @property
    def has_user_content(self) -> bool:
        return self.user_notes is not None

    @property
    def description(self) -> str | None:
        return extract_section(self.body, "## Description") or None

    def extra_header_lines(self) -> list[str]:
        """Raw lines of every header key the renderer does not own, in order."""
        lines: list[str] = []
        for entry in self.header:
            if entry.key not in OWNED_FIELDS:
                lines.extend(entry.lines)
        return lines

    def bibliographic_metadata(self) -> BookMetadata:
        """The note's own bibliographic fields, description and cover."""
        genres = self.get("genres")
        if genres is not None and not isinstance(genres, list):
            genres = [str(genres)]
        return BookMetadata(
            description=self.description,
            published_date=self._get_text("published_date"),
            publisher=self._get_text("publisher"),
            page_count=self._get_int("page_count"),
            genres=genres,
            series=self._get_text("series"),
            language=self._get_text("language"),
            cover_path=self.cover,
        )

    def render_with_fields(self, updates: dict[str, Any]) -> str:
        """Render the note with some header keys replaced or appended, body untouched."""
        remaining = dict(updates)
        lines = [FRONTMATTER_DELIMITER]
        for entry in self.header:
            if entry.key in remaining:
                lines.extend(format_header_value(entry.key, remaining.pop(entry.key)))
            else:
                lines.extend(entry.lines)
        for key, value in remaining.items():
            lines.extend(format_header_value(key, value))
        lines.append(FRONTMATTER_DELIMITER)
        return "\n".join(lines) + "\n" + self.body


def scan_documents(
    store: DocumentStore, folder: str, *, exclude: set[str] | None = None
) -> list[PersistedDocument]:
    """Parse every note directly inside folder, in path order.

    Notes that cannot be read are logged and left out.
    """
    skip = {normalize_path(p) for p in (exclude or set())}
    documents: list[PersistedDocument] = []
    for path in store.list_files(folder):
        if not path.endswith(NOTE_SUFFIX) or normalize_path(path) in skip:
            continue
        try:
            text = store.read(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read note %s: %s", path, exc)
            continue
        documents.append(PersistedDocument.parse(path, text))
    return documents


def bibliographic_header_fields(metadata: BookMetadata) -> dict[str, Any]:
    return {
        name: getattr(metadata, name) for name in BIBLIOGRAPHIC_FIELDS if getattr(metadata, name)
    }
