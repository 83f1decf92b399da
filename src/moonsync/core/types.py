# ABOUTME: Core data structures for decoded Moon+ Reader annotations and reading progress.
# ABOUTME: BookRecord is the unit of work that flows from the cache reader to the synchronizer.

from dataclasses import dataclass, field


@dataclass
class HighlightRecord:
    """A single highlight (and optional note) decoded from an annotation file.

    Position is the only field that defines in-book order. Color is a packed
    24-bit RGB integer (the reader stores signed ARGB, so negative values occur).
    """

    id: int
    book: str
    filename: str
    chapter: int
    position: int
    length: int
    color: int
    timestamp: int
    note: str
    text: str
    underline: bool = False
    strikethrough: bool = False

    @property
    def has_note(self) -> bool:
        """Whether the user attached a non-blank note to this highlight."""
        return bool(self.note and self.note.strip())


@dataclass(frozen=True)
class ProgressRecord:
    """Reading position snapshot decoded from a position file."""

    progress: float
    chapter: int
    timestamp: int


@dataclass
class BookMetadata:
    """Externally fetched bibliographic fields attached to a book during a sync pass."""

    description: str | None = None
    published_date: str | None = None
    publisher: str | None = None
    page_count: int | None = None
    genres: list[str] | None = None
    series: str | None = None
    language: str | None = None
    cover_path: str | None = None


@dataclass
class BookRecord:
    """One book's highlights and progress for a single sync pass.

    Identity is the title, compared case-insensitively. Records are rebuilt
    from the cache directory on every pass and never persisted directly.
    """

    title: str
    author: str = ""
    filename: str = ""
    highlights: list[HighlightRecord] = field(default_factory=list)
    progress: float | None = None
    current_chapter: int | None = None
    last_read_timestamp: int | None = None
    metadata: BookMetadata = field(default_factory=BookMetadata)

    @property
    def key(self) -> str:
        """Grouping key used by the cache reader."""
        return self.title.lower()

    @property
    def highlight_count(self) -> int:
        return len(self.highlights)

    @property
    def note_count(self) -> int:
        return sum(1 for h in self.highlights if h.has_note)

    def apply_progress(self, progress: ProgressRecord) -> None:
        """Overwrite progress fields with a newer snapshot (last write wins)."""
        self.progress = progress.progress
        self.current_chapter = progress.chapter
        self.last_read_timestamp = progress.timestamp

    def sort_highlights(self) -> None:
        """Sort highlights into reading order (ascending position)."""
        self.highlights.sort(key=lambda h: h.position)
