# ABOUTME: Unit tests for the Markdown note and index renderers.
# ABOUTME: Covers callout colors, date formatting, filenames, header values, bodies, and the index.

from dataclasses import replace

import pytest

from moonsync.config import SyncSettings
from moonsync.core.types import BookMetadata, BookRecord, HighlightRecord
from moonsync.writer.markdown import (
    HIGHLIGHTS_END_MARKER,
    HIGHLIGHTS_START_MARKER,
    USER_SECTION_PLACEHOLDER,
    IndexEntry,
    format_date,
    format_header_value,
    format_highlight,
    generate_filename,
    get_callout_type,
    render_book_document,
    render_index,
    render_managed_highlights,
    render_manual_template,
)
from tests.fixtures.annotation_files import BLUE, GREEN, RED, TIMESTAMP, YELLOW
from tests.fixtures.fakes import TODAY


def _highlight(text: str = "I must not fear.", **overrides) -> HighlightRecord:
    base = HighlightRecord(
        id=1,
        book="Dune",
        filename="/sdcard/Books/Dune.epub",
        chapter=3,
        position=100,
        length=len(text),
        color=YELLOW,
        timestamp=TIMESTAMP,
        note="",
        text=text,
    )
    return replace(base, **overrides)


def _book(**overrides) -> BookRecord:
    book = BookRecord(
        title="Dune",
        author="Frank Herbert",
        filename="/sdcard/Books/Dune - Frank Herbert.epub",
        highlights=[_highlight(), _highlight("Fear is the mind-killer.", note="The litany")],
        progress=33.3,
        current_chapter=12,
        last_read_timestamp=TIMESTAMP,
        metadata=BookMetadata(
            description="A desert planet.",
            publisher="Penguin",
            genres=["Fiction", "Classics"],
            cover_path="Books/covers/Dune.jpg",
        ),
    )
    for key, value in overrides.items():
        setattr(book, key, value)
    return book


class TestSmallFormatters:
    """Tests for callouts, dates, and filenames."""

    @pytest.mark.parametrize(
        ("color", "expected"),
        [
            (YELLOW, "quote"),
            (BLUE, "info"),
            (GREEN, "tip"),
            (RED, "warning"),
            (0xFFA500, "warning"),
            (0x808080, "quote"),
            (0, "quote"),
        ],
    )
    def test_callout_type(self, color: int, expected: str) -> None:
        assert get_callout_type(color) == expected

    def test_format_date(self) -> None:
        assert format_date(TIMESTAMP) == "Nov 14, 2023"

    def test_generate_filename(self) -> None:
        assert generate_filename('What? A "Book": Part 1/2') == "What A Book Part 12"

    def test_generate_filename_truncates(self) -> None:
        assert len(generate_filename("x" * 300)) == 100


class TestFormatHeaderValue:
    """Tests for format_header_value."""

    def test_scalars(self) -> None:
        assert format_header_value("manual_note", True) == ["manual_note: true"]
        assert format_header_value("page_count", 612) == ["page_count: 612"]
        assert format_header_value("title", "Dune: Deluxe") == ['title: "Dune: Deluxe"']

    def test_hash_is_quoted(self) -> None:
        assert format_header_value("highlights_hash", "1234567890123456") == [
            'highlights_hash: "1234567890123456"'
        ]

    def test_list_is_block_style(self) -> None:
        assert format_header_value("genres", ["Fiction", "Classics"]) == [
            "genres:",
            '  - "Fiction"',
            '  - "Classics"',
        ]


class TestFormatHighlight:
    """Tests for format_highlight."""

    def test_callout_with_chapter_and_date(self) -> None:
        assert format_highlight(_highlight()) == (
            "> [!quote] Chapter 3 • Nov 14, 2023\n> I must not fear."
        )

    def test_note_and_multiline_text(self) -> None:
        rendered = format_highlight(_highlight("one\ntwo", note="mine", color=BLUE))
        assert rendered.splitlines() == [
            "> [!info] Chapter 3 • Nov 14, 2023",
            "> one",
            "> two",
            ">",
            "> **Note:** mine",
        ]

    def test_colors_and_notes_can_be_hidden(self) -> None:
        rendered = format_highlight(
            _highlight(note="mine", color=BLUE), use_colors=False, show_notes=False
        )
        assert rendered.startswith("> [!quote]")
        assert "Note" not in rendered

    def test_no_chapter_no_timestamp(self) -> None:
        assert format_highlight(_highlight(chapter=0, timestamp=0)).startswith("> [!quote]\n")


class TestRenderBookDocument:
    """Tests for render_book_document."""

    def test_header_fields(self) -> None:
        text = render_book_document(_book(), SyncSettings(), today=TODAY, content_hash="abcd")
        header = text.split("---")[1]
        assert 'title: "Dune"' in header
        assert 'progress: "33.3%"' in header
        assert "current_chapter: 12" in header
        assert 'last_read: "2023-11-14"' in header
        assert 'last_synced: "2026-01-15"' in header
        assert "highlights_count: 2" in header
        assert "notes_count: 1" in header
        assert 'highlights_hash: "abcd"' in header
        assert 'publisher: "Penguin"' in header
        assert 'cover: "Books/covers/Dune.jpg"' in header

    def test_body_sections_in_order(self) -> None:
        text = render_book_document(_book(), SyncSettings(), today=TODAY, content_hash="abcd")
        order = [
            "# Dune",
            "**Author:** Frank Herbert",
            "![[Books/covers/Dune.jpg|200]]",
            "## Reading Progress",
            "- **Progress:** 33.3%",
            "- **Last read:** Nov 14, 2023",
            "## Description",
            "## Highlights",
            "## My Notes",
        ]
        positions = [text.index(marker) for marker in order]
        assert positions == sorted(positions)
        assert text.rstrip().endswith(USER_SECTION_PLACEHOLDER)

    def test_display_toggles(self) -> None:
        settings = SyncSettings(
            show_metadata=False,
            show_covers=False,
            show_description=False,
            show_reading_progress=False,
        )
        text = render_book_document(_book(), settings, today=TODAY, content_hash="abcd")
        assert "publisher" not in text
        assert "cover" not in text
        assert "## Description" not in text
        assert "## Reading Progress" not in text
        assert "progress:" in text  # tracking fields stay

    def test_user_notes_and_extra_header_lines(self) -> None:
        text = render_book_document(
            _book(),
            SyncSettings(),
            today=TODAY,
            content_hash="abcd",
            extra_header_lines=["rating: 5", "tags:", "  - favourite"],
            user_notes="Loved it.\n\n## Quotes\nMore",
        )
        assert "rating: 5\ntags:\n  - favourite\n---" in text
        assert text.endswith("## My Notes\n\nLoved it.\n\n## Quotes\nMore\n")

    def test_no_highlights_section_when_empty(self) -> None:
        text = render_book_document(
            _book(highlights=[]), SyncSettings(), today=TODAY, content_hash="abcd"
        )
        assert "## Highlights" not in text


class TestManualRendering:
    """Tests for manual-note templates and managed highlight blocks."""

    def test_manual_template(self) -> None:
        text = render_manual_template(
            "Emma",
            "Jane Austen",
            SyncSettings(),
            today=TODAY,
            metadata_fields={"publisher": "Penguin", "series": None},
            description="A comedy of manners.",
            cover_path="Books/covers/Emma.jpg",
        )
        assert "manual_note: true" in text
        assert "highlights_count: 0" in text
        assert 'publisher: "Penguin"' in text
        assert "series" not in text
        assert "## Description\nA comedy of manners." in text
        assert "> Add your highlights here..." in text

    def test_managed_block_markers(self) -> None:
        block = render_managed_highlights([_highlight()], SyncSettings())
        assert block.startswith(HIGHLIGHTS_START_MARKER + "\n## Highlights")
        assert block.endswith(HIGHLIGHTS_END_MARKER)

    def test_empty_managed_block(self) -> None:
        block = render_managed_highlights([], SyncSettings())
        assert block == f"{HIGHLIGHTS_START_MARKER}\n{HIGHLIGHTS_END_MARKER}"


class TestRenderIndex:
    """Tests for render_index."""

    def _entries(self) -> list[IndexEntry]:
        return [
            IndexEntry(
                "Emma", "Emma", "Jane Austen", 2, 0, 80.0, "2023-01-01", "Books/covers/Emma.jpg"
            ),
            IndexEntry(
                "Dune", "Dune", "Frank Herbert", 5, 1, 20.0, "2024-06-01", "Books/covers/Dune.jpg"
            ),
            IndexEntry("Ulysses", "Ulysses", "", 1, 1, None, None, None),
        ]

    def test_totals_and_lines(self) -> None:
        text = render_index(self._entries(), SyncSettings(), today=TODAY)
        assert "total_books: 3" in text
        assert "total_highlights: 8" in text
        assert "total_notes: 2" in text
        assert "- **Average Progress:** 50.0%" in text
        assert "- [[Dune|Dune]] by Frank Herbert (20%) - 5 highlights, 1 notes" in text
        assert "- [[Ulysses|Ulysses]] - 1 highlights, 1 notes" in text
        assert text.index("[[Dune|Dune]] by") < text.index("[[Emma|Emma]] by")

    def test_collage_alpha(self) -> None:
        text = render_index(self._entries(), SyncSettings(), today=TODAY)
        assert (
            "[[Dune|![[Books/covers/Dune.jpg|100]]]] [[Emma|![[Books/covers/Emma.jpg|100]]]]"
            in text
        )

    def test_collage_recent_with_limit(self) -> None:
        settings = SyncSettings(cover_collage_sort="recent", cover_collage_limit=1)
        text = render_index(self._entries(), settings, today=TODAY)
        assert "[[Dune|![[Books/covers/Dune.jpg|100]]]]" in text
        assert "Emma.jpg|100" not in text

    def test_collage_disabled(self) -> None:
        text = render_index(self._entries(), SyncSettings(show_cover_collage=False), today=TODAY)
        assert "|100]]" not in text

    def test_empty_library(self) -> None:
        text = render_index([], SyncSettings(), today=TODAY)
        assert "total_books: 0" in text
        assert "Average Progress" not in text
