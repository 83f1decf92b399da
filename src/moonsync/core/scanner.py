# ABOUTME: Cache directory reader for Moon+ Reader's real-time sync folder.
# ABOUTME: Decodes .an and .po files and groups highlights and progress by book title.

import logging
from pathlib import Path

from moonsync.core.types import BookRecord
from moonsync.formats.annotations import (
    ANNOTATION_SUFFIX,
    POSITION_SUFFIX,
    normalize_book_title,
    parse_annotation_file,
    split_title_author,
    strip_sidecar_suffix,
)
from moonsync.formats.position import parse_position_file

logger = logging.getLogger(__name__)

CACHE_SUBDIR = Path(".Moon+") / "Cache"


def cache_dir_for(source_path: Path) -> Path:
    """Locate the hidden cache folder under the reader's synced Books folder."""
    return source_path / CACHE_SUBDIR


def position_file_key(filename: str) -> tuple[str, str, str]:
    """Derive (key, title, author) for a position file from its name.

    Older reader versions wrote underscores instead of spaces. Underscores are
    only treated as separators when the title has no spaces at all.
    """
    title, author = split_title_author(filename)
    if " " not in title and "_" in title:
        title = title.replace("_", " ")
    return title.lower(), title, author


def _list_files(cache_dir: Path, suffix: str) -> list[Path]:
    return sorted(p for p in cache_dir.iterdir() if p.is_file() and p.name.endswith(suffix))


def _fold_annotation_files(cache_dir: Path, books: dict[str, BookRecord]) -> None:
    for path in _list_files(cache_dir, ANNOTATION_SUFFIX):
        parsed = parse_annotation_file(path)
        if parsed is None:
            continue

        if parsed.highlights:
            # The in-stream title is more reliable than the filename.
            title = parsed.highlights[0].book or parsed.book_title
        else:
            title = parsed.book_title
        key = title.lower()

        book = books.get(key)
        if book is None:
            filename = parsed.highlights[0].filename if parsed.highlights else ""
            book = BookRecord(title=title, author=parsed.author, filename=filename)
            books[key] = book
        book.highlights.extend(parsed.highlights)


def _fold_position_files(
    cache_dir: Path, books: dict[str, BookRecord], track_books_without_highlights: bool
) -> None:
    for path in _list_files(cache_dir, POSITION_SUFFIX):
        key, title, author = position_file_key(path.name)
        progress = parse_position_file(path)
        if progress is None:
            continue

        book = books.get(key)
        if book is not None:
            book.apply_progress(progress)
        elif track_books_without_highlights:
            book = BookRecord(
                title=normalize_book_title(title),
                author=author,
                filename=strip_sidecar_suffix(path.name),
            )
            book.apply_progress(progress)
            books[key] = book


def read_cache_directory(
    cache_dir: Path, *, track_books_without_highlights: bool = False
) -> list[BookRecord]:
    """Read every annotation and position file in the cache directory.

    Annotation files are grouped by canonical title (case-insensitive); later
    files for the same title only contribute highlights. Position files then
    overwrite progress on matching books, or create zero-highlight books when
    track_books_without_highlights is set. Highlights end up sorted by
    position. A missing or unreadable directory yields an empty list.

    Args:
        cache_dir: The .Moon+/Cache directory.
        track_books_without_highlights: Create books from position files alone.

    Returns:
        BookRecords in the order their titles were first seen.
    """
    books: dict[str, BookRecord] = {}

    try:
        _fold_annotation_files(cache_dir, books)
        _fold_position_files(cache_dir, books, track_books_without_highlights)
    except OSError as exc:
        logger.warning("Failed to read cache directory %s: %s", cache_dir, exc)
        return []

    for book in books.values():
        book.sort_highlights()

    return list(books.values())
