# ABOUTME: Top-level sync entry points: full sync, forced metadata refresh, manual notes.
# ABOUTME: Validates the batch, wires the cache and synchronizer, and formats the summary line.

import logging
from datetime import date
from pathlib import Path

from moonsync.config import SyncSettings
from moonsync.core.scanner import cache_dir_for, read_cache_directory
from moonsync.core.types import BookRecord
from moonsync.formats.manual_export import parse_manual_export
from moonsync.metadata.cache import CACHE_FILENAME, MetadataCache
from moonsync.metadata.merge import MetadataResolver
from moonsync.store.documents import DocumentStore, normalize_path
from moonsync.sync.hashing import compute_highlights_hash
from moonsync.sync.synchronizer import (
    CoverFetcher,
    DocumentSynchronizer,
    SyncResult,
    apply_book_info,
    ensure_cover,
    write_base_file,
    write_index,
)
from moonsync.writer.markdown import generate_filename, render_book_document, render_manual_template

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Raised when a sync or note creation cannot proceed at all."""


def _read_books(settings: SyncSettings) -> list[BookRecord]:
    if not settings.source_path:
        raise SyncError("Moon+ Reader source path not configured")
    cache_dir = cache_dir_for(Path(settings.source_path).expanduser())
    if not cache_dir.is_dir():
        raise SyncError(f"No .Moon+/Cache folder found under {settings.source_path}")
    return read_cache_directory(
        cache_dir, track_books_without_highlights=settings.track_books_without_highlights
    )


def _ensure_output_folder(store: DocumentStore, settings: SyncSettings) -> str:
    folder = normalize_path(settings.output_folder)
    try:
        store.create_folder(folder)
    except OSError as exc:
        raise SyncError(f"Cannot create output folder {folder}: {exc}") from exc
    return folder


def sync_from_source(
    settings: SyncSettings,
    store: DocumentStore,
    resolver: MetadataResolver,
    *,
    cover_fetcher: CoverFetcher | None = None,
    today: date | None = None,
) -> SyncResult:
    """Run one full sync pass from the reader's cache folder into the vault.

    Batch-fatal problems (no source configured, no cache folder, output
    folder not creatable) produce an unsuccessful result with fatal_error set.
    Per-book failures are collected in the result's errors.
    """
    try:
        books = _read_books(settings)
        folder = _ensure_output_folder(store, settings)
    except SyncError as exc:
        logger.error("Sync aborted: %s", exc)
        return SyncResult(fatal_error=str(exc))

    logger.info("Read %d book(s) from the reader cache", len(books))
    cache = MetadataCache.load(store, folder)
    synchronizer = DocumentSynchronizer(
        store, settings, cache, resolver, cover_fetcher=cover_fetcher, today=today
    )
    return synchronizer.run(books)


def force_refresh_metadata(
    settings: SyncSettings,
    store: DocumentStore,
    resolver: MetadataResolver,
    *,
    cover_fetcher: CoverFetcher | None = None,
    today: date | None = None,
) -> SyncResult:
    """Delete the metadata cache so every book is looked up again, then sync."""
    cache_path = normalize_path(f"{settings.output_folder}/{CACHE_FILENAME}")
    if store.exists(cache_path):
        store.delete(cache_path)
        logger.info("Deleted metadata cache %s", cache_path)
    return sync_from_source(
        settings, store, resolver, cover_fetcher=cover_fetcher, today=today
    )


def summarize(result: SyncResult) -> str:
    """One-line, user-facing description of a sync result."""
    if not result.success:
        reason = result.fatal_error or (result.errors[0][1] if result.errors else "unknown error")
        return f"Sync failed - {reason}"
    if result.books_processed == 0 and not result.errors:
        return "No books with highlights to sync"

    parts = []
    if result.created:
        parts.append(f"{result.created} new")
    if result.updated:
        parts.append(f"{result.updated} updated")
    if result.unchanged:
        parts.append(f"{result.unchanged} unchanged")
    if result.deleted:
        parts.append(f"{result.deleted} removed")
    if result.errors:
        parts.append(f"{len(result.errors)} failed")
    summary = ", ".join(parts) if parts else "Nothing to update"
    total = result.books_processed + len(result.errors)
    return f"{summary} (of {total})"


def _refresh_summaries(store: DocumentStore, settings: SyncSettings, today: date) -> None:
    if settings.show_index:
        write_index(store, settings, today=today)
    if settings.generate_base_file:
        write_base_file(store, settings)


def _note_path(settings: SyncSettings, title: str) -> str:
    filename = generate_filename(title)
    if not filename:
        raise SyncError(f"Cannot make a filename from title {title!r}")
    return normalize_path(f"{settings.output_folder}/{filename}.md")


def create_book_document(
    title: str,
    author: str,
    settings: SyncSettings,
    store: DocumentStore,
    resolver: MetadataResolver,
    *,
    cover_fetcher: CoverFetcher | None = None,
    today: date | None = None,
) -> str:
    """Create a manual note for a book that was not read in Moon+ Reader.

    Metadata and the cover are fetched once. The note is flagged manual_note,
    so later syncs keep its body.

    Returns:
        The vault path of the new note.

    Raises:
        SyncError: If a note for the title already exists.
    """
    today = today or date.today()
    path = _note_path(settings, title)
    if store.exists(path):
        raise SyncError(f'A note for "{title}" already exists')
    _ensure_output_folder(store, settings)

    info = resolver.fetch(title, author)
    cache = MetadataCache.load(store, normalize_path(settings.output_folder))
    cache.set(title, author, info)
    if cache.modified:
        cache.save()

    book = BookRecord(title=title, author=author)
    apply_book_info(book, info)
    cover_path = ensure_cover(store, settings, title, info.cover_url, cover_fetcher)

    content = render_manual_template(
        title,
        book.author,
        settings,
        today=today,
        metadata_fields={
            "published_date": book.metadata.published_date,
            "publisher": book.metadata.publisher,
            "page_count": book.metadata.page_count,
            "genres": book.metadata.genres,
            "series": book.metadata.series,
            "language": book.metadata.language,
        },
        description=book.metadata.description,
        cover_path=cover_path,
    )
    store.create(path, content)
    logger.info("Created manual note %s", path)
    _refresh_summaries(store, settings, today)
    return path


def import_manual_export(
    content: str,
    settings: SyncSettings,
    store: DocumentStore,
    resolver: MetadataResolver,
    *,
    cover_fetcher: CoverFetcher | None = None,
    today: date | None = None,
) -> tuple[str, int]:
    """Turn a Moon+ Reader "share highlights" export into a book note.

    Returns:
        (path of the new note, number of highlights imported).

    Raises:
        SyncError: If the text is not an export or the note already exists.
    """
    today = today or date.today()
    export = parse_manual_export(content)
    if export is None:
        raise SyncError("Not a valid Moon+ Reader export")

    path = _note_path(settings, export.title)
    if store.exists(path):
        raise SyncError(f'A note for "{export.title}" already exists')
    _ensure_output_folder(store, settings)

    book = BookRecord(title=export.title, author=export.author, highlights=export.highlights)
    book.sort_highlights()

    info = resolver.fetch(book.title, book.author)
    cache = MetadataCache.load(store, normalize_path(settings.output_folder))
    cache.set(book.title, book.author, info)
    if cache.modified:
        cache.save()
    apply_book_info(book, info)
    book.metadata.cover_path = ensure_cover(
        store, settings, book.title, info.cover_url, cover_fetcher
    )

    note = render_book_document(
        book, settings, today=today, content_hash=compute_highlights_hash(book.highlights)
    )
    store.create(path, note)
    logger.info("Imported %d highlight(s) into %s", len(book.highlights), path)
    _refresh_summaries(store, settings, today)
    return path, len(book.highlights)
