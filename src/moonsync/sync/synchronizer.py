# ABOUTME: Reconciles decoded books against the notes already in the vault.
# ABOUTME: Decides create/update/unchanged/delete per book, then refreshes the index and base file.

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from moonsync.config import SyncSettings
from moonsync.core.types import BookMetadata, BookRecord
from moonsync.metadata.cache import MetadataCache
from moonsync.metadata.http import MetadataFetchError
from moonsync.metadata.merge import MetadataResolver
from moonsync.metadata.types import BookInfo
from moonsync.store.documents import DocumentStore, normalize_path
from moonsync.sync.document import (
    PersistedDocument,
    bibliographic_header_fields,
    scan_documents,
    splice_managed_block,
)
from moonsync.sync.hashing import compute_highlights_hash
from moonsync.sync.matching import DEFAULT_MATCH_THRESHOLD, TitleIndex
from moonsync.writer.base import render_base_file
from moonsync.writer.markdown import (
    IndexEntry,
    cover_filename,
    format_iso_date,
    format_progress,
    generate_filename,
    render_book_document,
    render_frontmatter,
    render_header_fields,
    render_index,
    render_managed_highlights,
)

logger = logging.getLogger(__name__)

# Downloads an image URL and returns its bytes.
CoverFetcher = Callable[[str], bytes]


class SyncOutcome(Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    SKIPPED = "skipped"


@dataclass
class SyncResult:
    """Summary of one sync pass.

    errors holds (title, message) pairs for books that failed individually.
    fatal_error is set when the whole pass was aborted.
    """

    success: bool = False
    books_processed: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    deleted: int = 0
    skipped: int = 0
    custom_updated: int = 0
    first_run: bool = False
    fatal_error: str | None = None
    errors: list[tuple[str, str]] = field(default_factory=list)
    outcomes: dict[str, SyncOutcome] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.deleted or self.custom_updated)

    def record(self, title: str, outcome: SyncOutcome) -> None:
        self.outcomes[title] = outcome
        self.books_processed += 1
        if outcome is SyncOutcome.CREATED:
            self.created += 1
        elif outcome is SyncOutcome.UPDATED:
            self.updated += 1
        elif outcome is SyncOutcome.UNCHANGED:
            self.unchanged += 1
        elif outcome is SyncOutcome.DELETED:
            self.deleted += 1
        else:
            self.skipped += 1


def apply_book_info(book: BookRecord, info: BookInfo) -> None:
    """Copy merged lookup fields onto a book's metadata bag."""
    if not book.author and info.author:
        book.author = info.author
    metadata = book.metadata
    metadata.description = info.description
    metadata.published_date = info.published_date
    metadata.publisher = info.publisher
    metadata.page_count = info.page_count
    metadata.genres = list(info.genres) if info.genres else None
    metadata.series = info.series
    metadata.language = info.language


def ensure_cover(
    store: DocumentStore,
    settings: SyncSettings,
    title: str,
    cover_url: str | None,
    cover_fetcher: CoverFetcher | None,
) -> str | None:
    """Return the note-relative cover path, downloading the image if it is missing.

    Covers are fetched whenever absent on disk; show_covers only affects
    whether they are displayed. Download failures are logged and yield None.
    """
    relative = f"covers/{cover_filename(title)}"
    full_path = normalize_path(f"{settings.covers_folder}/{cover_filename(title)}")
    if store.exists(full_path):
        return relative
    if not cover_url or cover_fetcher is None:
        return None

    try:
        data = cover_fetcher(cover_url)
        if not data:
            return None
        store.create_folder(settings.covers_folder)
        store.write_binary(full_path, data)
    except (MetadataFetchError, OSError) as exc:
        logger.warning("Cover download failed for %r: %s", title, exc)
        return None
    logger.debug("Saved cover for %r to %s", title, full_path)
    return relative


def build_index_entries(documents: list[PersistedDocument]) -> list[IndexEntry]:
    entries = []
    for doc in documents:
        if not doc.is_book_note:
            continue
        entries.append(
            IndexEntry(
                title=doc.title or doc.stem,
                filename=doc.stem,
                author=doc.author,
                highlights_count=doc.highlights_count or 0,
                notes_count=doc.notes_count,
                progress=doc.progress_value,
                last_read=doc.last_read,
                cover=doc.cover,
            )
        )
    return entries


def write_index(store: DocumentStore, settings: SyncSettings, *, today: date) -> None:
    """Regenerate the library index note from the notes currently in the output folder."""
    folder = normalize_path(settings.output_folder)
    index_path = normalize_path(settings.index_path)
    documents = scan_documents(store, folder, exclude={index_path})
    store.write(index_path, render_index(build_index_entries(documents), settings, today=today))
    logger.debug("Wrote index %s", index_path)


def write_base_file(store: DocumentStore, settings: SyncSettings) -> None:
    store.write(normalize_path(settings.base_path), render_base_file(settings))


class DocumentSynchronizer:
    """Runs one reconciliation pass of decoded books against existing notes.

    The cache, resolver, and store are injected so a pass can run against
    in-memory fakes. One instance owns its per-pass state and should be used
    for a single run().
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: SyncSettings,
        cache: MetadataCache,
        resolver: MetadataResolver,
        *,
        cover_fetcher: CoverFetcher | None = None,
        today: date | None = None,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
    ) -> None:
        self._store = store
        self._settings = settings
        self._cache = cache
        self._resolver = resolver
        self._cover_fetcher = cover_fetcher
        self._today = today or date.today()
        self._threshold = match_threshold
        self._folder = normalize_path(settings.output_folder)
        self._documents: dict[str, PersistedDocument] = {}
        self._titles = TitleIndex()
        self._claimed: set[str] = set()
        self._prefetched: dict[tuple[str, str], BookInfo] = {}

    def run(self, books: list[BookRecord]) -> SyncResult:
        """Synchronize every book, then reconcile custom notes and regenerate summaries."""
        result = SyncResult()
        self._store.create_folder(self._folder)

        index_path = normalize_path(self._settings.index_path)
        documents = scan_documents(self._store, self._folder, exclude={index_path})
        self._documents = {doc.path: doc for doc in documents}
        self._titles = TitleIndex((doc.path, doc.title) for doc in documents if doc.title)
        result.first_run = not any(doc.is_book_note for doc in documents)

        if self._settings.prefetch_metadata:
            self._prefetch(books)

        for book in books:
            try:
                outcome = self._sync_book(book)
            except Exception as exc:  # noqa: BLE001 - one bad book must not stop the batch
                logger.warning("Failed to sync %r: %s", book.title, exc)
                result.errors.append((book.title, str(exc)))
                continue
            logger.debug("%s: %s", book.title, outcome.value)
            result.record(book.title, outcome)

        result.custom_updated = self._sync_custom_documents()

        if self._cache.modified:
            self._cache.save()

        self._regenerate_summaries(result.changed)
        result.success = True
        return result

    def _prefetch(self, books: list[BookRecord]) -> None:
        pending = [
            (book.title, book.author)
            for book in books
            if book.highlights and not self._cache.has_extended_metadata(book.title, book.author)
        ]
        if pending:
            self._prefetched = self._resolver.prefetch(pending)

    def _resolve_document(self, book: BookRecord, canonical: str) -> PersistedDocument | None:
        """Find the note for a book: exact canonical path first, then a fuzzy title match."""
        doc = self._documents.get(canonical)
        if doc is not None:
            return doc

        match = self._titles.find(book.title, self._threshold, exclude=self._claimed)
        if match is None:
            return None
        path, score = match
        doc = self._documents[path]
        logger.debug("Matched %r to %s (similarity %.2f)", book.title, path, score)

        try:
            self._store.rename(path, canonical)
        except OSError as exc:
            logger.warning("Could not rename %s to %s, keeping old name: %s", path, canonical, exc)
            return doc

        del self._documents[path]
        doc.path = canonical
        self._documents[canonical] = doc
        self._titles.rename(path, canonical)
        return doc

    def _sync_book(self, book: BookRecord) -> SyncOutcome:
        filename = generate_filename(book.title)
        if not filename:
            raise ValueError("title yields an empty filename")
        canonical = normalize_path(f"{self._folder}/{filename}.md")
        if canonical in self._claimed:
            raise ValueError(f"{canonical} already belongs to another book")

        doc = self._resolve_document(book, canonical)
        if doc is not None:
            self._claimed.add(doc.path)

        if not book.highlights:
            if doc is None:
                return SyncOutcome.SKIPPED
            if not (
                self._settings.track_books_without_highlights
                or doc.has_user_content
                or doc.is_manual
            ):
                self._store.delete(doc.path)
                self._titles.remove(doc.path)
                del self._documents[doc.path]
                logger.info("Removed %s: book has no highlights left", doc.path)
                return SyncOutcome.DELETED

        content_hash = compute_highlights_hash(book.highlights)
        # Cache key is the decoded identity, before metadata may fill in the author.
        lookup_key = (book.title, book.author)
        if doc is not None and self._is_unchanged(book, doc, content_hash, lookup_key):
            return SyncOutcome.UNCHANGED

        self._attach_metadata(book, doc, lookup_key)

        if doc is None:
            content = render_book_document(
                book, self._settings, today=self._today, content_hash=content_hash
            )
            self._store.create(canonical, content)
            self._titles.add(canonical, book.title)
            self._claimed.add(canonical)
            return SyncOutcome.CREATED

        if doc.is_manual:
            header = render_frontmatter(
                render_header_fields(
                    book, self._settings, today=self._today, content_hash=content_hash
                ),
                doc.extra_header_lines(),
            )
            body = splice_managed_block(
                doc.body, render_managed_highlights(book.highlights, self._settings)
            )
            self._store.write(doc.path, f"{header}\n{body}")
        else:
            content = render_book_document(
                book,
                self._settings,
                today=self._today,
                content_hash=content_hash,
                extra_header_lines=doc.extra_header_lines(),
                user_notes=doc.user_notes,
            )
            self._store.write(doc.path, content)
        return SyncOutcome.UPDATED

    def _is_unchanged(
        self,
        book: BookRecord,
        doc: PersistedDocument,
        content_hash: str,
        lookup_key: tuple[str, str],
    ) -> bool:
        stored_hash = doc.highlights_hash
        if stored_hash is not None:
            highlights_same = stored_hash == content_hash
        else:
            # Older notes carry only a count, which misses same-size edits.
            highlights_same = doc.highlights_count == book.highlight_count
        if not highlights_same:
            return False

        progress = format_progress(book.progress) if book.progress is not None else None
        if doc.progress != progress:
            return False

        last_read = format_iso_date(book.last_read_timestamp) if book.last_read_timestamp else None
        if doc.last_read != last_read:
            return False

        return self._cache.has_extended_metadata(*lookup_key)

    def _lookup(self, title: str, author: str) -> BookInfo:
        """Merged metadata for a book: prefetched, cached, or fetched now."""
        info = self._prefetched.pop((title, author), None)
        if info is None and self._cache.has_extended_metadata(title, author):
            cached = self._cache.get(title, author)
            if cached is not None:
                return cached
        if info is None:
            info = self._resolver.fetch(title, author)
        self._cache.set(title, author, info)
        return info

    def _attach_metadata(
        self, book: BookRecord, doc: PersistedDocument | None, lookup_key: tuple[str, str]
    ) -> None:
        info = self._lookup(*lookup_key)

        if doc is not None and doc.has_custom_metadata:
            # The user curated these fields; keep theirs.
            book.metadata = doc.bibliographic_metadata()
            if not book.author and doc.author:
                book.author = doc.author
            return

        apply_book_info(book, info)
        book.metadata.cover_path = ensure_cover(
            self._store, self._settings, book.title, info.cover_url, self._cover_fetcher
        )

    def _sync_custom_documents(self) -> int:
        """Fetch metadata for notes the reader knows nothing about (created by hand or imported).

        Skips notes flagged custom_metadata and books already attempted.
        Returns the number of notes rewritten.
        """
        updated = 0
        for path, doc in sorted(self._documents.items()):
            if path in self._claimed or not doc.is_book_note or doc.has_custom_metadata:
                continue
            title = doc.title or doc.stem
            if self._cache.has_extended_metadata(title, doc.author):
                continue

            try:
                info = self._resolver.fetch(title, doc.author)
                self._cache.set(title, doc.author, info)
                if info.failed:
                    continue

                metadata = BookMetadata()
                book = BookRecord(title=title, author=doc.author, metadata=metadata)
                apply_book_info(book, info)
                updates = (
                    bibliographic_header_fields(metadata) if self._settings.show_metadata else {}
                )
                if doc.cover is None:
                    cover = ensure_cover(
                        self._store, self._settings, title, info.cover_url, self._cover_fetcher
                    )
                    if cover and self._settings.show_covers:
                        updates["cover"] = cover
                if not updates:
                    continue
                self._store.write(path, doc.render_with_fields(updates))
            except Exception as exc:  # noqa: BLE001 - one bad note must not stop the pass
                logger.warning("Failed to refresh metadata for %s: %s", path, exc)
                continue
            updated += 1
        return updated

    def _regenerate_summaries(self, changed: bool) -> None:
        settings = self._settings
        if settings.show_index and (changed or not self._store.exists(settings.index_path)):
            write_index(self._store, settings, today=self._today)
        if settings.generate_base_file and (
            changed or not self._store.exists(settings.base_path)
        ):
            write_base_file(self._store, settings)
