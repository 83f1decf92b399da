# ABOUTME: Combines Open Library and Google Books lookups into one BookInfo record.
# ABOUTME: Runs both lookups concurrently and applies per-field source precedence.

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from moonsync.metadata.provider import MetadataSource
from moonsync.metadata.types import BookInfo, LookupResult

logger = logging.getLogger(__name__)

DEFAULT_PREFETCH_WORKERS = 5


def _first(*values: Any) -> Any:
    """Return the first non-empty value, or None."""
    for value in values:
        if value:
            return value
    return None


def _merge_genres(preferred: list[str] | None, other: list[str] | None) -> list[str] | None:
    """Union of both genre lists, preferred first, de-duplicated case-insensitively."""
    genres: list[str] = []
    seen: set[str] = set()
    for genre in [*(preferred or []), *(other or [])]:
        folded = genre.lower()
        if folded in seen:
            continue
        seen.add(folded)
        genres.append(genre)
    return genres or None


def merge_lookups(open_library: LookupResult, google_books: LookupResult) -> BookInfo:
    """Merge source A (Open Library) and source B (Google Books) results.

    - Cover: Open Library first (higher resolution), then Google Books.
    - Description, title, author, publication fields, language: Google Books first.
    - Genres: union, Google Books entries first.
    - Series: Open Library only.

    Provenance is None when neither a cover nor a description was found;
    otherwise it names the source of the description, Google Books winning ties.
    """
    a, b = open_library, google_books

    cover_url = _first(a.cover_url, b.cover_url)
    description = _first(b.description, a.description)

    source: str | None = None
    if cover_url or description:
        source = "googlebooks" if b.description else "openlibrary"

    return BookInfo(
        title=_first(b.title, a.title),
        author=_first(b.author, a.author),
        cover_url=cover_url,
        description=description,
        published_date=_first(b.published_date, a.published_date),
        publisher=_first(b.publisher, a.publisher),
        page_count=_first(b.page_count, a.page_count),
        genres=_merge_genres(b.genres, a.genres),
        series=a.series,
        language=_first(b.language, a.language),
        source=source,
        failed=a.failed and b.failed,
    )


def _safe_lookup(source: MetadataSource, title: str, author: str) -> LookupResult:
    """Run one source's lookup; any exception degrades to an empty failed result."""
    try:
        return source.lookup(title, author)
    except Exception as exc:  # noqa: BLE001 - backends are black boxes
        logger.warning("%s lookup raised for %r: %s", source.name, title, exc)
        return LookupResult.failure(str(exc))


class MetadataResolver:
    """Queries both metadata sources for a book and merges the answers.

    The two lookups for one book run in parallel and are joined before the
    merge. prefetch() fans a batch of books out over a small worker pool.
    """

    def __init__(self, open_library: MetadataSource, google_books: MetadataSource) -> None:
        self._open_library = open_library
        self._google_books = google_books

    def fetch(self, title: str, author: str) -> BookInfo:
        with ThreadPoolExecutor(max_workers=2) as executor:
            ol_future = executor.submit(_safe_lookup, self._open_library, title, author)
            gb_future = executor.submit(_safe_lookup, self._google_books, title, author)
            return merge_lookups(ol_future.result(), gb_future.result())

    def prefetch(
        self,
        requests: Iterable[tuple[str, str]],
        *,
        max_workers: int = DEFAULT_PREFETCH_WORKERS,
    ) -> dict[tuple[str, str], BookInfo]:
        """Fetch metadata for many (title, author) pairs with bounded concurrency.

        Returns results keyed by the exact (title, author) pair requested.
        Duplicate requests are fetched once.
        """
        unique = list(dict.fromkeys(requests))
        if not unique:
            return {}

        logger.debug("Prefetching metadata for %d book(s)", len(unique))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {pair: executor.submit(self.fetch, *pair) for pair in unique}
            return {pair: future.result() for pair, future in futures.items()}
