# ABOUTME: Open Library metadata source implementation.
# ABOUTME: Searches openlibrary.org by title/author, then enriches from the works endpoint.

import logging
from dataclasses import replace

from moonsync.metadata.http import HttpClient, MetadataFetchError
from moonsync.metadata.openlibrary_parser import (
    parse_search_doc,
    parse_works_description,
    parse_works_series,
)
from moonsync.metadata.types import LookupResult

logger = logging.getLogger(__name__)

_OL_BASE = "https://openlibrary.org"


class OpenLibrarySource:
    """Metadata source backed by the Open Library API.

    Preferred for covers (higher resolution) and the only source of series
    information. Uses dependency-injected HttpClient for testability.
    """

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    @property
    def name(self) -> str:
        return "openlibrary"

    def lookup(self, title: str, author: str) -> LookupResult:
        """Return the top search hit for "title author", enriched from its works record."""
        query = f"{title} {author}".strip()
        try:
            data = self._http.get(f"{_OL_BASE}/search.json", params={"q": query, "limit": "1"})
        except MetadataFetchError as exc:
            logger.warning("Open Library search failed for %r: %s", title, exc)
            return LookupResult.failure(str(exc))

        docs = data.get("docs") or []
        if not docs:
            return LookupResult()

        doc = docs[0]
        result = parse_search_doc(doc)

        works_key = doc.get("key")
        if not works_key:
            return result

        try:
            works_data = self._http.get(f"{_OL_BASE}{works_key}.json")
        except MetadataFetchError as exc:
            # Search data is still usable without the works record.
            logger.debug("Open Library works fetch failed for %s: %s", works_key, exc)
            return result

        return replace(
            result,
            description=parse_works_description(works_data),
            series=parse_works_series(works_data),
        )
