# ABOUTME: Google Books metadata source implementation.
# ABOUTME: Keyword search against the volumes API, parsed into a LookupResult.

import logging
from typing import Any

from moonsync.metadata.http import HttpClient, MetadataFetchError
from moonsync.metadata.types import LookupResult

logger = logging.getLogger(__name__)

_VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"

# Largest first.
_IMAGE_LINK_PREFERENCE = ("large", "medium", "thumbnail", "smallThumbnail")


def _best_image_link(image_links: dict[str, str] | None) -> str | None:
    if not image_links:
        return None
    for size in _IMAGE_LINK_PREFERENCE:
        url = image_links.get(size)
        if url:
            return url.replace("http://", "https://")
    return None


def parse_volume_info(volume_info: dict[str, Any]) -> LookupResult:
    """Convert a Google Books volumeInfo object into a LookupResult."""
    title = volume_info.get("title")
    if title and volume_info.get("subtitle"):
        title = f"{title} {volume_info['subtitle']}"

    authors = volume_info.get("authors") or []
    categories = volume_info.get("categories") or []

    return LookupResult(
        title=title or None,
        author=authors[0] if authors else None,
        cover_url=_best_image_link(volume_info.get("imageLinks")),
        description=volume_info.get("description") or None,
        published_date=volume_info.get("publishedDate") or None,
        publisher=volume_info.get("publisher") or None,
        page_count=volume_info.get("pageCount") or None,
        genres=list(categories) or None,
        language=volume_info.get("language") or None,
    )


class GoogleBooksSource:
    """Metadata source backed by the Google Books volumes API.

    Preferred for descriptions and publication details. Field operators
    (intitle:, inauthor:) miss too many books, so a plain keyword query is used.
    """

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    @property
    def name(self) -> str:
        return "googlebooks"

    def lookup(self, title: str, author: str) -> LookupResult:
        query = f"{title} {author}" if author else title
        try:
            data = self._http.get(_VOLUMES_URL, params={"q": query, "maxResults": "1"})
        except MetadataFetchError as exc:
            logger.warning("Google Books search failed for %r: %s", title, exc)
            return LookupResult.failure(str(exc))

        items = data.get("items") or []
        if not items:
            return LookupResult()
        return parse_volume_info(items[0].get("volumeInfo") or {})
