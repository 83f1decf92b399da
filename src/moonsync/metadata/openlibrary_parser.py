# ABOUTME: Parsing functions for Open Library API JSON responses.
# ABOUTME: Converts OL search docs and works records into LookupResult fields.

from typing import Any

from moonsync.metadata.types import LookupResult

_COVERS_BASE_URL = "https://covers.openlibrary.org/b"
_MAX_SUBJECTS = 5


def build_cover_url(doc: dict[str, Any], size: str = "L") -> str | None:
    """Build a cover URL from a search doc's cover id, falling back to its first ISBN.

    Args:
        doc: One entry of the search response's "docs" list.
        size: Image size: "S" (small), "M" (medium), or "L" (large).
    """
    cover_id = doc.get("cover_i")
    if cover_id:
        return f"{_COVERS_BASE_URL}/id/{cover_id}-{size}.jpg"
    isbns = doc.get("isbn") or []
    if isbns:
        return f"{_COVERS_BASE_URL}/isbn/{isbns[0]}-{size}.jpg"
    return None


def parse_search_doc(doc: dict[str, Any]) -> LookupResult:
    """Parse the first doc of an Open Library search response.

    The search API carries everything except description and series, which
    live on the works record.
    """
    title = doc.get("title")
    if title and doc.get("subtitle"):
        title = f"{title} {doc['subtitle']}"

    authors = doc.get("author_name") or []
    publishers = doc.get("publisher") or []
    subjects = doc.get("subject") or []
    languages = doc.get("language") or []
    first_year = doc.get("first_publish_year")

    return LookupResult(
        title=title or None,
        author=authors[0] if authors else None,
        cover_url=build_cover_url(doc),
        published_date=str(first_year) if first_year else None,
        publisher=publishers[0] if publishers else None,
        page_count=doc.get("number_of_pages_median") or None,
        genres=list(subjects[:_MAX_SUBJECTS]) or None,
        language=languages[0] if languages else None,
    )


def parse_works_description(data: dict[str, Any]) -> str | None:
    """Extract the description from an Open Library Works response.

    Handles the OL quirk where description can be either a plain string
    or a dict with {"type": ..., "value": "actual text"}.
    """
    desc = data.get("description")
    if desc is None:
        return None
    if isinstance(desc, str):
        return desc or None
    if isinstance(desc, dict):
        return desc.get("value") or None
    return None


def parse_works_series(data: dict[str, Any]) -> str | None:
    """Extract the first series name from a Works response, if any."""
    series = data.get("series") or []
    if series and isinstance(series[0], str):
        return series[0]
    return None
