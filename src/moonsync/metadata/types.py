# ABOUTME: Metadata data structures exchanged between lookup sources and the merge resolver.
# ABOUTME: LookupResult is one backend's partial answer; BookInfo is the merged record.

from dataclasses import dataclass, fields

# Fields looked up as one atomic group; presence of all six marks a book as attempted.
EXTENDED_FIELDS: tuple[str, ...] = (
    "published_date",
    "publisher",
    "page_count",
    "genres",
    "series",
    "language",
)


@dataclass
class LookupResult:
    """One metadata backend's answer for a title/author query.

    Every field is optional. error is set when the backend could not be
    reached or answered garbage; the remaining fields are then all None.
    """

    title: str | None = None
    author: str | None = None
    cover_url: str | None = None
    description: str | None = None
    published_date: str | None = None
    publisher: str | None = None
    page_count: int | None = None
    genres: list[str] | None = None
    series: str | None = None
    language: str | None = None
    error: str | None = None

    @classmethod
    def failure(cls, message: str) -> "LookupResult":
        return cls(error=message)

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class BookInfo:
    """Merged metadata from both backends.

    source names the backend that supplied the description ("googlebooks" or
    "openlibrary"), or is None when neither a cover nor a description was found.
    failed is set only when both backends failed.
    """

    title: str | None = None
    author: str | None = None
    cover_url: str | None = None
    description: str | None = None
    published_date: str | None = None
    publisher: str | None = None
    page_count: int | None = None
    genres: list[str] | None = None
    series: str | None = None
    language: str | None = None
    source: str | None = None
    failed: bool = False

    def to_dict(self) -> dict[str, object]:
        """Serializable view used by the metadata cache (excludes failed)."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "failed"}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "BookInfo":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})  # type: ignore[arg-type]
