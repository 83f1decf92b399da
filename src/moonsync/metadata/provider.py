# ABOUTME: MetadataSource protocol defining the contract for bibliographic lookup backends.
# ABOUTME: Open Library and Google Books both implement this single-query interface.

from typing import Protocol, runtime_checkable

from moonsync.metadata.types import LookupResult


@runtime_checkable
class MetadataSource(Protocol):
    """Protocol for metadata lookup backends.

    lookup() returns the best single match for a title/author query. Backend
    failures are reported through LookupResult.error rather than raised.
    """

    @property
    def name(self) -> str: ...

    def lookup(self, title: str, author: str) -> LookupResult: ...
