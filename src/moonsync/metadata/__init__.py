# ABOUTME: Metadata package for bibliographic lookups, merging, and local caching.
# ABOUTME: Exports the merged BookInfo record, the source protocol, and the resolver.

from moonsync.metadata.cache import MetadataCache
from moonsync.metadata.merge import MetadataResolver, merge_lookups
from moonsync.metadata.provider import MetadataSource
from moonsync.metadata.types import BookInfo, LookupResult

__all__ = [
    "BookInfo",
    "LookupResult",
    "MetadataCache",
    "MetadataResolver",
    "MetadataSource",
    "merge_lookups",
]
