# ABOUTME: Local metadata cache persisted as JSON next to the generated notes.
# ABOUTME: Memoizes merged lookups per (title, author) and tracks which books were attempted.

import json
import logging
import time
from typing import Any

from moonsync.metadata.types import EXTENDED_FIELDS, BookInfo
from moonsync.store.documents import DocumentStore, normalize_path

logger = logging.getLogger(__name__)

CACHE_FILENAME = ".moonsync-cache.json"


def cache_key(title: str, author: str) -> str:
    return f"{title.lower()}|{(author or '').lower()}"


class MetadataCache:
    """Whole-file JSON cache of merged metadata lookups.

    Entries never expire; deleting the cache file is the only way to force a
    re-fetch. Each entry stores the BookInfo fields plus a fetched_at epoch
    millisecond timestamp.
    """

    def __init__(
        self,
        store: DocumentStore,
        path: str,
        entries: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self._store = store
        self._path = path
        self._entries: dict[str, dict[str, Any]] = entries or {}
        self.modified = False

    @classmethod
    def load(cls, store: DocumentStore, folder: str) -> "MetadataCache":
        """Load the cache file from folder, starting empty if absent or corrupt."""
        path = normalize_path(f"{folder}/{CACHE_FILENAME}")
        entries: dict[str, dict[str, Any]] = {}
        if store.exists(path):
            try:
                data = json.loads(store.read(path))
            except (OSError, ValueError) as exc:
                logger.warning("Failed to load metadata cache %s, starting fresh: %s", path, exc)
            else:
                if isinstance(data, dict):
                    entries = {k: v for k, v in data.items() if isinstance(v, dict)}
                else:
                    logger.warning("Metadata cache %s is not a JSON object, starting fresh", path)
        return cls(store, path, entries)

    @property
    def path(self) -> str:
        return self._path

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, title: str, author: str) -> BookInfo | None:
        entry = self._entries.get(cache_key(title, author))
        if entry is None:
            return None
        return BookInfo.from_dict(entry)

    def set(self, title: str, author: str, info: BookInfo) -> None:
        """Record a lookup result. Lookups where every source failed are not stored."""
        if info.failed:
            logger.debug("Not caching failed lookup for %r", title)
            return
        entry: dict[str, Any] = info.to_dict()
        entry["fetched_at"] = int(time.time() * 1000)
        self._entries[cache_key(title, author)] = entry
        self.modified = True

    def has_extended_metadata(self, title: str, author: str) -> bool:
        """Whether the extended field group was already looked up for this book.

        Presence of every key is the signal, not its value: a book with no
        known publisher is still attempted.
        """
        entry = self._entries.get(cache_key(title, author))
        if entry is None:
            return False
        return all(name in entry for name in EXTENDED_FIELDS)

    def clear(self) -> None:
        self._entries.clear()
        self.modified = True

    def save(self) -> None:
        """Write the whole cache back to the store. Failures are logged, not raised."""
        try:
            self._store.write(self._path, json.dumps(self._entries, indent=2))
        except OSError as exc:
            logger.warning("Failed to save metadata cache %s: %s", self._path, exc)
            return
        self.modified = False
