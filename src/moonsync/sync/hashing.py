# ABOUTME: Content hash over a book's highlight set for fast change detection.
# ABOUTME: SHA-256 of canonical JSON, truncated for storage in the note header.

import hashlib
import json
from collections.abc import Iterable

from moonsync.core.types import HighlightRecord

HASH_LENGTH = 16


def compute_highlights_hash(highlights: Iterable[HighlightRecord]) -> str:
    """Compute a deterministic digest of the highlights that end up in a note.

    Only the fields that affect rendering participate (position, chapter,
    color, timestamp, text, note), taken in position order so that the input
    order of the highlights does not matter.

    Returns:
        The first 16 lowercase hex characters of the SHA-256 digest.
    """
    canonical = [
        [h.position, h.chapter, h.color, h.timestamp, h.text, h.note]
        for h in sorted(highlights, key=lambda h: (h.position, h.text))
    ]
    payload = json.dumps(canonical, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:HASH_LENGTH]
