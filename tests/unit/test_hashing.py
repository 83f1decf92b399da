# ABOUTME: Unit tests for the highlight content hash.
# ABOUTME: Verifies determinism, order independence, and sensitivity to rendered fields.

from dataclasses import replace

from moonsync.core.types import HighlightRecord
from moonsync.sync.hashing import HASH_LENGTH, compute_highlights_hash


def _highlight(position: int, text: str, **overrides) -> HighlightRecord:
    base = HighlightRecord(
        id=position,
        book="Dune",
        filename="/sdcard/Books/Dune.epub",
        chapter=1,
        position=position,
        length=len(text),
        color=-256,
        timestamp=1700000000000,
        note="",
        text=text,
    )
    return replace(base, **overrides)


class TestComputeHighlightsHash:
    """Tests for compute_highlights_hash."""

    def test_format(self) -> None:
        digest = compute_highlights_hash([_highlight(1, "a")])
        assert len(digest) == HASH_LENGTH
        assert all(c in "0123456789abcdef" for c in digest)

    def test_deterministic(self) -> None:
        highlights = [_highlight(1, "a"), _highlight(2, "b")]
        assert compute_highlights_hash(highlights) == compute_highlights_hash(list(highlights))

    def test_input_order_does_not_matter(self) -> None:
        a, b = _highlight(1, "a"), _highlight(2, "b")
        assert compute_highlights_hash([a, b]) == compute_highlights_hash([b, a])

    def test_sensitive_to_rendered_fields(self) -> None:
        base = _highlight(1, "a")
        digest = compute_highlights_hash([base])
        for change in (
            {"text": "b"},
            {"note": "mine"},
            {"color": -16776961},
            {"chapter": 2},
            {"position": 5},
            {"timestamp": 1},
        ):
            assert compute_highlights_hash([replace(base, **change)]) != digest, change

    def test_ignores_non_rendered_fields(self) -> None:
        base = _highlight(1, "a")
        assert compute_highlights_hash([replace(base, id=99, length=1000)]) == (
            compute_highlights_hash([base])
        )

    def test_empty(self) -> None:
        assert len(compute_highlights_hash([])) == HASH_LENGTH
