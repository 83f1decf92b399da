# ABOUTME: Fuzzy title matching used to re-identify notes whose book title drifted.
# ABOUTME: Levenshtein similarity between titles, with a per-pass title index.

import re
from collections.abc import Iterable

DEFAULT_MATCH_THRESHOLD = 0.80

_TRAILING_BRACKETED_RE = re.compile(r"\s*(?:\([^)]*\)|\[[^\]]*\])$")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"\d+")


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insertions, deletions, substitutions) between two strings."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalized similarity: 1 - distance / max(len(a), len(b)).

    Two empty strings are identical (1.0).
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


def normalize_title_for_match(title: str) -> str:
    """Lowercase a title, turn punctuation into spaces, and collapse whitespace."""
    text = _PUNCTUATION_RE.sub(" ", title.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def _strip_trailing_bracketed(title: str) -> tuple[str, bool]:
    stripped = _TRAILING_BRACKETED_RE.sub("", title)
    return stripped, stripped != title


def title_similarity(a: str, b: str) -> float:
    """Similarity of two book titles for re-identifying a note.

    A trailing parenthesised or bracketed segment is dropped only when exactly
    one of the two titles carries one, so "We Are Legion" matches "We Are
    Legion (We Are Bob)" while "Foo (Book 1)" and "Foo (Book 2)" stay apart.
    Titles whose numbers differ never match.
    """
    a, b = a.strip(), b.strip()
    base_a, bracketed_a = _strip_trailing_bracketed(a)
    base_b, bracketed_b = _strip_trailing_bracketed(b)
    if bracketed_a != bracketed_b:
        a, b = base_a, base_b

    norm_a = normalize_title_for_match(a)
    norm_b = normalize_title_for_match(b)
    if _NUMBER_RE.findall(norm_a) != _NUMBER_RE.findall(norm_b):
        return 0.0
    return similarity(norm_a, norm_b)


class TitleIndex:
    """Titles of existing notes, built once per sync pass.

    Candidates are kept in path order so that ties resolve to the first path.
    """

    def __init__(self, entries: Iterable[tuple[str, str]] = ()) -> None:
        self._titles: dict[str, str] = {}
        for path, title in entries:
            self.add(path, title)

    def __len__(self) -> int:
        return len(self._titles)

    def __contains__(self, path: object) -> bool:
        return path in self._titles

    def add(self, path: str, title: str) -> None:
        self._titles[path] = title

    def remove(self, path: str) -> None:
        self._titles.pop(path, None)

    def rename(self, old_path: str, new_path: str) -> None:
        if old_path in self._titles:
            self._titles[new_path] = self._titles.pop(old_path)

    def find(
        self,
        title: str,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        *,
        exclude: Iterable[str] = (),
    ) -> tuple[str, float] | None:
        """Return (path, score) of the most similar note at or above threshold.

        Args:
            title: Canonical title of the incoming book.
            threshold: Minimum similarity to accept.
            exclude: Paths that must not be returned (already claimed this pass).
        """
        skip = set(exclude)
        best: tuple[str, float] | None = None
        for path in sorted(self._titles):
            if path in skip:
                continue
            score = title_similarity(title, self._titles[path])
            if score >= threshold and (best is None or score > best[1]):
                best = (path, score)
        return best
