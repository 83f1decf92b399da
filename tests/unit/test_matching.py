# ABOUTME: Unit tests for fuzzy title matching.
# ABOUTME: Tests edit distance, title similarity, and TitleIndex lookups with exclusions.

import pytest

from moonsync.sync.matching import (
    TitleIndex,
    levenshtein,
    normalize_title_for_match,
    similarity,
    title_similarity,
)


class TestLevenshtein:
    """Tests for levenshtein and similarity."""

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("", "", 0),
            ("abc", "", 3),
            ("kitten", "sitting", 3),
            ("dune", "dune", 0),
            ("flaw", "lawn", 2),
        ],
    )
    def test_distance(self, a: str, b: str, expected: int) -> None:
        assert levenshtein(a, b) == expected
        assert levenshtein(b, a) == expected

    def test_similarity_bounds(self) -> None:
        assert similarity("", "") == 1.0
        assert similarity("abc", "xyz") == 0.0
        assert similarity("dune", "dune") == 1.0

    def test_similarity_value(self) -> None:
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


class TestNormalizeTitleForMatch:
    """Tests for normalize_title_for_match."""

    def test_lowercases_and_collapses_whitespace(self) -> None:
        assert normalize_title_for_match("  We  Are   Legion ") == "we are legion"

    def test_punctuation_becomes_space(self) -> None:
        assert normalize_title_for_match("Harry Potter & the Stone!") == "harry potter the stone"

    def test_keeps_subtitle_text(self) -> None:
        assert (
            normalize_title_for_match("The Stormlight Archive: The Way of Kings")
            == "the stormlight archive the way of kings"
        )


class TestTitleSimilarity:
    """Tests for title_similarity."""

    def test_added_trailing_parenthetical_is_ignored(self) -> None:
        assert title_similarity("We Are Legion", "We Are Legion (We Are Bob)") == 1.0
        assert title_similarity("We Are Legion (We Are Bob)", "We Are Legion") == 1.0

    def test_added_trailing_bracket_is_ignored(self) -> None:
        assert title_similarity("Dune [Illustrated]", "Dune") == 1.0

    def test_same_series_different_subtitle_stays_apart(self) -> None:
        score = title_similarity(
            "The Stormlight Archive: The Way of Kings",
            "The Stormlight Archive: Words of Radiance",
        )
        assert score < 0.8

    def test_numbered_volumes_never_match(self) -> None:
        assert title_similarity("Foo (Book 1)", "Foo (Book 2)") == 0.0
        assert title_similarity("Dune 1", "Dune 2") == 0.0

    def test_same_numbers_compare_normally(self) -> None:
        assert title_similarity("Foo (Book 1)", "foo (book 1)") == 1.0


class TestTitleIndex:
    """Tests for TitleIndex."""

    def test_finds_drifted_title(self) -> None:
        index = TitleIndex([("Books/We Are Legion.md", "We Are Legion")])
        found = index.find("We Are Legion (We Are Bob)")
        assert found == ("Books/We Are Legion.md", 1.0)

    def test_sequel_does_not_match(self) -> None:
        index = TitleIndex([("Books/Dune.md", "Dune")])
        assert index.find("Dune Messiah") is None

    def test_close_typo_matches(self) -> None:
        index = TitleIndex([("Books/Neuromancer.md", "Neuromancer")])
        path, score = index.find("Neuromancr")
        assert path == "Books/Neuromancer.md"
        assert score >= 0.8

    def test_best_score_wins(self) -> None:
        index = TitleIndex(
            [("Books/A.md", "The Hobbits"), ("Books/B.md", "The Hobbit")]
        )
        assert index.find("The Hobbit")[0] == "Books/B.md"

    def test_ties_resolve_to_first_path(self) -> None:
        index = TitleIndex([("Books/Z.md", "Emma"), ("Books/A.md", "Emma")])
        assert index.find("Emma")[0] == "Books/A.md"

    def test_exclude_claimed_paths(self) -> None:
        index = TitleIndex([("Books/Emma.md", "Emma")])
        assert index.find("Emma", exclude={"Books/Emma.md"}) is None

    def test_add_remove_rename(self) -> None:
        index = TitleIndex()
        index.add("Books/Old.md", "Emma")
        index.rename("Books/Old.md", "Books/Emma.md")
        assert "Books/Emma.md" in index
        assert "Books/Old.md" not in index
        index.remove("Books/Emma.md")
        assert len(index) == 0

    def test_threshold(self) -> None:
        index = TitleIndex([("Books/Dune.md", "Dune")])
        assert index.find("Dune Messiah", threshold=0.3) is not None

    def test_series_volumes_do_not_match(self) -> None:
        index = TitleIndex(
            [
                ("Books/WoK.md", "The Stormlight Archive: The Way of Kings"),
                ("Books/Foo (Book 1).md", "Foo (Book 1)"),
            ]
        )
        assert index.find("The Stormlight Archive: Words of Radiance") is None
        assert index.find("Foo (Book 2)") is None
