# ABOUTME: Unit tests for GoogleBooksSource and volumeInfo parsing.
# ABOUTME: Uses a FakeHttpClient with canned volumes responses.

from moonsync.metadata.googlebooks import GoogleBooksSource, parse_volume_info
from moonsync.metadata.http import MetadataFetchError
from moonsync.metadata.provider import MetadataSource
from tests.fixtures.fakes import FakeHttpClient
from tests.fixtures.googlebooks_responses import (
    VOLUMES_RESPONSE,
    VOLUMES_RESPONSE_EMPTY,
    VOLUMES_RESPONSE_SUBTITLE,
)


class TestParseVolumeInfo:
    """Tests for parse_volume_info."""

    def test_full_volume(self) -> None:
        result = parse_volume_info(VOLUMES_RESPONSE["items"][0]["volumeInfo"])
        assert result.title == "Dune"
        assert result.author == "Frank Herbert"
        assert result.publisher == "Penguin"
        assert result.published_date == "2005-08-02"
        assert result.page_count == 896
        assert result.genres == ["Fiction", "Science Fiction"]
        assert result.language == "en"
        assert result.description.startswith("Melange")
        assert result.series is None

    def test_cover_is_largest_link_over_https(self) -> None:
        result = parse_volume_info(VOLUMES_RESPONSE["items"][0]["volumeInfo"])
        assert result.cover_url == "https://books.google.com/books/content?id=B1hSG45JCX4C&zoom=1"

    def test_subtitle(self) -> None:
        result = parse_volume_info(VOLUMES_RESPONSE_SUBTITLE["items"][0]["volumeInfo"])
        assert result.title == "We Are Legion (We Are Bob)"
        assert result.cover_url is None
        assert result.genres is None


class TestGoogleBooksSource:
    """Tests for GoogleBooksSource.lookup."""

    def test_satisfies_protocol(self) -> None:
        source = GoogleBooksSource(FakeHttpClient())
        assert isinstance(source, MetadataSource)
        assert source.name == "googlebooks"

    def test_lookup(self) -> None:
        client = FakeHttpClient({"books/v1/volumes": VOLUMES_RESPONSE})
        result = GoogleBooksSource(client).lookup("Dune", "Frank Herbert")
        assert result.publisher == "Penguin"
        assert client.request_log == ["https://www.googleapis.com/books/v1/volumes"]

    def test_no_items(self) -> None:
        client = FakeHttpClient({"books/v1/volumes": VOLUMES_RESPONSE_EMPTY})
        result = GoogleBooksSource(client).lookup("Nothing", "")
        assert not result.failed
        assert result.title is None

    def test_failure(self) -> None:
        client = FakeHttpClient({"books/v1/volumes": MetadataFetchError("HTTP 429")})
        result = GoogleBooksSource(client).lookup("Dune", "Frank Herbert")
        assert result.failed
