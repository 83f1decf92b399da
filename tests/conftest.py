# ABOUTME: Shared pytest fixtures for MoonSync tests.
# ABOUTME: Provides a synthetic reader cache folder, a vault store, settings, and fake metadata sources.

from pathlib import Path

import pytest

from moonsync.config import SyncSettings
from moonsync.metadata.merge import MetadataResolver
from moonsync.store.documents import FilesystemDocumentStore
from tests.fixtures.fakes import FakeSource, google_books_result, open_library_result


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """A Moon+ Reader synced Books folder; annotation files go in its cache subfolder."""
    source = tmp_path / "Books"
    (source / ".Moon+" / "Cache").mkdir(parents=True)
    return source


@pytest.fixture
def cache_dir(source_dir: Path) -> Path:
    return source_dir / ".Moon+" / "Cache"


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    vault = tmp_path / "vault"
    vault.mkdir()
    return vault


@pytest.fixture
def store(vault_dir: Path) -> FilesystemDocumentStore:
    return FilesystemDocumentStore(vault_dir)


@pytest.fixture
def settings(source_dir: Path, vault_dir: Path) -> SyncSettings:
    return SyncSettings(source_path=str(source_dir), vault_path=str(vault_dir))


@pytest.fixture
def open_library_source() -> FakeSource:
    return FakeSource("openlibrary", open_library_result())


@pytest.fixture
def google_books_source() -> FakeSource:
    return FakeSource("googlebooks", google_books_result())


@pytest.fixture
def resolver(open_library_source: FakeSource, google_books_source: FakeSource) -> MetadataResolver:
    return MetadataResolver(open_library_source, google_books_source)


@pytest.fixture
def cover_fetcher():
    """Cover downloader that records requested URLs and returns fake JPEG bytes."""
    requested: list[str] = []

    def fetch(url: str) -> bytes:
        requested.append(url)
        return b"\xff\xd8\xff\xe0fake-jpeg"

    fetch.requested = requested  # type: ignore[attr-defined]
    return fetch
