# ABOUTME: Shared Click options and wiring helpers for MoonSync CLI commands.
# ABOUTME: Resolves settings from the config file plus overrides and builds the metadata stack.

from dataclasses import replace
from pathlib import Path

import click

from moonsync.config import DEFAULT_CONFIG_PATH, ConfigError, SyncSettings, load_settings
from moonsync.metadata.googlebooks import GoogleBooksSource
from moonsync.metadata.http import MoonSyncHttpClient
from moonsync.metadata.merge import MetadataResolver
from moonsync.metadata.openlibrary import OpenLibrarySource
from moonsync.store.documents import FilesystemDocumentStore

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Settings file (default: {DEFAULT_CONFIG_PATH})",
)

vault_option = click.option(
    "--vault",
    "vault_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Vault directory that receives the notes (overrides settings).",
)

source_option = click.option(
    "--source",
    "source_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Moon+ Reader synced Books folder containing .Moon+ (overrides settings).",
)


def resolve_settings(
    config_path: Path | None,
    *,
    vault_path: Path | None = None,
    source_path: Path | None = None,
) -> SyncSettings:
    """Load settings and apply command-line overrides, exiting on a bad config."""
    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    overrides: dict[str, str] = {}
    if vault_path is not None:
        overrides["vault_path"] = str(vault_path)
    if source_path is not None:
        overrides["source_path"] = str(source_path)
    return replace(settings, **overrides) if overrides else settings


def open_store(settings: SyncSettings) -> FilesystemDocumentStore:
    return FilesystemDocumentStore(Path(settings.vault_path).expanduser())


def build_resolver() -> tuple[MetadataResolver, MoonSyncHttpClient]:
    """Wire both metadata sources over one shared HTTP client.

    The caller owns the client and should close it when done.
    """
    http_client = MoonSyncHttpClient()
    resolver = MetadataResolver(
        OpenLibrarySource(http_client=http_client),
        GoogleBooksSource(http_client=http_client),
    )
    return resolver, http_client
