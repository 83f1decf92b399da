# ABOUTME: Immutable sync settings and the JSON settings file loader.
# ABOUTME: Separates what gets fetched (always everything) from what gets displayed.

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".moonsync" / "settings.json"

COLLAGE_SORT_ORDERS = ("alpha", "recent")


class ConfigError(Exception):
    """Raised when the settings file is unreadable or holds invalid values."""


@dataclass(frozen=True)
class SyncSettings:
    """Settings for one sync pass.

    The show_* flags only gate rendering. Metadata is fetched and cached
    regardless of which sections are displayed.
    """

    source_path: str = ""
    vault_path: str = "."
    output_folder: str = "Books"
    show_description: bool = True
    show_reading_progress: bool = True
    show_highlight_colors: bool = True
    show_covers: bool = True
    show_notes: bool = True
    show_metadata: bool = True
    show_index: bool = True
    index_note_title: str = "1. Library Index"
    generate_base_file: bool = True
    base_file_name: str = "2. Books Database"
    show_cover_collage: bool = True
    cover_collage_limit: int = 0
    cover_collage_sort: str = "alpha"
    track_books_without_highlights: bool = False
    prefetch_metadata: bool = True

    def __post_init__(self) -> None:
        if self.cover_collage_sort not in COLLAGE_SORT_ORDERS:
            raise ConfigError(
                f"cover_collage_sort must be one of {', '.join(COLLAGE_SORT_ORDERS)}, "
                f"got {self.cover_collage_sort!r}"
            )
        if self.cover_collage_limit < 0:
            raise ConfigError(f"cover_collage_limit must be >= 0, got {self.cover_collage_limit}")

    @property
    def covers_folder(self) -> str:
        return f"{self.output_folder}/covers"

    @property
    def index_path(self) -> str:
        return f"{self.output_folder}/{self.index_note_title}.md"

    @property
    def base_path(self) -> str:
        return f"{self.output_folder}/{self.base_file_name}.base"


def settings_from_dict(data: dict[str, Any]) -> SyncSettings:
    """Build settings from a mapping, ignoring keys that are not settings."""
    known = {f.name for f in fields(SyncSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.debug("Ignoring unknown settings: %s", ", ".join(unknown))
    return SyncSettings(**{k: v for k, v in data.items() if k in known})


def load_settings(path: Path | None = None) -> SyncSettings:
    """Load settings from a JSON file.

    A missing file yields the defaults. An unreadable file, malformed JSON,
    or an invalid value raises ConfigError.

    Args:
        path: Settings file (default: ~/.moonsync/settings.json).
    """
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        logger.debug("No settings file at %s, using defaults", config_path)
        return SyncSettings()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read settings from {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {config_path} must contain a JSON object")

    try:
        return settings_from_dict(data)
    except TypeError as exc:
        raise ConfigError(f"Invalid settings in {config_path}: {exc}") from exc
