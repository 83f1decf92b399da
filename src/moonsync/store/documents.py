# ABOUTME: Document store abstraction over the vault that receives generated notes.
# ABOUTME: DocumentStore is the protocol the sync engine needs; one filesystem implementation.

import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_SLASH_RUN_RE = re.compile(r"/+")
_SPACE_RUN_RE = re.compile(r"[ \t ]+")


def normalize_path(path: str) -> str:
    """Normalize a vault-relative path.

    Backslashes become slashes, repeated slashes and whitespace runs collapse,
    and leading/trailing slashes are dropped. An empty result means the root.
    """
    path = path.replace("\\", "/")
    path = _SLASH_RUN_RE.sub("/", path)
    path = _SPACE_RUN_RE.sub(" ", path)
    return path.strip().strip("/")


@runtime_checkable
class DocumentStore(Protocol):
    """Text-file store addressed by vault-relative POSIX path strings."""

    def exists(self, path: str) -> bool: ...

    def read(self, path: str) -> str: ...

    def write(self, path: str, content: str) -> None: ...

    def create(self, path: str, content: str) -> None: ...

    def rename(self, path: str, new_path: str) -> None: ...

    def delete(self, path: str) -> None: ...

    def list_files(self, folder: str) -> list[str]: ...

    def create_folder(self, folder: str) -> None: ...

    def write_binary(self, path: str, data: bytes) -> None: ...


class FilesystemDocumentStore:
    """DocumentStore over a local directory (the vault root).

    list_files() is not recursive and returns paths relative to the root,
    sorted by name.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        normalized = normalize_path(path)
        return self._root / normalized if normalized else self._root

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def read(self, path: str) -> str:
        return self._resolve(path).read_text(encoding="utf-8")

    def write(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def create(self, path: str, content: str) -> None:
        """Write a new file.

        Raises:
            FileExistsError: If a file already exists at path.
        """
        target = self._resolve(path)
        if target.exists():
            raise FileExistsError(f"File already exists: {path}")
        self.write(path, content)

    def rename(self, path: str, new_path: str) -> None:
        """Move a file to new_path.

        Raises:
            FileExistsError: If new_path is already taken.
        """
        source = self._resolve(path)
        target = self._resolve(new_path)
        if target.exists():
            raise FileExistsError(f"Cannot rename {path}: {new_path} already exists")
        target.parent.mkdir(parents=True, exist_ok=True)
        source.rename(target)

    def delete(self, path: str) -> None:
        self._resolve(path).unlink()

    def list_files(self, folder: str) -> list[str]:
        directory = self._resolve(folder)
        if not directory.is_dir():
            return []
        prefix = normalize_path(folder)
        names = sorted(p.name for p in directory.iterdir() if p.is_file())
        return [f"{prefix}/{name}" if prefix else name for name in names]

    def create_folder(self, folder: str) -> None:
        self._resolve(folder).mkdir(parents=True, exist_ok=True)

    def write_binary(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
