"""BlobStore contract and the local-filesystem backend."""
from __future__ import annotations

import re
import secrets
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path, PurePosixPath

from filepipe.domain.exceptions import StorageIOError

UPLOAD_DIRECTORY = "uploads"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]+")


class BlobStore(ABC):
    """Content storage keyed by a relative path."""

    @abstractmethod
    def store(self, content: bytes, filename: str) -> str:
        """Persist ``content`` and return the path it can be read back from."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Return the stored bytes; StorageIOError if missing or unreadable."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove a blob. True when it is gone (including never existed)."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """True when a readable blob is stored at ``path``."""


def slugify(name: str) -> str:
    slug = _UNSAFE_CHARS.sub("-", name).strip("-")
    return slug or "file"


class LocalBlobStore(BlobStore):
    """Stores blobs under ``<root>/uploads/`` with collision-free names."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def store(self, content: bytes, filename: str) -> str:
        pure = PurePosixPath(filename.replace("\\", "/")).name
        stem, _, extension = pure.rpartition(".")
        if not stem:
            stem, extension = extension, ""
        stored_name = "_".join([
            slugify(stem),
            datetime.now().strftime("%Y-%m-%d_%H-%M-%S"),
            secrets.token_hex(8),
        ])
        if extension:
            stored_name = f"{stored_name}.{extension.lower()}"
        relative = f"{UPLOAD_DIRECTORY}/{stored_name}"

        target = self._resolve(relative)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise StorageIOError(f"Failed to store file: {exc}") from exc
        return relative

    def read(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise StorageIOError(f"File does not exist or is not readable: {path}")
        try:
            return target.read_bytes()
        except OSError as exc:
            raise StorageIOError(f"Failed to read file content: {exc}") from exc

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageIOError(f"Failed to delete file: {exc}") from exc
        return True

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def _resolve(self, path: str) -> Path:
        target = (self._root / path.lstrip("/")).resolve()
        if not target.is_relative_to(self._root):
            raise StorageIOError(f"Path escapes storage root: {path}")
        return target
