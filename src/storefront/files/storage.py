"""Blob store port and adapters.

The storefront keeps file metadata; bytes live behind this port.
``LocalBlobStore`` writes under a root directory, ``InMemoryBlobStore`` keeps
everything in a dict for tests.
"""

import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from protean.exceptions import ObjectNotFoundError

from storefront.settings import setting


class BlobStore(ABC):
    @abstractmethod
    def store(self, data: bytes, path: str) -> str:
        """Persist ``data`` at ``path`` and return the stored path."""
        ...

    @abstractmethod
    def open(self, path: str) -> BinaryIO:
        """Readable stream for ``path``. Raises ``ObjectNotFoundError`` when absent."""
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...


class LocalBlobStore(BlobStore):
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ObjectNotFoundError(f"Blob {path} does not exist")
        return target

    def store(self, data: bytes, path: str) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return path

    def open(self, path: str) -> BinaryIO:
        target = self._resolve(path)
        if not target.is_file():
            raise ObjectNotFoundError(f"Blob {path} does not exist")
        return target.open("rb")

    def delete(self, path: str) -> None:
        self._resolve(path).unlink(missing_ok=True)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()


class InMemoryBlobStore(BlobStore):
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    def store(self, data: bytes, path: str) -> str:
        self.blobs[path] = data
        return path

    def open(self, path: str) -> BinaryIO:
        if path not in self.blobs:
            raise ObjectNotFoundError(f"Blob {path} does not exist")
        return io.BytesIO(self.blobs[path])

    def delete(self, path: str) -> None:
        self.blobs.pop(path, None)

    def exists(self, path: str) -> bool:
        return path in self.blobs


_current_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """Return the active blob store. Defaults to a LocalBlobStore under UPLOAD_ROOT."""
    global _current_store
    if _current_store is None:
        _current_store = LocalBlobStore(setting("UPLOAD_ROOT"))
    return _current_store


def set_blob_store(store: BlobStore) -> None:
    global _current_store
    _current_store = store


def reset_blob_store() -> None:
    global _current_store
    _current_store = None
