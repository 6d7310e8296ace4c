"""
Raw file primitives used by DiskCache.

FileIO is the seam between the cache bookkeeping and the filesystem. The
default LocalFileIO works on local paths and turns every OSError into
CacheIOError.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Protocol, runtime_checkable

from kash.exceptions import CacheIOError


@runtime_checkable
class FileIO(Protocol):
    """Read, write and delete whole files."""

    def read_all(self, path: Path) -> bytes:
        ...

    def write_all(self, path: Path, data: bytes) -> None:
        ...

    def delete(self, path: Path) -> None:
        ...

    def delete_contents_of(self, path: Path) -> None:
        ...


class LocalFileIO:
    """FileIO over the local filesystem."""

    def read_all(self, path: Path) -> bytes:
        """Read every byte of ``path``."""
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise CacheIOError(
                f"Failed to read cache file: {e}",
                {"path": str(path), "operation": "read"},
            ) from e

    def write_all(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path``, replacing any previous content."""
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            raise CacheIOError(
                f"Failed to write cache file: {e}",
                {"path": str(path), "operation": "write"},
            ) from e

    def delete(self, path: Path) -> None:
        """Delete a file or directory tree. Missing paths are ignored."""
        path = Path(path)
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheIOError(
                f"Failed to delete cache file: {e}",
                {"path": str(path), "operation": "delete"},
            ) from e

    def delete_contents_of(self, path: Path) -> None:
        """Delete everything under the directory ``path``, keeping the directory itself."""
        path = Path(path)
        if not path.is_dir():
            return
        try:
            children = list(path.iterdir())
        except OSError as e:
            raise CacheIOError(
                f"Failed to list cache directory: {e}",
                {"path": str(path), "operation": "delete"},
            ) from e
        for child in children:
            self.delete(child)
