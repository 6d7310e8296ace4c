"""
Cache index and its durable JSON image.

CacheIndex owns the Metadata record and the key -> CacheItem map derived
from it. Both are mutated together by every method here, so the map and
``metadata.items`` always hold the same CacheItem objects. The index is not
locked on its own; DiskCache serializes access to it.
"""

from __future__ import annotations

from pathlib import Path

import orjson

from kash.exceptions import ConfigurationError, DecodeError, KashError
from kash.fileio import FileIO
from kash.logging import get_logger
from kash.types import CacheItem, Metadata, now_millis

logger = get_logger(__name__)

METADATA_FILENAME = "kash-metadata.json"


class CacheIndex:
    """In-memory key -> item map mirrored by ``kash-metadata.json``.

    Layout:
        <cache_dir>/kash-metadata.json
        <cache_dir>/<item.filename>   one payload file per item
    """

    def __init__(self, cache_dir: str | Path, name: str, file_io: FileIO) -> None:
        """Initialize the index. Nothing is read until load() is called.

        Args:
            cache_dir: Directory holding the metadata document and payload files.
            name: Cache name recorded in a newly created document.
            file_io: File primitives used for the document and payload deletion.
        """
        self.cache_dir = Path(cache_dir)
        self.metadata_path = self.cache_dir / METADATA_FILENAME
        self.name = name
        self._file_io = file_io
        self.metadata = Metadata(name=name)
        self._items: dict[str, CacheItem] = {}

    def load(self) -> None:
        """Read the metadata document, or create the cache directory and an empty one.

        Raises:
            ConfigurationError: If the cache directory cannot be created.
            DecodeError: If the existing document is not valid metadata JSON.
            CacheIOError: If the document cannot be read or written.
        """
        if self.metadata_path.exists():
            raw = self._file_io.read_all(self.metadata_path)
            try:
                self.metadata = Metadata.from_dict(orjson.loads(raw))
            except (orjson.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
                raise DecodeError(
                    f"Corrupt metadata document: {e}",
                    {"path": str(self.metadata_path)},
                ) from e
            self._rebuild()
            logger.debug(
                "Loaded cache metadata",
                path=str(self.metadata_path),
                items=len(self._items),
            )
            return

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot create cache directory: {e}",
                {"cache_dir": str(self.cache_dir)},
            ) from e

        self.metadata = Metadata(name=self.name)
        self._items = {}
        self.flush()
        logger.info("Created cache", cache_dir=str(self.cache_dir))

    def _rebuild(self) -> None:
        """Rebuild the map from metadata.items; a repeated key keeps its last record."""
        items: dict[str, CacheItem] = {}
        for item in self.metadata.items:
            if item.key in items:
                logger.warning("Dropping duplicate metadata record", key=item.key)
            items[item.key] = item
        if len(items) != len(self.metadata.items):
            self.metadata.items = list(items.values())
        self._items = items

    def sweep_expired(self, now: int | None = None) -> list[CacheItem]:
        """Drop every expired item and delete its payload file.

        Flushes the document if anything was removed. Payload files that
        cannot be deleted are logged and left in place.

        Returns:
            The removed items.
        """
        if now is None:
            now = now_millis()

        expired = [item for item in self.metadata.items if item.is_expired(now)]
        if not expired:
            return []

        for item in expired:
            del self._items[item.key]
        self.metadata.items = [item for item in self.metadata.items if not item.is_expired(now)]
        self.flush()

        # Already unreferenced by the document; a failed delete leaves an orphan.
        for item in expired:
            try:
                self._file_io.delete(self.path_of(item))
            except KashError as e:
                logger.warning("Failed to delete expired payload", key=item.key, error=str(e))

        logger.info("Swept expired items", count=len(expired))
        return expired

    def get(self, key: str) -> CacheItem | None:
        return self._items.get(key)

    def add(self, item: CacheItem) -> None:
        """Track a new item. The key must not already be present."""
        if item.key in self._items:
            raise KeyError(item.key)
        self._items[item.key] = item
        self.metadata.items.append(item)

    def remove(self, key: str) -> CacheItem | None:
        """Stop tracking ``key``, returning its item or None."""
        item = self._items.pop(key, None)
        if item is not None:
            self.metadata.items.remove(item)
        return item

    def clear(self) -> None:
        self._items.clear()
        self.metadata.items.clear()

    def keys(self) -> list[str]:
        return [item.key for item in self.metadata.items]

    def items(self) -> list[CacheItem]:
        return list(self.metadata.items)

    def path_of(self, item: CacheItem) -> Path:
        """Path of the payload file for ``item``."""
        return self.cache_dir / item.filename

    def flush(self) -> None:
        """Overwrite the metadata document with the current metadata."""
        data = orjson.dumps(self.metadata.to_dict(), option=orjson.OPT_INDENT_2)
        self._file_io.write_all(self.metadata_path, data)

    def __len__(self) -> int:
        return len(self.metadata.items)

    def __contains__(self, key: object) -> bool:
        return key in self._items
