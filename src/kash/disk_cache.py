"""
Disk-backed keyed blob cache.

Values are stored one file per key under ``<root>/<name>/``; the
``kash-metadata.json`` document next to them records which keys exist,
which file holds each one, and when each expires. An optional LruCache in
front of the filesystem serves repeated reads of small values.

Expiration is lazy: expired items are dropped by the startup sweep and by
any read that finds them expired. There is no background thread.
"""

from __future__ import annotations

import codecs
import dataclasses
import threading
from pathlib import Path
from typing import Any, TypeVar

from kash.config import DEFAULT_CACHE_NAME, Settings, default_root_path, get_settings
from kash.exceptions import (
    CacheIOError,
    ConfigurationError,
    DecodeError,
    InvalidArgumentError,
    KashError,
)
from kash.fileio import FileIO, LocalFileIO
from kash.index import CacheIndex
from kash.logging import get_logger, log_context
from kash.lru import LruCache
from kash.serializer import JsonSerializer, Serializer
from kash.types import CacheItem, CacheOption

logger = get_logger(__name__)

T = TypeVar("T")


def _check_key(key: str) -> None:
    if key is None:
        raise InvalidArgumentError("key must not be None")


class DiskCache:
    """Persistent key -> bytes cache with an optional in-memory tier.

    Thread-safe: one re-entrant lock per instance covers the index, the
    metadata items and the memory tier, and is held across the file I/O of
    each operation. Multiple processes sharing a directory are not coordinated.

    Example:
        cache = DiskCache(tmp_path, memory_cache_enabled=True)
        cache.put("greeting", b"hello", CacheOption.expire_after(60))
        cache.get("greeting")  # b"hello"
    """

    def __init__(
        self,
        root_path: str | Path | None = None,
        name: str | None = None,
        serializer: Serializer | None = None,
        *,
        memory_cache_enabled: bool = False,
        memory_cache_max_entries: int = 5,
        memory_cache_max_entry_bytes: int = 8192,
        charset: str = "utf-8",
        file_io: FileIO | None = None,
    ) -> None:
        """Open (or create) the cache and sweep expired items.

        Args:
            root_path: Parent directory; defaults to ``$HOME/.cache`` or the
                working directory when HOME is unset.
            name: Cache directory name under root_path (default "kash").
            serializer: Serializer for put_object()/get_object(); defaults to JSON.
            memory_cache_enabled: Keep small values in an in-memory LRU tier.
            memory_cache_max_entries: Entry capacity of the memory tier.
            memory_cache_max_entry_bytes: Largest value admitted to the memory tier.
            charset: Charset for put_string()/get_string().
            file_io: File primitives; defaults to the local filesystem.

        Raises:
            ConfigurationError: If the memory tier settings or the charset are
                invalid, or the cache directory cannot be created.
        """
        self.root_path = Path(root_path) if root_path is not None else default_root_path()
        self.name = name or DEFAULT_CACHE_NAME
        self.serializer: Serializer = serializer or JsonSerializer()
        self._file_io: FileIO = file_io or LocalFileIO()

        try:
            codecs.lookup(charset)
        except LookupError as e:
            raise ConfigurationError(f"Unknown charset: {charset}", {"charset": charset}) from e
        self.charset = charset

        if memory_cache_max_entry_bytes < 0:
            raise ConfigurationError(
                "memory_cache_max_entry_bytes must not be negative",
                {"memory_cache_max_entry_bytes": memory_cache_max_entry_bytes},
            )
        self.memory_cache_max_entry_bytes = memory_cache_max_entry_bytes
        self._memory: LruCache[str, bytes] | None = (
            LruCache(memory_cache_max_entries) if memory_cache_enabled else None
        )

        self._lock = threading.RLock()
        self._index = CacheIndex(self.root_path / self.name, self.name, self._file_io)

        with self._log_context("open"):
            self._index.load()
            self._index.sweep_expired()
            logger.debug(
                "Disk cache ready",
                cache_dir=str(self.cache_dir),
                items=len(self._index),
                memory_cache=memory_cache_enabled,
            )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        serializer: Serializer | None = None,
        file_io: FileIO | None = None,
    ) -> DiskCache:
        """Build a cache from Settings (the cached environment settings by default)."""
        settings = settings or get_settings()
        return cls(
            settings.ROOT_PATH,
            settings.CACHE_NAME,
            serializer,
            memory_cache_enabled=settings.MEMORY_CACHE_ENABLED,
            memory_cache_max_entries=settings.MEMORY_CACHE_MAX_ENTRIES,
            memory_cache_max_entry_bytes=settings.MEMORY_CACHE_MAX_ENTRY_BYTES,
            charset=settings.CHARSET,
            file_io=file_io,
        )

    def _log_context(self, operation: str):
        return log_context(cache_name=self.name, operation=operation)

    @property
    def cache_dir(self) -> Path:
        return self._index.cache_dir

    @property
    def metadata_path(self) -> Path:
        return self._index.metadata_path

    @property
    def memory_cache(self) -> LruCache[str, bytes] | None:
        """The in-memory tier, or None when disabled."""
        return self._memory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str) -> bytes | None:
        """Get the bytes stored under ``key``.

        Returns:
            The cached bytes, or None if the key was never cached, was
            removed, or has expired.

        Raises:
            CacheIOError: If the payload file cannot be read. The entry is
                kept so the failure is not mistaken for a miss.
        """
        _check_key(key)

        with self._lock, self._log_context("get"):
            item = self._index.get(key)
            if item is None:
                return None

            if item.is_expired():
                logger.debug("Evicting expired item", key=key)
                self._remove_item(item)
                return None

            if self._memory is not None:
                data = self._memory.get(key)
                if data is not None:
                    return data

            try:
                data = self._file_io.read_all(self._index.path_of(item))
            except CacheIOError as e:
                logger.error("Failed to read cached value", key=key, error=str(e))
                raise

            if self._memory is not None and len(data) <= self.memory_cache_max_entry_bytes:
                self._memory.put(key, data)
            return data

    def get_string(self, key: str) -> str | None:
        """Get the value under ``key`` decoded with the cache charset.

        Raises:
            DecodeError: If the bytes are not valid in the charset.
        """
        data = self.get(key)
        if data is None:
            return None
        try:
            return data.decode(self.charset)
        except UnicodeDecodeError as e:
            raise DecodeError(
                f"Cached value is not valid {self.charset}",
                {"key": key, "target": self.charset},
            ) from e

    def get_object(self, key: str, type_: type[T]) -> T | None:
        """Get the value under ``key`` decoded by the serializer into ``type_``.

        Raises:
            DecodeError: If the serializer cannot decode the bytes as ``type_``.
        """
        data = self.get(key)
        if data is None:
            return None
        try:
            return self.serializer.decode(data, type_)
        except (ValueError, TypeError) as e:
            raise DecodeError(
                f"Cannot decode cached value: {e}",
                {"key": key, "target": getattr(type_, "__name__", repr(type_))},
            ) from e

    def contains(self, key: str) -> bool:
        """Check whether ``key`` is cached and unexpired. Does no file I/O."""
        _check_key(key)
        with self._lock:
            item = self._index.get(key)
            return item is not None and not item.is_expired()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, key: str, data: bytes, option: CacheOption | None = None) -> None:
        """Store ``data`` under ``key``.

        A new key gets a fresh payload file; an existing key keeps its file
        and only has its expiration replaced. The metadata document is
        written before the payload.

        Raises:
            InvalidArgumentError: If key or data is None.
            CacheIOError: If the metadata document or payload cannot be written.
        """
        _check_key(key)
        if data is None:
            raise InvalidArgumentError("data must not be None", {"key": key})
        data = bytes(data)
        option = option or CacheOption.empty()

        with self._lock, self._log_context("put"):
            item = self._index.get(key)
            created = item is None
            previous_expired_time: int | None = None
            if item is None:
                item = CacheItem.create(key, option.expired_time)
                self._index.add(item)
            else:
                previous_expired_time = item.expired_time
                item.expired_time = option.expired_time

            self._admit_to_memory(key, data)

            try:
                self._index.flush()
            except KashError as e:
                # Nothing reached disk; put the bookkeeping back as it was.
                if created:
                    self._index.remove(key)
                else:
                    item.expired_time = previous_expired_time
                if self._memory is not None:
                    self._memory.remove(key)
                logger.error("Failed to write cache metadata", key=key, error=str(e))
                raise

            try:
                self._file_io.write_all(self._index.path_of(item), data)
            except KashError as e:
                if self._memory is not None:
                    self._memory.remove(key)
                logger.error("Failed to write cached value", key=key, error=str(e))
                raise

            logger.debug("Stored item", key=key, size=len(data), created=created)

    def put_string(self, key: str, content: str, option: CacheOption | None = None) -> None:
        """Store ``content`` encoded with the cache charset."""
        if content is None:
            raise InvalidArgumentError("content must not be None", {"key": key})
        self.put(key, content.encode(self.charset), option)

    def put_object(self, key: str, obj: Any, option: CacheOption | None = None) -> None:
        """Store ``obj`` encoded by the serializer.

        Raises:
            InvalidArgumentError: If obj is None or the serializer cannot encode it.
        """
        if obj is None:
            raise InvalidArgumentError("obj must not be None", {"key": key})
        try:
            data = self.serializer.encode(obj)
        except (ValueError, TypeError) as e:
            raise InvalidArgumentError(
                f"Cannot encode value: {e}",
                {"key": key, "type": type(obj).__name__},
            ) from e
        self.put(key, data, option)

    def _admit_to_memory(self, key: str, data: bytes) -> None:
        """Cache ``data`` in memory if it fits the entry ceiling, else drop any stale copy."""
        if self._memory is None:
            return
        if len(data) <= self.memory_cache_max_entry_bytes:
            self._memory.put(key, data)
        else:
            self._memory.remove(key)

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove(self, key: str) -> bool:
        """Remove ``key`` and delete its payload file.

        Returns:
            True if the key was cached, False if there was nothing to remove.
        """
        _check_key(key)
        with self._lock, self._log_context("remove"):
            item = self._index.get(key)
            if item is None:
                return False
            self._remove_item(item)
            logger.debug("Removed item", key=key)
            return True

    def _remove_item(self, item: CacheItem) -> None:
        """Drop ``item`` from index, metadata and memory, flush, then delete its file.

        Caller holds the lock.
        """
        self._index.remove(item.key)
        if self._memory is not None:
            self._memory.remove(item.key)
        self._index.flush()
        self._file_io.delete(self._index.path_of(item))

    def evict_all(self) -> None:
        """Remove every item and every file under the cache directory.

        The directory itself is kept, and an empty metadata document is
        written back. Files with no metadata record are removed too. If
        deletion fails partway the empty document is still written, so a
        reopened cache never lists items whose payloads may be gone.
        """
        with self._lock, self._log_context("evict_all"):
            count = len(self._index)
            self._index.clear()
            if self._memory is not None:
                self._memory.evict_all()
            try:
                self._file_io.delete_contents_of(self.cache_dir)
            except KashError as e:
                logger.error("Failed to clear cache directory", error=str(e))
                raise
            finally:
                self._index.flush()
            logger.info("Evicted all items", count=count)

    def resize_memory_cache(self, capacity: int) -> None:
        """Change the memory tier capacity.

        Raises:
            ConfigurationError: If the memory tier is disabled.
            InvalidArgumentError: If capacity is not positive.
        """
        if self._memory is None:
            raise ConfigurationError("Memory cache is not enabled", {"cache": self.name})
        self._memory.resize(capacity)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def size(self) -> int:
        """Number of tracked items. Expiry is not re-checked."""
        with self._lock:
            return len(self._index)

    def keys(self) -> list[str]:
        """Tracked keys in insertion order."""
        with self._lock:
            return self._index.keys()

    def items(self) -> list[CacheItem]:
        """Copies of the tracked item records, in insertion order."""
        with self._lock:
            return [dataclasses.replace(item) for item in self._index.items()]

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def __repr__(self) -> str:
        return f"DiskCache(cache_dir={str(self.cache_dir)!r}, items={self.size()})"
