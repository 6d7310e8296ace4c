"""
Bounded, recency-ordered in-memory cache.

LruCache keeps at most ``capacity`` entries, one unit of weight per entry.
Entries live in a doubly-linked list ordered from least- to most-recently
used, with a dict from key to list node for O(1) lookup. Every operation
runs under a single lock covering the list, the dict and the size counter.
"""

from __future__ import annotations

import threading
from typing import Generic, Hashable, TypeVar

from kash.exceptions import ConfigurationError, InvalidArgumentError, InvariantViolationError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class _Node(Generic[K, V]):
    __slots__ = ("key", "value", "prev", "next")

    def __init__(self, key: K, value: V) -> None:
        self.key = key
        self.value = value
        self.prev: _Node[K, V] | None = None
        self.next: _Node[K, V] | None = None


class LruCache(Generic[K, V]):
    """Thread-safe LRU cache with count-based capacity.

    Example:
        cache = LruCache[str, bytes](2)
        cache.put("a", b"1")
        cache.put("b", b"2")
        cache.get("a")        # "a" is now most recently used
        cache.put("c", b"3")  # evicts "b"
    """

    def __init__(self, capacity: int) -> None:
        """Initialize the cache.

        Args:
            capacity: Maximum number of entries, must be positive.

        Raises:
            ConfigurationError: If capacity is not positive.
        """
        if capacity <= 0:
            raise ConfigurationError("LruCache capacity must be positive", {"capacity": capacity})
        self._capacity = capacity
        self._size = 0
        self._map: dict[K, _Node[K, V]] = {}
        # Sentinels: _head.next is least recently used, _tail.prev most recently used
        self._head: _Node = _Node(None, None)
        self._tail: _Node = _Node(None, None)
        self._head.next = self._tail
        self._tail.prev = self._head
        self._lock = threading.Lock()

    def _unlink(self, node: _Node[K, V]) -> None:
        node.prev.next = node.next
        node.next.prev = node.prev
        node.prev = node.next = None

    def _append(self, node: _Node[K, V]) -> None:
        last = self._tail.prev
        last.next = node
        node.prev = last
        node.next = self._tail
        self._tail.prev = node

    def get(self, key: K) -> V | None:
        """Return the value for ``key`` and mark it most recently used.

        Returns None if the key is not cached.
        """
        if key is None:
            raise InvalidArgumentError("key must not be None")

        with self._lock:
            node = self._map.get(key)
            if node is None:
                return None
            self._unlink(node)
            self._append(node)
            return node.value

    def put(self, key: K, value: V) -> V | None:
        """Insert or replace a value, then trim to capacity.

        Returns:
            The value that was replaced, or None.
        """
        if key is None or value is None:
            raise InvalidArgumentError("key and value must not be None")

        with self._lock:
            previous: V | None = None
            node = self._map.get(key)
            if node is not None:
                previous = node.value
                node.value = value
                self._unlink(node)
            else:
                node = _Node(key, value)
                self._map[key] = node
                self._size += 1
            self._append(node)
            self._trim_to_size(self._capacity)

        return previous

    def remove(self, key: K) -> V | None:
        """Remove ``key``, returning its value or None."""
        if key is None:
            raise InvalidArgumentError("key must not be None")

        with self._lock:
            node = self._map.pop(key, None)
            if node is None:
                return None
            self._unlink(node)
            self._size -= 1
            return node.value

    def resize(self, capacity: int) -> None:
        """Change the capacity and evict down to it immediately.

        Raises:
            InvalidArgumentError: If capacity is not positive.
        """
        if capacity <= 0:
            raise InvalidArgumentError("capacity must be positive", {"capacity": capacity})

        with self._lock:
            self._capacity = capacity
            self._trim_to_size(capacity)

    def evict_all(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._trim_to_size(0)

    def size(self) -> int:
        with self._lock:
            return self._size

    def capacity(self) -> int:
        with self._lock:
            return self._capacity

    def keys(self) -> list[K]:
        """Snapshot of keys from least to most recently used. Does not promote."""
        with self._lock:
            result: list[K] = []
            node = self._head.next
            while node is not self._tail:
                result.append(node.key)
                node = node.next
            return result

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._map

    def _trim_to_size(self, max_size: int) -> None:
        """Evict least recently used entries until size <= max_size. Caller holds the lock."""
        while True:
            if self._size < 0 or (not self._map and self._size != 0):
                raise InvariantViolationError(
                    "LruCache size bookkeeping is inconsistent",
                    {"size": self._size, "entries": len(self._map)},
                )

            if self._size <= max_size:
                break

            eldest = self._head.next
            if eldest is self._tail:
                break

            self._unlink(eldest)
            del self._map[eldest.key]
            self._size -= 1
