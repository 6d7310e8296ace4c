"""
Tests for the bounded LRU cache.
"""

from __future__ import annotations

import threading

import pytest

from kash.exceptions import ConfigurationError, InvalidArgumentError, InvariantViolationError
from kash.lru import LruCache


class TestLruEviction:
    """Test capacity-bounded eviction order."""

    def test_inserting_past_capacity_evicts_first_inserted(self) -> None:
        """Inserting C+1 distinct keys evicts exactly the first one."""
        cache: LruCache[str, int] = LruCache(3)
        for i, key in enumerate(["a", "b", "c", "d"]):
            cache.put(key, i)

        assert cache.get("a") is None
        assert cache.get("b") == 1
        assert cache.get("c") == 2
        assert cache.get("d") == 3
        assert cache.size() == 3

    def test_read_postpones_eviction(self) -> None:
        """A read makes the key most recently used."""
        cache: LruCache[str, int] = LruCache(3)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)

        assert cache.get("a") == 1
        cache.put("d", 4)

        assert "a" in cache
        assert "b" not in cache
        assert cache.keys() == ["c", "a", "d"]

    def test_replace_does_not_add_weight(self) -> None:
        """Replacing an existing key keeps the size and promotes the key."""
        cache: LruCache[str, int] = LruCache(2)
        cache.put("a", 1)
        cache.put("b", 2)

        previous = cache.put("a", 10)

        assert previous == 1
        assert cache.size() == 2
        assert cache.keys() == ["b", "a"]

        cache.put("c", 3)
        assert "b" not in cache
        assert cache.get("a") == 10

    def test_put_returns_none_for_new_key(self) -> None:
        cache: LruCache[str, int] = LruCache(2)
        assert cache.put("a", 1) is None

    def test_contains_does_not_promote(self) -> None:
        """Membership checks leave recency untouched."""
        cache: LruCache[str, int] = LruCache(2)
        cache.put("a", 1)
        cache.put("b", 2)

        assert "a" in cache
        cache.put("c", 3)

        assert "a" not in cache


class TestLruOperations:
    """Test get/remove/resize/evict_all."""

    def test_get_absent_returns_none(self) -> None:
        cache: LruCache[str, int] = LruCache(2)
        assert cache.get("missing") is None

    def test_remove(self) -> None:
        """Remove returns the previous value and frees its weight."""
        cache: LruCache[str, int] = LruCache(2)
        cache.put("a", 1)

        assert cache.remove("a") == 1
        assert cache.remove("a") is None
        assert cache.size() == 0
        assert len(cache) == 0

    def test_resize_shrinks_least_recent_first(self) -> None:
        cache: LruCache[str, int] = LruCache(4)
        for i, key in enumerate(["a", "b", "c", "d"]):
            cache.put(key, i)
        cache.get("a")

        cache.resize(2)

        assert cache.capacity() == 2
        assert cache.size() == 2
        assert cache.keys() == ["d", "a"]

    def test_resize_grow_keeps_entries(self) -> None:
        cache: LruCache[str, int] = LruCache(1)
        cache.put("a", 1)
        cache.resize(3)
        cache.put("b", 2)
        cache.put("c", 3)

        assert cache.keys() == ["a", "b", "c"]

    def test_evict_all(self) -> None:
        cache: LruCache[str, int] = LruCache(3)
        cache.put("a", 1)
        cache.put("b", 2)

        cache.evict_all()

        assert cache.size() == 0
        assert cache.keys() == []
        assert cache.capacity() == 3
        cache.put("c", 3)
        assert cache.get("c") == 3


class TestLruErrors:
    """Test argument validation and invariant checks."""

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_non_positive_capacity_rejected(self, capacity: int) -> None:
        with pytest.raises(ConfigurationError):
            LruCache(capacity)

    @pytest.mark.parametrize("capacity", [0, -5])
    def test_non_positive_resize_rejected(self, capacity: int) -> None:
        cache: LruCache[str, int] = LruCache(2)
        with pytest.raises(InvalidArgumentError):
            cache.resize(capacity)
        assert cache.capacity() == 2

    def test_none_key_or_value_rejected(self) -> None:
        cache: LruCache[str, int] = LruCache(2)
        with pytest.raises(InvalidArgumentError):
            cache.get(None)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgumentError):
            cache.put(None, 1)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgumentError):
            cache.put("a", None)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgumentError):
            cache.remove(None)  # type: ignore[arg-type]

    def test_negative_size_is_invariant_violation(self) -> None:
        """Corrupted bookkeeping aborts the operation."""
        cache: LruCache[str, int] = LruCache(2)
        cache._size = -2

        with pytest.raises(InvariantViolationError):
            cache.put("a", 1)

    def test_empty_with_nonzero_size_is_invariant_violation(self) -> None:
        cache: LruCache[str, int] = LruCache(2)
        cache._size = 1

        with pytest.raises(InvariantViolationError):
            cache.evict_all()


class TestLruConcurrency:
    """Test thread safety."""

    def test_concurrent_puts_stay_within_capacity(self) -> None:
        cache: LruCache[str, int] = LruCache(10)

        def worker(offset: int) -> None:
            for i in range(200):
                cache.put(f"{offset}-{i}", i)
                cache.get(f"{offset}-{i // 2}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.size() == 10
        assert len(cache.keys()) == 10
