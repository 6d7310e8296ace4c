"""
Core types for the kash disk cache.

This module defines the data structures persisted in the metadata document:
- CacheItem: one cached key's record (filename, timestamps)
- Metadata: the cache name plus its ordered items
- CacheOption: per-put options (expiration)
- Helper functions for filename allocation and timestamps
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from uuid6 import uuid7


def generate_filename() -> str:
    """Allocate a payload filename using UUID7.

    The name is time-ordered and collision-resistant, and carries nothing
    from the key it will store.
    """
    return uuid7().hex


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def now_millis() -> int:
    """Get the current time as epoch milliseconds."""
    return int(utc_now().timestamp() * 1000)


@dataclass(eq=False)
class CacheItem:
    """Metadata record for a single cached key.

    Compared by identity: the index and the metadata item list must hold
    the very same objects.
    """

    key: str
    filename: str
    created_time: int  # epoch millis
    expired_time: int | None = None  # epoch millis, None = never expires

    @classmethod
    def create(cls, key: str, expired_time: int | None = None) -> CacheItem:
        """Factory method to create an item with a fresh filename and timestamp."""
        return cls(
            key=key,
            filename=generate_filename(),
            created_time=now_millis(),
            expired_time=expired_time,
        )

    def is_expired(self, now: int | None = None) -> bool:
        """Check whether the item has expired at ``now`` (epoch millis)."""
        if self.expired_time is None:
            return False
        if now is None:
            now = now_millis()
        return now >= self.expired_time

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "filename": self.filename,
            "createdTime": self.created_time,
            "expiredTime": self.expired_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheItem:
        return cls(
            key=data["key"],
            filename=data["filename"],
            created_time=int(data["createdTime"]),
            expired_time=(
                int(data["expiredTime"]) if data.get("expiredTime") is not None else None
            ),
        )


@dataclass
class Metadata:
    """Durable record of a cache: its name and every tracked item, in insertion order."""

    name: str
    items: list[CacheItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Metadata:
        return cls(
            name=data.get("name", ""),
            items=[CacheItem.from_dict(item) for item in data.get("items") or []],
        )


@dataclass(frozen=True)
class CacheOption:
    """Options applied when putting an item.

    Attributes:
        expired_time: Absolute expiration as epoch millis, or None to keep forever.
    """

    expired_time: int | None = None

    @classmethod
    def empty(cls) -> CacheOption:
        """Options with no expiration."""
        return cls()

    @classmethod
    def expire_at(cls, expired_time: int | datetime) -> CacheOption:
        """Expire at an absolute instant (epoch millis or aware datetime)."""
        if isinstance(expired_time, datetime):
            expired_time = int(expired_time.timestamp() * 1000)
        return cls(expired_time=int(expired_time))

    @classmethod
    def expire_after(cls, seconds: float) -> CacheOption:
        """Expire ``seconds`` from now."""
        return cls(expired_time=now_millis() + int(seconds * 1000))
