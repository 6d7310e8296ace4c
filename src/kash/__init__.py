"""
kash: a persistent, keyed blob cache.

Values live as files under a cache directory, indexed by a JSON metadata
document, with an optional in-memory LRU tier for small values.
"""

from kash.disk_cache import DiskCache
from kash.exceptions import (
    CacheIOError,
    ConfigurationError,
    DecodeError,
    InvalidArgumentError,
    InvariantViolationError,
    KashError,
)
from kash.lru import LruCache
from kash.serializer import JsonSerializer, Serializer
from kash.types import CacheItem, CacheOption, Metadata

__version__ = "0.1.0"

__all__ = [
    "CacheIOError",
    "CacheItem",
    "CacheOption",
    "ConfigurationError",
    "DecodeError",
    "DiskCache",
    "InvalidArgumentError",
    "InvariantViolationError",
    "JsonSerializer",
    "KashError",
    "LruCache",
    "Metadata",
    "Serializer",
    "__version__",
]
