"""
Custom exception hierarchy for the kash disk cache.

All exceptions inherit from KashError, which provides optional context
for structured error handling and logging.

A missing key is never an error: lookups return None instead.
"""

from __future__ import annotations

from typing import Any


class KashError(Exception):
    """Base exception for all kash errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(KashError):
    """Raised when a cache cannot be constructed from its configuration.

    Examples:
        - Non-positive capacity for an LruCache
        - Cache directory cannot be created
        - Invalid settings values
    """

    pass


class InvalidArgumentError(KashError):
    """Raised when an operation receives an argument it forbids.

    Examples:
        - None key or value
        - Non-positive capacity passed to LruCache.resize()
    """

    pass


class CacheIOError(KashError):
    """Raised when reading, writing or deleting a cache file fails.

    Context should include:
        - path: The file that was being accessed
        - operation: read, write or delete
    """

    pass


class DecodeError(KashError):
    """Raised when cached bytes cannot be decoded into the requested shape.

    Context should include:
        - key: The cache key (or the metadata path for a corrupt document)
        - target: The charset or type that decoding targeted
    """

    pass


class InvariantViolationError(KashError):
    """Raised when internal bookkeeping contradicts itself.

    Not recoverable: the structure that raised it must not be used further.
    """

    pass
