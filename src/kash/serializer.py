"""
Object serialization for typed cache access.

DiskCache is byte-oriented; a Serializer turns arbitrary objects into bytes
for put_object() and back for get_object(). The target type is always
supplied by the caller.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

import orjson
from pydantic import TypeAdapter

T = TypeVar("T")


@runtime_checkable
class Serializer(Protocol):
    """Encode objects to bytes and decode bytes into a requested type."""

    def encode(self, obj: Any) -> bytes:
        ...

    def decode(self, data: bytes, type_: type[T]) -> T:
        ...


class JsonSerializer:
    """JSON serializer backed by orjson and pydantic.

    Objects are dumped to JSON-compatible data with a pydantic TypeAdapter,
    so dataclasses, pydantic models and builtin containers all round-trip.
    Decoding validates the parsed JSON against ``type_``.

    Both directions raise ValueError or TypeError subclasses on bad input
    (orjson, pydantic validation and schema errors). DiskCache wraps decode
    failures into DecodeError and encode failures into InvalidArgumentError.
    """

    def encode(self, obj: Any) -> bytes:
        data = TypeAdapter(type(obj)).dump_python(obj, mode="json")
        return orjson.dumps(data)

    def decode(self, data: bytes, type_: type[T]) -> T:
        return TypeAdapter(type_).validate_python(orjson.loads(data))
