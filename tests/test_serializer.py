"""
Tests for the JSON serializer.
"""

from __future__ import annotations

from dataclasses import dataclass

import orjson
import pytest
from pydantic import BaseModel, ValidationError

from kash.serializer import JsonSerializer, Serializer


@dataclass
class Point:
    x: int
    y: int


class User(BaseModel):
    name: str
    tags: list[str] = []


class TestJsonSerializer:
    """Test encode/decode against explicit target types."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(JsonSerializer(), Serializer)

    def test_dataclass(self) -> None:
        serializer = JsonSerializer()
        data = serializer.encode(Point(x=1, y=2))

        assert orjson.loads(data) == {"x": 1, "y": 2}
        assert serializer.decode(data, Point) == Point(x=1, y=2)

    def test_pydantic_model(self) -> None:
        serializer = JsonSerializer()
        user = User(name="ada", tags=["admin"])

        assert serializer.decode(serializer.encode(user), User) == user

    def test_builtins(self) -> None:
        serializer = JsonSerializer()

        assert serializer.decode(serializer.encode([1, 2, 3]), list[int]) == [1, 2, 3]
        assert serializer.decode(serializer.encode("text"), str) == "text"

    def test_decode_coerces_into_target(self) -> None:
        """Decoding validates against the requested type, not just JSON shape."""
        assert JsonSerializer().decode(b'{"x": "3", "y": 4}', Point) == Point(x=3, y=4)

    def test_decode_invalid_json(self) -> None:
        with pytest.raises(orjson.JSONDecodeError):
            JsonSerializer().decode(b"{", dict)

    def test_decode_wrong_shape(self) -> None:
        with pytest.raises(ValidationError):
            JsonSerializer().decode(b'{"name": 5}', User)
