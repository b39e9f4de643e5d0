"""
Unit tests for body serializers.
"""

import pytest

from httproute.errors import SerializationError
from httproute.serialization import JsonSerializer, SerializerRegistry, TextSerializer


class UpperSerializer:
    def serialize(self, value):
        return str(value).upper()

    def deserialize(self, data):
        return data.decode("ascii").lower()


class TestJsonSerializer:
    """Tests for JsonSerializer class."""

    def test_serialize(self):
        """Compact by default, non-ASCII kept."""
        assert JsonSerializer().serialize({"name": "zoë"}) == '{"name": "zoë"}'

    def test_pretty(self):
        """pretty=True indents."""
        assert JsonSerializer(pretty=True).serialize({"a": 1}) == '{\n  "a": 1\n}'

    def test_unserializable(self):
        """Objects json cannot encode raise SerializationError."""
        with pytest.raises(SerializationError):
            JsonSerializer().serialize(object())

    def test_deserialize(self):
        """UTF-8 JSON bytes are decoded."""
        assert JsonSerializer().deserialize(b'[1, "two"]') == [1, "two"]

    def test_invalid_json(self):
        with pytest.raises(SerializationError):
            JsonSerializer().deserialize(b"{")


class TestTextSerializer:
    """Tests for TextSerializer class."""

    def test_round_trip_values(self):
        """str() out, UTF-8 in."""
        serializer = TextSerializer()
        assert serializer.serialize(42) == "42"
        assert serializer.deserialize("héllo".encode("utf-8")) == "héllo"

    def test_invalid_utf8(self):
        with pytest.raises(SerializationError):
            TextSerializer().deserialize(b"\xff\xfe")


class TestSerializerRegistry:
    """Tests for SerializerRegistry class."""

    def test_defaults(self):
        """JSON and plain text are registered out of the box."""
        registry = SerializerRegistry()
        assert "application/json" in registry
        assert "text/plain" in registry
        assert "application/x-yaml" not in registry

    def test_no_defaults(self):
        """defaults=False starts empty."""
        assert "application/json" not in SerializerRegistry(defaults=False)

    def test_lookup_by_base_type(self):
        """Parameters and +suffix are ignored for lookup."""
        registry = SerializerRegistry()
        json_serializer = registry.get("application/json")
        assert registry.find("application/json; charset=utf-8") is json_serializer
        assert registry.find("application/vnd.api+json") is json_serializer

    def test_get_missing(self):
        """get() raises for unknown types; find() returns None."""
        registry = SerializerRegistry()
        assert registry.find("image/png") is None
        with pytest.raises(SerializationError):
            registry.get("image/png")

    def test_register_custom(self):
        """Custom serializers are used for their type."""
        registry = SerializerRegistry()
        registry.register("text/x-shout", UpperSerializer())
        assert registry.serialize("text/x-shout", "hi") == "HI"
        assert registry.deserialize("text/x-shout", b"HI") == "hi"

    def test_register_replaces(self):
        """Registering a type again replaces the serializer."""
        registry = SerializerRegistry()
        replacement = UpperSerializer()
        registry.register("text/plain", replacement)
        assert registry.get("text/plain") is replacement
