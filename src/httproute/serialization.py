"""
=============================================================================
BODY SERIALIZERS
=============================================================================

Routes that declare produced or consumed media types get their bodies
converted through a SerializerRegistry keyed by BASE media type:

    negotiated type                 base type           serializer
    ───────────────                 ─────────           ──────────
    application/json            →   application/json  → JsonSerializer
    application/vnd.api+json    →   application/json  → JsonSerializer
    text/plain; charset=utf-8   →   text/plain        → TextSerializer

A serializer is any object with:

    serialize(value) -> str
    deserialize(data: bytes) -> value

JSON and plain text are registered by default; applications add others
with registry.register("application/x-yaml", MyYamlSerializer()).

=============================================================================
"""

from typing import Any, Dict, Optional
import json
import logging

from .errors import SerializationError
from .http.negotiation import extract_base_mime


logger = logging.getLogger(__name__)


class JsonSerializer:
    """JSON via the standard library."""

    def __init__(self, pretty: bool = False):
        self.indent = 2 if pretty else None

    def serialize(self, value: Any) -> str:
        try:
            return json.dumps(value, indent=self.indent, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode {type(value).__name__} as JSON: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializationError(f"Invalid JSON body: {e}") from e


class TextSerializer:
    """str() out, UTF-8 text in."""

    def serialize(self, value: Any) -> str:
        return str(value)

    def deserialize(self, data: bytes) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SerializationError(f"Body is not valid UTF-8: {e}") from e


class SerializerRegistry:
    """Serializers by base media type."""

    def __init__(self, defaults: bool = True):
        self._serializers: Dict[str, Any] = {}
        if defaults:
            self.register("application/json", JsonSerializer())
            self.register("text/plain", TextSerializer())

    def register(self, mime: str, serializer: Any) -> None:
        """Register (or replace) the serializer for a base media type."""
        base = extract_base_mime(mime)
        if base in self._serializers:
            logger.debug(f"Replacing serializer for {base}")
        self._serializers[base] = serializer

    def find(self, mime: str) -> Optional[Any]:
        """Serializer for a media type, or None."""
        return self._serializers.get(extract_base_mime(mime))

    def get(self, mime: str) -> Any:
        """
        Serializer for a media type.

        Raises:
            SerializationError: If none is registered for its base type.
        """
        serializer = self.find(mime)
        if serializer is None:
            raise SerializationError(f"No serializer registered for {mime}")
        return serializer

    def serialize(self, mime: str, value: Any) -> str:
        return self.get(mime).serialize(value)

    def deserialize(self, mime: str, data: bytes) -> Any:
        return self.get(mime).deserialize(data)

    def __contains__(self, mime: str) -> bool:
        return self.find(mime) is not None
