# src/jetworker/serializers.py
"""
Payload serializers.

Message bodies are decoded before they reach a job. JSON is the default;
pickle uses cloudpickle so producers can ship arbitrary Python objects.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import cloudpickle

from .exceptions import ConfigurationError, SerializationError


class Serializer(ABC):
    """Abstract base class for payload serializers."""

    @abstractmethod
    def serialize(self, data: Any) -> bytes:
        """Serialize data to bytes."""

    @abstractmethod
    def deserialize(self, data: bytes) -> Any:
        """Deserialize bytes to data."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Serializer name."""


class JsonSerializer(Serializer):
    """JSON-based serializer. Empty bodies decode to ``None``."""

    def serialize(self, data: Any) -> bytes:
        try:
            return json.dumps(data, default=str).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"JSON serialization failed: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        if not data:
            return None
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(f"JSON deserialization failed: {e}") from e

    @property
    def name(self) -> str:
        return "json"


class PickleSerializer(Serializer):
    """cloudpickle-based serializer."""

    def serialize(self, data: Any) -> bytes:
        try:
            return cloudpickle.dumps(data)
        except Exception as e:
            raise SerializationError(f"Pickle serialization failed: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        if not data:
            return None
        try:
            return cloudpickle.loads(data)
        except Exception as e:
            raise SerializationError(f"Pickle deserialization failed: {e}") from e

    @property
    def name(self) -> str:
        return "pickle"


_SERIALIZERS = {
    "json": JsonSerializer,
    "pickle": PickleSerializer,
}


def get_serializer(name: Optional[str] = None) -> Serializer:
    """
    Return a serializer instance by name.

    Args:
        name: 'json' or 'pickle'. Defaults to the configured payload serializer.

    Raises:
        ConfigurationError: If the name is unknown.
    """
    if name is None:
        from .settings import PAYLOAD_SERIALIZER

        name = PAYLOAD_SERIALIZER
    try:
        return _SERIALIZERS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown payload serializer '{name}'. Choose one of: {', '.join(_SERIALIZERS)}"
        ) from None
