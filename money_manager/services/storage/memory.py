"""
In-memory key-value store.

Values are kept as JSON text, exactly as the file store keeps them, so a
value that would fail to round-trip on disk fails here too.
"""

import json
from typing import Any, Optional

from money_manager.services.storage.interface import (
    KeyValueStoreInterface,
    SerializationError,
)


def dumps(key: str, value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialise value for '{key}': {e}")


def loads(key: str, text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Stored value for '{key}' is not valid JSON: {e}")


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Process-local store, used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return loads(key, self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = dumps(key, value)

    def set_raw(self, key: str, text: str) -> None:
        """Store text as-is, bypassing serialisation."""
        self._data[key] = text

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return list(self._data)
