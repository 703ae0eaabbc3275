"""
Abstract Storage Interface

DESIGN DECISION: The tracker persists a flat namespace of named values,
each serialised as JSON text on its own. We define an abstract interface
for that namespace so that:
1. A JSON file on disk is the default backend
2. Tests use an in-memory store with the same serialisation
3. The repository and tracker never know where the bytes go

The interface is intentionally tiny - a key-value store, nothing more.
Typed access lives in ``FinanceRepository``.
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for the named-value store.

    Values must be JSON-serialisable (dicts, lists, strings, numbers,
    booleans, None).
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Read and deserialise a value.

        Args:
            key: Name of the value
            default: Returned when the key is absent

        Returns:
            The stored value, or ``default``

        Raises:
            SerializationError: If the stored text is not valid JSON
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Serialise and store a value, replacing any previous one.

        Raises:
            SerializationError: If the value cannot be serialised
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a value.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every value."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """Names of all stored values."""
        pass

    def __contains__(self, key: str) -> bool:
        return key in self.keys()


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class SerializationError(StorageError):
    """A value could not be converted to or from JSON text."""
    pass
