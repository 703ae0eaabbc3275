"""Services package."""

from money_manager.services.storage import (
    FinanceRepository,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    SerializationError,
    StorageError,
)
from money_manager.services.ai import (
    AIErrorKind,
    AIServiceError,
    FallbackTextGenerator,
    GeminiTextGenerator,
    GroqTextGenerator,
    TextGenerator,
)

__all__ = [
    # Storage services
    "FinanceRepository",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStoreInterface",
    "SerializationError",
    "StorageError",
    # AI services
    "AIErrorKind",
    "AIServiceError",
    "FallbackTextGenerator",
    "GeminiTextGenerator",
    "GroqTextGenerator",
    "TextGenerator",
]
