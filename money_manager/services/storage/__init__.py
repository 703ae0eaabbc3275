"""
Storage Services Package

Provides the abstract key-value interface, two implementations of it and
the typed repository on top. The JSON file store is the default backend,
but the repository works with any implementation.
"""

from money_manager.services.storage.interface import (
    KeyValueStoreInterface,
    SerializationError,
    StorageError,
)
from money_manager.services.storage.memory import InMemoryKeyValueStore
from money_manager.services.storage.json_file import JsonFileKeyValueStore
from money_manager.services.storage.repository import (
    AUDIT_LOG_KEY,
    DARK_MODE_KEY,
    EXPENSES_KEY,
    INCOME_KEY,
    RECURRING_EXPENSES_KEY,
    SAVINGS_GOALS_KEY,
    SPENDING_LIMIT_KEY,
    SUMMARY_HISTORY_KEY,
    FinanceRepository,
)

__all__ = [
    # Interfaces
    "KeyValueStoreInterface",
    # Exceptions
    "SerializationError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Repository
    "FinanceRepository",
    "AUDIT_LOG_KEY",
    "DARK_MODE_KEY",
    "EXPENSES_KEY",
    "INCOME_KEY",
    "RECURRING_EXPENSES_KEY",
    "SAVINGS_GOALS_KEY",
    "SPENDING_LIMIT_KEY",
    "SUMMARY_HISTORY_KEY",
]
