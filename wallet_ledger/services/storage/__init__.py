"""
Storage Services Package

Provides the abstract collection interface and two implementations:
a JSON directory (the localStorage analogue) and an in-memory dict.
"""

from wallet_ledger.services.storage.interface import (
    ACCOUNTS,
    AUDIT_LOG,
    COLLECTIONS,
    FILTER_PRESETS,
    GOALS,
    TRANSACTIONS,
    USER,
    CollectionStorageInterface,
    StorageConnectionError,
    StorageError,
)
from wallet_ledger.services.storage.json_file import JsonFileStorage
from wallet_ledger.services.storage.memory import InMemoryStorage

__all__ = [
    # Collection names
    "ACCOUNTS",
    "AUDIT_LOG",
    "COLLECTIONS",
    "FILTER_PRESETS",
    "GOALS",
    "TRANSACTIONS",
    "USER",
    # Interface
    "CollectionStorageInterface",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
