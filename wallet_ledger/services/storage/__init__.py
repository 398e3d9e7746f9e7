"""
Storage Services Package

Provides the key-value store contract and its implementations.
The JSON file store is the default backend; the in-memory store backs
tests and throwaway sessions.
"""

from wallet_ledger.services.storage.interface import (
    GOALS_KEY,
    SELECTED_WALLET_KEY,
    TRANSACTIONS_KEY,
    USER_KEY,
    WALLETS_KEY,
    ConnectionError,
    CorruptValueError,
    StorageError,
    StoreAdapter,
)
from wallet_ledger.services.storage.collections import (
    read_collection,
    read_value,
    write_collection,
    write_value,
)
from wallet_ledger.services.storage.memory import InMemoryStore
from wallet_ledger.services.storage.file import JsonFileStore

__all__ = [
    # Interface
    "StoreAdapter",
    # Keys
    "GOALS_KEY",
    "SELECTED_WALLET_KEY",
    "TRANSACTIONS_KEY",
    "USER_KEY",
    "WALLETS_KEY",
    # JSON collections
    "read_collection",
    "read_value",
    "write_collection",
    "write_value",
    # Exceptions
    "ConnectionError",
    "CorruptValueError",
    "StorageError",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
]
