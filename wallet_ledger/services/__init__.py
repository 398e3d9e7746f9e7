"""Services package."""

from wallet_ledger.services.storage import (
    GOALS_KEY,
    SELECTED_WALLET_KEY,
    TRANSACTIONS_KEY,
    USER_KEY,
    WALLETS_KEY,
    ConnectionError,
    CorruptValueError,
    InMemoryStore,
    JsonFileStore,
    StorageError,
    StoreAdapter,
)

__all__ = [
    # Storage services
    "GOALS_KEY",
    "SELECTED_WALLET_KEY",
    "TRANSACTIONS_KEY",
    "USER_KEY",
    "WALLETS_KEY",
    "ConnectionError",
    "CorruptValueError",
    "InMemoryStore",
    "JsonFileStore",
    "StorageError",
    "StoreAdapter",
]
