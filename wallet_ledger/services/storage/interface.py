"""
Abstract Storage Interface

DESIGN DECISION: The ledger only ever talks to a tiny key-value contract.
This allows us to:
1. Swap the on-device store for anything that can hold strings
2. Use in-memory storage (with fault injection) for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - values are opaque strings (JSON
text for collections) and every write replaces the whole value.
"""

from abc import ABC, abstractmethod
from typing import Optional


# Keys used by the ledger core
WALLETS_KEY = "wallets"
TRANSACTIONS_KEY = "transactions"
GOALS_KEY = "savings_goals"
SELECTED_WALLET_KEY = "selectedWalletId"
USER_KEY = "user"


class StoreAdapter(ABC):
    """
    Abstract interface for the asynchronous key-value store.

    Any backend (files, on-device storage, a database table) must
    implement these methods. Operations are not transactional across keys.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Store key

        Returns:
            The stored string, or None if the key has never been set

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        Args:
            key: Store key
            value: New value (whole-value overwrite)

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """
        Delete a key. Removing an absent key is not an error.

        Raises:
            StorageError: If the backend cannot be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass


class CorruptValueError(StorageError):
    """A stored value could not be decoded."""
    pass
