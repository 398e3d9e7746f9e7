"""
In-Memory Store

Volatile dict-backed store. Used by tests and by the `memory` backend
setting; it can be told to fail on chosen keys to simulate an unreliable
device store.
"""

from typing import Iterable, Optional

from wallet_ledger.services.storage.interface import ConnectionError, StoreAdapter


class InMemoryStore(StoreAdapter):
    """
    Dict-backed StoreAdapter.

    `fail_on_get` / `fail_on_set` hold keys whose reads / writes raise
    ConnectionError. Both sets may be changed at any time.
    """

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        fail_on_get: Iterable[str] = (),
        fail_on_set: Iterable[str] = (),
    ):
        self._data: dict[str, str] = dict(initial or {})
        self.fail_on_get: set[str] = set(fail_on_get)
        self.fail_on_set: set[str] = set(fail_on_set)
        self.write_log: list[str] = []

    async def get(self, key: str) -> Optional[str]:
        if key in self.fail_on_get:
            raise ConnectionError(f"Simulated read failure for '{key}'")
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if key in self.fail_on_set:
            raise ConnectionError(f"Simulated write failure for '{key}'")
        self._data[key] = value
        self.write_log.append(key)

    async def remove(self, key: str) -> None:
        if key in self.fail_on_set:
            raise ConnectionError(f"Simulated write failure for '{key}'")
        self._data.pop(key, None)
        self.write_log.append(key)

    def dump(self) -> dict[str, str]:
        """Copy of the raw stored values (for inspection in tests)."""
        return dict(self._data)
