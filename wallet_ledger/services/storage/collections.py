"""
JSON Collection Helpers

Read and write whole JSON arrays under a store key, translating backend
failures into StoreUnavailableError for the repositories.
"""

import json
from typing import Optional

from wallet_ledger.errors import StoreUnavailableError
from wallet_ledger.services.storage.interface import StorageError, StoreAdapter


async def read_value(store: StoreAdapter, key: str) -> Optional[str]:
    try:
        return await store.get(key)
    except StorageError as e:
        raise StoreUnavailableError(f"Cannot read '{key}': {e}", key=key) from e


async def write_value(store: StoreAdapter, key: str, value: str) -> None:
    try:
        await store.set(key, value)
    except StorageError as e:
        raise StoreUnavailableError(f"Cannot write '{key}': {e}", key=key) from e


async def read_collection(store: StoreAdapter, key: str) -> list:
    """
    Read the JSON array stored under a key.

    Returns:
        The decoded list ([] when the key is unset, blank or JSON null)

    Raises:
        StoreUnavailableError: If the store raised, or the value is not
            valid JSON, or it is JSON but not an array
    """
    raw = await read_value(store, key)
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StoreUnavailableError(f"Malformed JSON under '{key}': {e}", key=key) from e
    if data is None:
        return []
    if not isinstance(data, list):
        raise StoreUnavailableError(
            f"Expected a JSON array under '{key}', got {type(data).__name__}",
            key=key,
        )
    return data


async def write_collection(store: StoreAdapter, key: str, records: list[dict]) -> None:
    """Overwrite the whole array stored under a key."""
    await write_value(store, key, json.dumps(records, ensure_ascii=False))
