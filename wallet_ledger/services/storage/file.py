"""
JSON File Store

One file per key inside a data directory. Values are written verbatim
(collections are JSON text, `selectedWalletId` is a bare id).

Each write goes to a temporary file in the same directory and is moved
into place with os.replace, so a single key is either fully old or fully
new on disk. Nothing makes two keys change together; the ledger
repository's load-time reconciliation covers that gap.
"""

import re
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os
import aiofiles.tempfile

from wallet_ledger.services.storage.interface import (
    ConnectionError,
    CorruptValueError,
    StoreAdapter,
)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore(StoreAdapter):
    """
    Persistent StoreAdapter backed by a directory of files.

    Parameters
    ----------
    data_dir:
        Directory holding the files. Created on first write.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key) or key.startswith("."):
            raise ValueError(f"Unsupported store key: {key!r}")
        return self._data_dir / f"{key}.json"

    async def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not await aiofiles.os.path.exists(path):
            return None
        try:
            async with aiofiles.open(path, mode="r", encoding="utf-8") as file_handle:
                return await file_handle.read()
        except UnicodeDecodeError as e:
            raise CorruptValueError(f"Value for '{key}' is not valid UTF-8: {e}") from e
        except OSError as e:
            raise ConnectionError(f"Cannot read '{key}': {e}") from e

    async def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_path: Optional[str] = None
        try:
            await aiofiles.os.makedirs(self._data_dir, exist_ok=True)
            async with aiofiles.tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=f".{key}_",
                suffix=".tmp",
                dir=self._data_dir,
                delete=False,
            ) as file_handle:
                tmp_path = file_handle.name
                await file_handle.write(value)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            raise ConnectionError(f"Cannot write '{key}': {e}") from e
        finally:
            if tmp_path is not None and await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)

    async def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise ConnectionError(f"Cannot remove '{key}': {e}") from e
