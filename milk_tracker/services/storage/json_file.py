"""
JSON File Storage Implementation

DESIGN DECISION: Each record is one JSON file in the data directory:

    <data_dir>/settings.json
    <data_dir>/calendarData.json

TRADEOFFS:
- Whole-record rewrites on every mutation (records are small: one entry
  per day the user has looked at)
- No cross-record transactions (the two records are independent)

Writes go to a temporary file first and are moved into place with
os.replace, so a crash mid-write leaves the previous version intact.
Transient OSErrors are retried with tenacity before giving up.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from milk_tracker.services.storage.interface import (
    InvalidKeyNameError,
    KeyValueStorageInterface,
    StorageReadError,
    StorageWriteError,
)


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")
_SUFFIX = ".json"


class JsonFileKeyValueStorage(KeyValueStorageInterface):
    """
    One file per key under a data directory.

    The directory is created on the first write.
    """

    def __init__(
        self,
        data_dir: Path,
        retry_attempts: int = 3,
        retry_wait_max: float = 2.0,
    ):
        self._data_dir = Path(data_dir)
        self._retry_attempts = retry_attempts
        self._retry_wait_max = retry_wait_max

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """File backing a key."""
        if not _KEY_PATTERN.match(key):
            raise InvalidKeyNameError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{_SUFFIX}"

    def _read_file(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Failed to read {path}: {e}") from e

    def _write_once(self, path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _write_file(self, key: str, value: str) -> None:
        path = self.path_for(key)
        retrying = Retrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.1, max=self._retry_wait_max),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            retrying(self._write_once, path, value)
        except (OSError, RetryError) as e:
            raise StorageWriteError(f"Failed to write {path}: {e}") from e

    def _remove_file(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Failed to remove {path}: {e}") from e
        return True

    def _list_keys(self) -> list[str]:
        if not self._data_dir.is_dir():
            return []
        return sorted(
            path.name[:-len(_SUFFIX)]
            for path in self._data_dir.iterdir()
            if path.is_file()
            and path.name.endswith(_SUFFIX)
            and not path.name.startswith(".")
        )

    async def get_item(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read_file, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write_file, key, value)

    async def remove_item(self, key: str) -> bool:
        return await asyncio.to_thread(self._remove_file, key)

    async def keys(self) -> list[str]:
        return await asyncio.to_thread(self._list_keys)
