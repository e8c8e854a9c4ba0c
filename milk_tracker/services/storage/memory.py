"""
In-Memory Storage

Dict-backed implementation of the key-value interface. Used by tests and
by deployments configured with storage_backend=memory.
"""

from typing import Optional

from milk_tracker.services.storage.interface import KeyValueStorageInterface


class InMemoryKeyValueStorage(KeyValueStorageInterface):
    """Keeps every record in a dict. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})
        self.write_count = 0

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self.write_count += 1

    async def remove_item(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return sorted(self._items)
