"""Services package."""

from milk_tracker.services.storage import (
    InMemoryKeyValueStorage,
    InvalidKeyNameError,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "InMemoryKeyValueStorage",
    "InvalidKeyNameError",
    "JsonFileKeyValueStorage",
    "KeyValueStorageInterface",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
