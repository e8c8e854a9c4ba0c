"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
JSON files are the default backend; the in-memory backend serves tests.
"""

from milk_tracker.services.storage.interface import (
    InvalidKeyNameError,
    KeyValueStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from milk_tracker.services.storage.json_file import JsonFileKeyValueStorage
from milk_tracker.services.storage.memory import InMemoryKeyValueStorage

__all__ = [
    # Interfaces
    "KeyValueStorageInterface",
    # Exceptions
    "InvalidKeyNameError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
]
