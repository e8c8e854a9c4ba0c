"""
Tests for the key-value storage backends.

No event loop plugin: async calls are driven with asyncio.run.
"""

import asyncio

import pytest

from milk_tracker.services.storage import (
    InMemoryKeyValueStorage,
    InvalidKeyNameError,
    JsonFileKeyValueStorage,
    StorageReadError,
    StorageWriteError,
)


class TestInMemoryStorage:
    """Tests for InMemoryKeyValueStorage."""

    def test_set_get_remove(self):
        """Test the basic operations."""
        storage = InMemoryKeyValueStorage()

        async def scenario():
            assert await storage.get_item("settings") is None
            await storage.set_item("settings", "{}")
            assert await storage.get_item("settings") == "{}"
            assert await storage.keys() == ["settings"]
            assert await storage.remove_item("settings") is True
            assert await storage.remove_item("settings") is False

        asyncio.run(scenario())
        assert storage.write_count == 1


class TestJsonFileStorage:
    """Tests for JsonFileKeyValueStorage."""

    def test_write_then_read(self, tmp_path):
        """Test a value survives a new storage instance."""
        asyncio.run(JsonFileKeyValueStorage(tmp_path).set_item("settings", '{"unit": "litre"}'))

        reopened = JsonFileKeyValueStorage(tmp_path)
        assert asyncio.run(reopened.get_item("settings")) == '{"unit": "litre"}'
        assert (tmp_path / "settings.json").exists()

    def test_missing_key_reads_none(self, tmp_path):
        """Test reading before anything was written."""
        storage = JsonFileKeyValueStorage(tmp_path / "not-created-yet")
        assert asyncio.run(storage.get_item("calendarData")) is None
        assert asyncio.run(storage.keys()) == []

    def test_creates_data_dir(self, tmp_path):
        """Test the directory is created on first write."""
        storage = JsonFileKeyValueStorage(tmp_path / "nested" / "dir")
        asyncio.run(storage.set_item("calendarData", "{}"))
        assert (tmp_path / "nested" / "dir" / "calendarData.json").read_text() == "{}"

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test atomic replacement."""
        storage = JsonFileKeyValueStorage(tmp_path)

        async def scenario():
            await storage.set_item("calendarData", "1")
            await storage.set_item("calendarData", "2")
            return await storage.get_item("calendarData")

        assert asyncio.run(scenario()) == "2"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["calendarData.json"]

    def test_unicode_round_trip(self, tmp_path):
        """Test currency glyphs are kept."""
        storage = JsonFileKeyValueStorage(tmp_path)
        asyncio.run(storage.set_item("settings", '{"currencySymbol": "₹"}'))
        assert asyncio.run(storage.get_item("settings")) == '{"currencySymbol": "₹"}'

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden"])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        """Test keys that could leave the data directory."""
        storage = JsonFileKeyValueStorage(tmp_path)
        with pytest.raises(InvalidKeyNameError):
            storage.path_for(key)

    def test_write_failure_raises_after_retries(self, tmp_path):
        """Test a persistent OSError becomes StorageWriteError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where the directory should be")
        storage = JsonFileKeyValueStorage(blocker, retry_attempts=2, retry_wait_max=0)

        with pytest.raises(StorageWriteError):
            asyncio.run(storage.set_item("settings", "{}"))

    def test_read_failure_raises(self, tmp_path):
        """Test an unreadable entry becomes StorageReadError."""
        (tmp_path / "settings.json").mkdir()
        storage = JsonFileKeyValueStorage(tmp_path)

        with pytest.raises(StorageReadError):
            asyncio.run(storage.get_item("settings"))

    def test_keys_and_remove(self, tmp_path):
        """Test listing and removal."""
        storage = JsonFileKeyValueStorage(tmp_path)

        async def scenario():
            await storage.set_item("settings", "{}")
            await storage.set_item("calendarData", "{}")
            keys = await storage.keys()
            removed = await storage.remove_item("settings")
            return keys, removed, await storage.keys()

        keys, removed, remaining = asyncio.run(scenario())
        assert keys == ["calendarData", "settings"]
        assert removed is True
        assert remaining == ["calendarData"]
