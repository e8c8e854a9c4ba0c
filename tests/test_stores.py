"""
Tests for the in-memory stores and persisted-record normalization.
"""

import json

import pytest

from milk_tracker.models.calendar import DayEntry, InvalidKeyError
from milk_tracker.models.settings import Settings
from milk_tracker.stores import CalendarStore, SettingsStore
from milk_tracker.validation import (
    calendar_to_record,
    coerce_day_input,
    normalize_calendar,
    parse_json_record,
)


class TestCalendarStore:
    """Tests for CalendarStore."""

    def test_get_unknown_month_is_empty(self):
        """Test reads of months never written."""
        store = CalendarStore()
        assert store.get("2024-03") == {}
        assert not store.is_initialized("2024-03")

    def test_set_replaces_whole_month(self):
        """Test set drops days not in the new mapping."""
        store = CalendarStore()
        store.set("2024-03", {1: DayEntry(volume=1, cost=1), 2: DayEntry(volume=1, cost=1)})
        store.set("2024-03", {3: DayEntry(volume=2, cost=2)})
        assert list(store.get("2024-03")) == ["3"]

    def test_set_day_keeps_other_days(self):
        """Test single-day edits."""
        store = CalendarStore()
        store.set("2024-03", {1: DayEntry(volume=1, cost=1), 2: DayEntry(volume=1, cost=1)})
        store.set_day("2024-03", 2, {"volume": "3", "cost": "40"})

        assert store.get_day("2024-03", 1) == DayEntry(volume=1, cost=1)
        assert store.get_day("2024-03", 2) == DayEntry(volume=3, cost=40)

    def test_keys_are_canonical(self):
        """Test short month and padded day keys are normalized."""
        store = CalendarStore()
        store.set("2024-3", {"07": DayEntry(volume=1, cost=1)})

        assert "2024-03" in store
        assert list(store.get("2024-03")) == ["7"]
        assert store.to_record() == {"2024-03": {"7": {"volume": 1.0, "cost": 1.0}}}

    def test_invalid_day_rejected(self):
        """Test that a day outside the month raises."""
        store = CalendarStore()
        with pytest.raises(InvalidKeyError):
            store.set_day("2024-02", 30, DayEntry(volume=1, cost=1))

    def test_write_through_on_every_mutation(self):
        """Test on_change fires once per mutation and not on load."""
        calls = []
        store = CalendarStore(on_change=lambda s: calls.append(s))
        store.replace_all({"2024-01": {"1": DayEntry(volume=1, cost=1)}})
        assert calls == []

        store.set("2024-03", {1: DayEntry(volume=1, cost=1)})
        store.set_day("2024-03", 2, DayEntry(volume=1, cost=1))
        assert len(calls) == 2
        assert calls[0] is store

    def test_get_returns_a_copy(self):
        """Test callers cannot mutate the store through a read."""
        store = CalendarStore()
        store.set("2024-03", {1: DayEntry(volume=1, cost=1)})
        entries = store.get("2024-03")
        entries["2"] = DayEntry(volume=5, cost=5)
        assert list(store.get("2024-03")) == ["1"]

    def test_month_keys_sorted(self):
        """Test months come back oldest first."""
        store = CalendarStore()
        for key in ("2024-10", "2023-12", "2024-2"):
            store.set(key, {1: DayEntry.zero()})
        assert [m.key for m in store.month_keys()] == ["2023-12", "2024-02", "2024-10"]


class TestSettingsStore:
    """Tests for SettingsStore."""

    def test_starts_with_defaults(self):
        """Test the initial record."""
        assert SettingsStore().current == Settings()

    def test_save_replaces_and_fires(self):
        """Test wholesale replacement with persistence."""
        calls = []
        store = SettingsStore(on_change=lambda s: calls.append(s.to_record()))
        store.save(Settings(unit="ounce", default_volume=3))

        assert store.current.unit == "ounce"
        assert calls[0]["defaultVolume"] == 3.0

    def test_load_does_not_fire(self):
        """Test loading a stored record."""
        calls = []
        store = SettingsStore(on_change=lambda s: calls.append(1))
        settings, discarded = store.load({"unit": "ounce"})

        assert settings.unit == "ounce"
        assert store.current is settings
        assert discarded == []
        assert calls == []


class TestNormalization:
    """Tests for input coercion and persisted-record repair."""

    def test_coerce_day_input_collapses_invalid(self):
        """Test "" and "abc" become 0 and are reported."""
        result = coerce_day_input("", "abc")
        assert result.entry == DayEntry.zero()
        assert result.coerced_fields == ["volume", "cost"]
        assert not result.was_clean

    def test_coerce_day_input_clean(self):
        """Test clean input."""
        result = coerce_day_input("1.5", 60)
        assert result.entry == DayEntry(volume=1.5, cost=60)
        assert result.was_clean

    def test_parse_json_record(self):
        """Test missing vs unreadable records."""
        assert parse_json_record(None) == (None, True)
        assert parse_json_record("{bad") == (None, False)
        assert parse_json_record('{"a": 1}') == ({"a": 1}, True)

    def test_absent_record(self):
        """Test nothing stored."""
        result = normalize_calendar(None)
        assert result.data == {}
        assert not result.has_repairs

    def test_wrong_shape_record(self):
        """Test a record that is not an object."""
        result = normalize_calendar(["nope"])
        assert result.data == {}
        assert result.discarded == ["<record>"]

    def test_short_month_key_migrated(self):
        """Test "YYYY-M" month keys."""
        result = normalize_calendar({"2024-3": {"1": {"volume": 1, "cost": 2}}})
        assert result.data == {"2024-03": {"1": DayEntry(volume=1, cost=2)}}
        assert result.migrated_keys == 1
        assert result.migrated_months == ["2024-03"]

    def test_full_date_day_keys_win(self):
        """Test full-date day keys override numeric ones for the same day."""
        result = normalize_calendar({
            "2024-3": {
                "2024-03-01": {"volume": 2, "cost": 60},
                "1": {"volume": 0, "cost": 0},
                "2": {"volume": 0, "cost": 0},
            },
        })
        days = result.data["2024-03"]
        assert days["1"] == DayEntry(volume=2, cost=60)
        assert days["2"] == DayEntry.zero()
        assert result.migrated_keys == 2

    def test_top_level_full_date_entries(self):
        """Test flat "YYYY-MM-DD": entry records."""
        result = normalize_calendar({
            "2024-03-05": {"volume": 1, "cost": 2},
            "2024-03": {"5": {"volume": 9, "cost": 9}, "6": {"volume": 3, "cost": 3}},
        })
        assert result.data["2024-03"]["5"] == DayEntry(volume=1, cost=2)
        assert result.data["2024-03"]["6"] == DayEntry(volume=3, cost=3)

    def test_unreadable_parts_dropped(self):
        """Test bad months and days are dropped, the rest kept."""
        result = normalize_calendar({
            "garbage": {},
            "2024-04": "nope",
            "2024-05": {
                "40": {"volume": 1, "cost": 1},
                "2": 7,
                "3": {"volume": "abc", "cost": None},
                "4": {"volume": 1, "cost": 1},
            },
        })
        assert set(result.discarded) == {"garbage", "2024-04", "2024-05/40", "2024-05/2"}
        assert result.data == {
            "2024-05": {"3": DayEntry.zero(), "4": DayEntry(volume=1, cost=1)},
        }

    def test_round_trip(self):
        """Test saving then reloading gives the same mapping."""
        data = {
            "2024-02": {str(d): DayEntry(volume=d / 4, cost=55.5) for d in range(1, 30)},
            "2024-03": {"1": DayEntry(volume=2, cost=10), "2": DayEntry.zero()},
        }
        text = json.dumps(calendar_to_record(data))
        result = normalize_calendar(json.loads(text))

        assert result.data == data
        assert not result.has_repairs
