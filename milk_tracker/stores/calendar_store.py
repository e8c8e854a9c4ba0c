"""
Calendar Data Store

Sparse two-level mapping: month key -> day key -> DayEntry.

Keys given in any accepted form ("2024-3", MonthKey, date; 7, "07") are
stored in canonical form. Every mutation calls on_change once
(write-through). Entries are replaced, never deleted.
"""

from datetime import date
from typing import Any, Callable, Mapping, Optional, Union

from milk_tracker.models.calendar import (
    CalendarData,
    DayEntry,
    MonthEntries,
    MonthKey,
    normalize_day_key,
)
from milk_tracker.validation.normalizer import calendar_to_record


MonthLike = Union[str, MonthKey, date]
DayLike = Union[str, int]


def _as_entry(value: Any) -> DayEntry:
    if isinstance(value, DayEntry):
        return value
    if isinstance(value, Mapping):
        return DayEntry(volume=value.get("volume"), cost=value.get("cost"))
    raise TypeError(f"Expected DayEntry or mapping, got {type(value).__name__}")


class CalendarStore:
    """
    In-memory calendar data with write-through notification.
    """

    def __init__(
        self,
        data: Optional[CalendarData] = None,
        on_change: Optional[Callable[["CalendarStore"], None]] = None,
    ):
        self._data: CalendarData = {}
        self._on_change = on_change
        if data:
            self.replace_all(data)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def replace_all(self, data: CalendarData) -> None:
        """Swap in loaded data. Does not fire persistence."""
        self._data = {
            month: dict(days) for month, days in data.items()
        }

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, month: MonthLike) -> MonthEntries:
        """Entries of a month, empty if the month was never written."""
        key = MonthKey.parse(month).key
        return dict(self._data.get(key, {}))

    def get_day(self, month: MonthLike, day: DayLike) -> Optional[DayEntry]:
        month_key = MonthKey.parse(month)
        day_key = normalize_day_key(day, month_key)
        return self._data.get(month_key.key, {}).get(day_key)

    def is_initialized(self, month: MonthLike) -> bool:
        """True when the month has at least one entry."""
        return bool(self._data.get(MonthKey.parse(month).key))

    def month_keys(self) -> list[MonthKey]:
        """Every stored month, oldest first."""
        return sorted(MonthKey.parse(key) for key in self._data)

    def snapshot(self) -> CalendarData:
        """Copy of all data. DayEntry values are immutable."""
        return {month: dict(days) for month, days in self._data.items()}

    def to_record(self) -> dict:
        return calendar_to_record(self._data)

    def __contains__(self, month: object) -> bool:
        try:
            return MonthKey.parse(month).key in self._data  # type: ignore[arg-type]
        except (ValueError, TypeError):
            return False

    def __len__(self) -> int:
        return len(self._data)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def set(self, month: MonthLike, entries: Mapping[DayLike, Any]) -> None:
        """Replace a month's whole entry set."""
        month_key = MonthKey.parse(month)
        self._data[month_key.key] = {
            normalize_day_key(day, month_key): _as_entry(entry)
            for day, entry in entries.items()
        }
        self._changed()

    def set_day(self, month: MonthLike, day: DayLike, entry: Any) -> DayEntry:
        """Replace one day, leaving the rest of the month untouched."""
        month_key = MonthKey.parse(month)
        day_key = normalize_day_key(day, month_key)
        value = _as_entry(entry)
        self._data.setdefault(month_key.key, {})[day_key] = value
        self._changed()
        return value
