"""
Input and Record Normalization

DESIGN DECISION: Nothing coming into the core is rejected.

USER INPUT:
- Volume and price come from free-text boxes
- Anything that is not a finite, non-negative number becomes 0
- The caller is told which fields were collapsed so it can be audited

PERSISTED RECORDS:
- Unreadable JSON or a record of the wrong shape is treated as absent
- Unparseable months or days are dropped, the rest is kept
- Older key formats are converted to the canonical one:
    month "2024-3"                      -> "2024-03"
    day   "2024-03-07" (inside a month) -> "7"
  When a day exists under both forms, the full-date form wins: older
  versions of the app wrote it when rolling out new defaults, after the
  numeric key was first filled.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field

from milk_tracker.models.calendar import (
    CalendarData,
    DayEntry,
    InvalidKeyError,
    MonthEntries,
    MonthKey,
    is_legacy_day_key,
    normalize_day_key,
    parse_amount,
)


class CoercedInput(BaseModel):
    """A day entry built from raw UI input."""

    entry: DayEntry
    coerced_fields: list[str] = Field(
        default_factory=list,
        description="Fields whose raw value was collapsed or truncated"
    )
    raw_values: dict[str, str] = Field(default_factory=dict)

    @property
    def was_clean(self) -> bool:
        return not self.coerced_fields


class CalendarLoadResult(BaseModel):
    """Outcome of reading a persisted calendarData record."""

    data: CalendarData = Field(default_factory=dict)
    migrated_keys: int = Field(
        default=0,
        ge=0,
        description="Month or day keys rewritten to the canonical form"
    )
    migrated_months: list[str] = Field(default_factory=list)
    discarded: list[str] = Field(
        default_factory=list,
        description="Keys (or <record>) that could not be read"
    )

    @property
    def has_repairs(self) -> bool:
        return bool(self.migrated_keys or self.discarded)


def coerce_day_input(volume: Any, cost: Any) -> CoercedInput:
    """Build a DayEntry from raw input, collapsing bad numbers to 0."""
    volume_value, volume_clean = parse_amount(volume)
    cost_value, cost_clean = parse_amount(cost)

    coerced = []
    raw = {}
    if not volume_clean:
        coerced.append("volume")
        raw["volume"] = repr(volume)
    if not cost_clean:
        coerced.append("cost")
        raw["cost"] = repr(cost)

    return CoercedInput(
        entry=DayEntry(volume=volume_value, cost=cost_value),
        coerced_fields=coerced,
        raw_values=raw,
    )


def parse_json_record(text: Optional[str]) -> tuple[Any, bool]:
    """
    Decode a stored record.

    Returns (value, readable). Missing text is (None, True); text that is not
    JSON is (None, False).
    """
    if text is None:
        return None, True
    try:
        return json.loads(text), True
    except (ValueError, TypeError):
        return None, False


def _entry_from_raw(value: Any) -> Optional[DayEntry]:
    if isinstance(value, DayEntry):
        return value
    if not isinstance(value, dict):
        return None
    return DayEntry(volume=value.get("volume"), cost=value.get("cost"))


def _looks_like_entry(value: Any) -> bool:
    return isinstance(value, dict) and ("volume" in value or "cost" in value)


def normalize_calendar(raw: Any) -> CalendarLoadResult:
    """Convert a decoded calendarData record into canonical CalendarData."""
    result = CalendarLoadResult()
    if raw is None:
        return result
    if not isinstance(raw, dict):
        result.discarded.append("<record>")
        return result

    data: CalendarData = {}
    migrated_months: set[str] = set()
    flat_days: list[tuple[str, Any]] = []

    for raw_month, raw_days in raw.items():
        raw_month = str(raw_month)
        if is_legacy_day_key(raw_month) and _looks_like_entry(raw_days):
            # Top-level "YYYY-MM-DD": {volume, cost}
            flat_days.append((raw_month, raw_days))
            continue
        try:
            month = MonthKey.parse(raw_month)
        except InvalidKeyError:
            result.discarded.append(raw_month)
            continue
        if not isinstance(raw_days, dict):
            result.discarded.append(raw_month)
            continue

        if str(raw_month) != month.key:
            result.migrated_keys += 1
            migrated_months.add(month.key)

        entries: MonthEntries = data.setdefault(month.key, {})

        # Numeric keys first so full-date keys overwrite them
        ordered = sorted(
            raw_days.items(),
            key=lambda item: is_legacy_day_key(str(item[0])),
        )
        for raw_day, raw_entry in ordered:
            raw_day = str(raw_day)
            try:
                day = normalize_day_key(raw_day, month)
            except InvalidKeyError:
                result.discarded.append(f"{raw_month}/{raw_day}")
                continue
            entry = _entry_from_raw(raw_entry)
            if entry is None:
                result.discarded.append(f"{raw_month}/{raw_day}")
                continue
            if raw_day != day:
                result.migrated_keys += 1
                migrated_months.add(month.key)
            entries[day] = entry

    for raw_day, raw_entry in flat_days:
        try:
            month = MonthKey.parse(raw_day)
            day = normalize_day_key(raw_day, month)
        except InvalidKeyError:
            result.discarded.append(raw_day)
            continue
        entry = _entry_from_raw(raw_entry)
        if entry is None:
            result.discarded.append(raw_day)
            continue
        data.setdefault(month.key, {})[day] = entry
        result.migrated_keys += 1
        migrated_months.add(month.key)

    result.data = data
    result.migrated_months = sorted(migrated_months)
    return result


def calendar_to_record(data: CalendarData) -> dict:
    """JSON-ready dict of calendar data."""
    return {
        month: {
            day: entry.model_dump(mode="json")
            for day, entry in days.items()
        }
        for month, days in data.items()
    }
