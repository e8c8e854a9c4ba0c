"""
Settings-Propagation Engine

Rolls newly saved defaults out over months that already have entries.

    tenure=future            earlier month   untouched
                             current month   days after today
                             later month     every day

    tenure=currentAndFuture  earlier month   untouched
                             current month   every day
                             later month     every day

Affected days are overwritten unconditionally, manual edits included.
Months that were never initialized are not created here; the initializer
fills them on first view with the new settings.
"""

from datetime import date
from typing import Any

from milk_tracker.models.calendar import MonthKey
from milk_tracker.models.settings import ApplyTo, Settings
from milk_tracker.stores.calendar_store import CalendarStore


def days_to_overwrite(today: date, month: MonthKey, tenure: Any) -> range:
    """Days of `month` a rollout under `tenure` rewrites, given `today`."""
    current = MonthKey.from_date(today)
    last_day = month.days_in_month

    if month < current:
        return range(0)
    if month > current:
        return range(1, last_day + 1)

    if ApplyTo.coerce(tenure) == ApplyTo.CURRENT_AND_FUTURE:
        return range(1, last_day + 1)
    return range(today.day + 1, last_day + 1)


def propagate_settings(
    store: CalendarStore,
    settings: Settings,
    tenure: Any,
    today: date,
) -> list[MonthKey]:
    """
    Overwrite the affected days of every stored month with the new defaults.

    Returns the months that were rewritten.
    """
    default = settings.default_entry
    changed: list[MonthKey] = []

    for month in store.month_keys():
        days = days_to_overwrite(today, month, tenure)
        if not days:
            continue
        entries = store.get(month)
        for day in days:
            entries[str(day)] = default
        store.set(month, entries)
        changed.append(month)

    return changed
