"""
Month Initializer

Fills a month the first time it is viewed.

RULES:
- A month that already has entries is never touched. Per-day edits
  survive any number of views.
- apply_to=future: days before today get {0, 0}, today and later get
  the defaults. A past day never silently receives a price that did not
  exist when it happened.
- apply_to=currentAndFuture: every day gets the defaults.

The whole month is written with a single store.set call.
"""

from datetime import date
from typing import Optional

from milk_tracker.models.calendar import DayEntry, MonthEntries, MonthKey
from milk_tracker.models.settings import ApplyTo, Settings
from milk_tracker.stores.calendar_store import CalendarStore, MonthLike


def build_month_entries(
    month: MonthKey,
    settings: Settings,
    today: date,
) -> MonthEntries:
    """One entry per day of `month` under the settings' apply-to policy."""
    default = settings.default_entry
    zero = DayEntry.zero()
    apply_to = ApplyTo.coerce(settings.apply_to)

    entries: MonthEntries = {}
    for day in range(1, month.days_in_month + 1):
        if apply_to == ApplyTo.FUTURE and month.date_of(day) < today:
            entries[str(day)] = zero
        else:
            entries[str(day)] = default
    return entries


def ensure_month_initialized(
    store: CalendarStore,
    month: MonthLike,
    settings: Settings,
    today: date,
) -> Optional[MonthEntries]:
    """
    Fill `month` if it has no entries yet.

    Returns the entries written, or None when the month was already
    initialized.
    """
    month_key = MonthKey.parse(month)
    if store.is_initialized(month_key):
        return None

    entries = build_month_entries(month_key, settings, today)
    store.set(month_key, entries)
    return entries
