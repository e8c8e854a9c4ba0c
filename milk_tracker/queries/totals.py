"""
Month Queries

Deterministic reads over calendar data for the month view: the totals
shown under the grid and the list of months offered by the month picker.
"""

import calendar
import math
from datetime import date
from typing import Iterable, Mapping

from milk_tracker.models.calendar import DayEntry, MonthKey, MonthOption, MonthTotals


def compute_month_totals(month: MonthKey, entries: Mapping[str, DayEntry]) -> MonthTotals:
    """
    Sum a month's entries.

    total_cost is the sum of volume * unit price over the days.
    """
    values = list(entries.values())
    return MonthTotals(
        month=month.key,
        total_volume=math.fsum(entry.volume for entry in values),
        total_cost=math.fsum(entry.volume * entry.cost for entry in values),
        day_count=len(values),
    )


def month_label(month: MonthKey) -> str:
    return f"{calendar.month_name[month.month]} {month.year}"


def month_options(today: date, stored: Iterable[MonthKey]) -> list[MonthOption]:
    """
    Months the picker offers.

    Previous, current and next month, plus every month that already holds
    data. Sorted oldest first, no duplicates.
    """
    current = MonthKey.from_date(today)
    with_data = set(stored)
    months = with_data | {current.previous(), current, current.next()}

    return [
        MonthOption(
            value=month.key,
            label=month_label(month),
            has_data=month in with_data,
        )
        for month in sorted(months)
    ]
