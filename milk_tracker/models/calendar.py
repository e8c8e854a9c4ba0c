"""
Calendar Data Models for Milk Tracker

These models define the shape of the calendar data:

    CalendarData = {month_key: {day_key: DayEntry}}

Month keys are canonical "YYYY-MM" strings. Day keys are the 1-based day
number as an unpadded string ("1" .. "31").

DESIGN DECISION: Numbers are never rejected. A DayEntry always holds finite,
non-negative floats; anything else collapses to 0. The UI hands us raw text
from input boxes and must never see a validation error for it.
"""

import calendar
import math
import re
from datetime import date
from functools import total_ordering
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Leading number, the way a text input is read ("1.5", "2.", ".5", "3abc").
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_MONTH_KEY = re.compile(r"^\s*(\d{4})-(\d{1,2})(?:-(\d{1,2}))?\s*$")


# =============================================================================
# NUMERIC COERCION
# =============================================================================

def parse_amount(value: Any) -> tuple[float, bool]:
    """
    Parse a volume or price.

    Returns (amount, was_clean). was_clean is False when the value had to be
    collapsed or truncated to produce the amount.
    """
    if value is None or isinstance(value, bool):
        return 0.0, False

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0, False
        if not math.isfinite(number) or number < 0:
            return 0.0, False
        return number, True

    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if match is None:
            return 0.0, False
        number = float(match.group(0))
        clean = match.group(0).strip() == value.strip()
        if not math.isfinite(number) or number < 0:
            return 0.0, False
        return number, clean

    # Decimal and other numeric types
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0, False
    if not math.isfinite(number) or number < 0:
        return 0.0, False
    return number, True


def coerce_amount(value: Any) -> float:
    """Coerce any input to a finite non-negative float, 0 when invalid."""
    return parse_amount(value)[0]


# =============================================================================
# DAY ENTRY
# =============================================================================

class DayEntry(BaseModel):
    """
    Volume and unit price recorded for one day.

    cost is the price per unit of volume, not the day's total.
    """
    model_config = ConfigDict(frozen=True)

    volume: float = Field(
        default=0.0,
        ge=0,
        description="Volume bought that day"
    )
    cost: float = Field(
        default=0.0,
        ge=0,
        description="Price per unit of volume"
    )

    @field_validator('volume', 'cost', mode='before')
    @classmethod
    def collapse_invalid(cls, v: Any) -> float:
        return coerce_amount(v)

    @property
    def total(self) -> float:
        """Amount spent that day."""
        return self.volume * self.cost

    @classmethod
    def zero(cls) -> "DayEntry":
        return cls(volume=0.0, cost=0.0)


# =============================================================================
# MONTH KEY
# =============================================================================

class InvalidKeyError(ValueError):
    """A month or day key could not be parsed."""
    pass


@total_ordering
class MonthKey(BaseModel):
    """
    One calendar month. Ordered by year, then month.

    Accepts "YYYY-M", "YYYY-MM" and "YYYY-MM-DD" (day ignored) when parsing.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def parse(cls, value: Union[str, "MonthKey", date]) -> "MonthKey":
        if isinstance(value, MonthKey):
            return value
        if isinstance(value, date):
            return cls.from_date(value)
        if not isinstance(value, str):
            raise InvalidKeyError(f"Unsupported month key: {value!r}")

        match = _MONTH_KEY.match(value)
        if match is None:
            raise InvalidKeyError(f"Malformed month key: {value!r}")
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12 or year < 1:
            raise InvalidKeyError(f"Month out of range: {value!r}")
        return cls(year=year, month=month)

    @classmethod
    def from_date(cls, value: date) -> "MonthKey":
        return cls(year=value.year, month=value.month)

    @property
    def key(self) -> str:
        """Canonical storage key."""
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def day_keys(self) -> list[str]:
        return [str(day) for day in range(1, self.days_in_month + 1)]

    def date_of(self, day: int) -> date:
        return date(self.year, self.month, day)

    def next(self) -> "MonthKey":
        if self.month == 12:
            return MonthKey(year=self.year + 1, month=1)
        return MonthKey(year=self.year, month=self.month + 1)

    def previous(self) -> "MonthKey":
        if self.month == 1:
            return MonthKey(year=self.year - 1, month=12)
        return MonthKey(year=self.year, month=self.month - 1)

    def __lt__(self, other: "MonthKey") -> bool:
        if not isinstance(other, MonthKey):
            return NotImplemented
        return (self.year, self.month) < (other.year, other.month)

    def __str__(self) -> str:
        return self.key


def normalize_day_key(value: Union[str, int], month: MonthKey) -> str:
    """
    Canonical day key for a day of `month`.

    Accepts 7, "7", "07" and the full-date form "YYYY-MM-DD" written by older
    versions of the app. The full-date form must fall inside `month`.
    """
    if isinstance(value, bool):
        raise InvalidKeyError(f"Unsupported day key: {value!r}")

    if isinstance(value, int):
        day = value
    elif isinstance(value, str):
        text = value.strip()
        match = _MONTH_KEY.match(text)
        if match is not None and match.group(3) is not None:
            if (int(match.group(1)), int(match.group(2))) != (month.year, month.month):
                raise InvalidKeyError(f"Day {value!r} is outside month {month.key}")
            day = int(match.group(3))
        elif text.isdecimal():
            day = int(text)
        else:
            raise InvalidKeyError(f"Malformed day key: {value!r}")
    else:
        raise InvalidKeyError(f"Unsupported day key: {value!r}")

    if not 1 <= day <= month.days_in_month:
        raise InvalidKeyError(f"Day {day} does not exist in {month.key}")
    return str(day)


def is_legacy_day_key(value: str) -> bool:
    """True for the full-date "YYYY-MM-DD" day key form."""
    match = _MONTH_KEY.match(value)
    return match is not None and match.group(3) is not None


MonthEntries = dict[str, DayEntry]
CalendarData = dict[str, MonthEntries]


# =============================================================================
# TOTALS
# =============================================================================

class MonthTotals(BaseModel):
    """Totals shown under the month view."""

    month: str = Field(
        ...,
        description="Canonical month key"
    )
    total_volume: float = Field(default=0.0, ge=0)
    total_cost: float = Field(default=0.0, ge=0)
    day_count: int = Field(
        default=0,
        ge=0,
        description="Number of day entries summed"
    )


class MonthOption(BaseModel):
    """An entry of the month picker."""

    value: str = Field(
        ...,
        description="Canonical month key"
    )
    label: str = Field(
        ...,
        description="Display label, e.g. 'March 2024'"
    )
    has_data: bool = False
