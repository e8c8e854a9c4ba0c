"""
Data Models Package

This package contains all Pydantic models used in the Milk Tracker core.
All data flowing through the system must conform to these schemas.
"""

from milk_tracker.models.calendar import (
    CalendarData,
    DayEntry,
    InvalidKeyError,
    MonthEntries,
    MonthKey,
    MonthOption,
    MonthTotals,
    coerce_amount,
    is_legacy_day_key,
    normalize_day_key,
    parse_amount,
)
from milk_tracker.models.settings import (
    CURRENCY_SYMBOLS,
    KNOWN_UNITS,
    ApplyTo,
    Settings,
    WeekdayStart,
    currency_symbol_for,
)
from milk_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Calendar models
    "CalendarData",
    "DayEntry",
    "InvalidKeyError",
    "MonthEntries",
    "MonthKey",
    "MonthOption",
    "MonthTotals",
    "coerce_amount",
    "is_legacy_day_key",
    "normalize_day_key",
    "parse_amount",
    # Settings models
    "CURRENCY_SYMBOLS",
    "KNOWN_UNITS",
    "ApplyTo",
    "Settings",
    "WeekdayStart",
    "currency_symbol_for",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
