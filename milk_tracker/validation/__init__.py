"""Input and persisted-record normalization."""

from milk_tracker.validation.normalizer import (
    CalendarLoadResult,
    CoercedInput,
    calendar_to_record,
    coerce_day_input,
    normalize_calendar,
    parse_json_record,
)

__all__ = [
    "CalendarLoadResult",
    "CoercedInput",
    "calendar_to_record",
    "coerce_day_input",
    "normalize_calendar",
    "parse_json_record",
]
