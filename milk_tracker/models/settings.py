"""
User Settings Model

The single record of defaults the user picks on the settings screen:
unit, default daily volume, price per unit, currency, week start and
the apply-to policy used the next time new defaults are rolled out.

DESIGN DECISION: Settings is always fully populated. Every field has a
built-in default and a malformed value falls back to that default instead
of failing the load. The persisted JSON uses camelCase keys.
"""

from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from milk_tracker.models.calendar import DayEntry, coerce_amount


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class WeekdayStart(str, Enum):
    """First column of the calendar grid. Layout only."""
    SUNDAY = "sunday"
    MONDAY = "monday"


class ApplyTo(str, Enum):
    """
    Scope used when new defaults are rolled out over existing months.

    FUTURE: only days after today.
    CURRENT_AND_FUTURE: every day of the current month and later months.
    """
    FUTURE = "future"
    CURRENT_AND_FUTURE = "currentAndFuture"

    @classmethod
    def coerce(cls, value: Any) -> "ApplyTo":
        """Unknown or missing tenure values fall back to FUTURE."""
        if isinstance(value, ApplyTo):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.FUTURE


# Options offered by the settings screen.
KNOWN_UNITS: dict[str, str] = {
    "litre": "Litre",
    "ounce": "Ounce",
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "INR": "₹",
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
}


def currency_symbol_for(code: str, fallback: str = "") -> str:
    """Display glyph for a currency code."""
    return CURRENCY_SYMBOLS.get(code.upper(), fallback or code)


# =============================================================================
# SETTINGS
# =============================================================================

DEFAULT_UNIT = "litre"
DEFAULT_VOLUME = 1.0
DEFAULT_COST_PER_VOLUME = 1.0
DEFAULT_CURRENCY = "INR"


class Settings(BaseModel):
    """
    Global default configuration.

    Replaced wholesale on every save, never merged.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )

    unit: str = Field(
        default=DEFAULT_UNIT,
        min_length=1,
        max_length=20,
        description="Volume unit token (e.g. litre, ounce)"
    )
    default_volume: float = Field(
        default=DEFAULT_VOLUME,
        ge=0,
        validation_alias=AliasChoices("defaultVolume", "default_volume"),
        serialization_alias="defaultVolume",
        description="Volume assumed for a day that was never edited"
    )
    cost_per_volume: float = Field(
        default=DEFAULT_COST_PER_VOLUME,
        ge=0,
        validation_alias=AliasChoices("costPerVolume", "cost_per_volume"),
        serialization_alias="costPerVolume",
        description="Default price per unit of volume"
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        min_length=1,
        max_length=10,
        description="Currency code"
    )
    currency_symbol: str = Field(
        default="",
        validate_default=True,
        validation_alias=AliasChoices("currencySymbol", "currency_symbol"),
        serialization_alias="currencySymbol",
        description="Display glyph; filled from the currency when empty"
    )
    weekday_start: WeekdayStart = Field(
        default=WeekdayStart.SUNDAY,
        validation_alias=AliasChoices("weekdayStart", "weekday_start"),
        serialization_alias="weekdayStart",
    )
    apply_to: ApplyTo = Field(
        default=ApplyTo.FUTURE,
        validation_alias=AliasChoices("applyTo", "apply_to"),
        serialization_alias="applyTo",
        description="Rollout policy for the next settings change"
    )

    @field_validator('default_volume', 'cost_per_volume', mode='before')
    @classmethod
    def collapse_invalid_numbers(cls, v: Any) -> float:
        return coerce_amount(v)

    @field_validator('apply_to', mode='before')
    @classmethod
    def default_apply_to(cls, v: Any) -> ApplyTo:
        if v is None:
            return ApplyTo.FUTURE
        return ApplyTo.coerce(v)

    @field_validator('currency_symbol')
    @classmethod
    def fill_currency_symbol(cls, v: str, info: ValidationInfo) -> str:
        """Known currencies get their glyph when none was given."""
        if v:
            return v
        currency = info.data.get("currency")
        if not currency:
            return ""
        return currency_symbol_for(currency)

    @property
    def default_entry(self) -> DayEntry:
        """Entry a day gets when these defaults apply to it."""
        return DayEntry(volume=self.default_volume, cost=self.cost_per_volume)

    def to_record(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, raw: Any) -> tuple["Settings", list[str]]:
        """
        Build settings from a persisted record, never failing.

        Fields that are missing or invalid fall back to their defaults.
        Returns (settings, names_of_fields_that_were_discarded).
        """
        if not isinstance(raw, dict):
            return cls(), ["<record>"] if raw is not None else []

        try:
            return cls.model_validate(raw), []
        except ValidationError as e:
            bad_fields = sorted({
                str(error["loc"][0]) for error in e.errors() if error["loc"]
            })

        # Drop every spelling of a bad field so its default applies
        bad_keys = set(bad_fields)
        for name, field in cls.model_fields.items():
            names = {name}
            if isinstance(field.validation_alias, AliasChoices):
                names.update(
                    choice for choice in field.validation_alias.choices
                    if isinstance(choice, str)
                )
            if names & bad_keys:
                bad_keys |= names

        cleaned = {key: value for key, value in raw.items() if key not in bad_keys}
        try:
            return cls.model_validate(cleaned), bad_fields
        except ValidationError:
            return cls(), ["<record>"]
