"""
Audit Models for Milk Tracker

Every significant change to the user's data is logged as an audit event.
This provides:
1. Traceability of every settings rollout and day edit
2. Debugging information when persisted records are repaired
3. A record of persistence failures the UI was told about

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Settings
    SETTINGS_LOADED = "settings_loaded"
    SETTINGS_SAVED = "settings_saved"
    FIRST_LOAD_COMPLETED = "first_load_completed"
    SETTINGS_PROPAGATED = "settings_propagated"

    # Calendar
    CALENDAR_LOADED = "calendar_loaded"
    MONTH_INITIALIZED = "month_initialized"
    DAY_EDITED = "day_edited"

    # Input and record repair
    INPUT_COERCED = "input_coerced"
    RECORD_DISCARDED = "record_discarded"
    LEGACY_KEYS_MIGRATED = "legacy_keys_migrated"

    # Persistence
    PERSISTENCE_FAILED = "persistence_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what record is this about?
    record: Optional[str] = Field(
        default=None,
        description="Persisted record involved (settings or calendarData)"
    )
    month: Optional[str] = Field(
        default=None,
        description="Canonical month key, when the event concerns a month"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "record": self.record,
            "month": self.month,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.month_initialized("2024-03", 31, "future")
        event = AuditEventBuilder.day_edited("2024-03", "15", 2.0, 60.0)
    """

    @staticmethod
    def settings_loaded(found: bool, discarded_fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_LOADED,
            record="settings",
            description=(
                "Settings loaded from storage" if found
                else "No stored settings, using defaults"
            ),
            details={
                "found": found,
                "discarded_fields": discarded_fields,
            },
        )

    @staticmethod
    def calendar_loaded(month_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CALENDAR_LOADED,
            record="calendarData",
            description=f"Calendar data loaded with {month_count} months",
            details={"month_count": month_count},
        )

    @staticmethod
    def settings_saved(settings: dict, first_save: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            record="settings",
            description="Settings saved",
            details={
                "settings": settings,
                "first_save": first_save,
            },
            is_user_action=True,
        )

    @staticmethod
    def first_load_completed() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FIRST_LOAD_COMPLETED,
            record="settings",
            description="First settings save, nothing propagated",
        )

    @staticmethod
    def settings_propagated(
        tenure: str,
        today: str,
        months: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_PROPAGATED,
            record="calendarData",
            description=f"New defaults applied to {len(months)} months ({tenure})",
            details={
                "tenure": tenure,
                "today": today,
                "months": months,
            },
        )

    @staticmethod
    def month_initialized(month: str, day_count: int, apply_to: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_INITIALIZED,
            record="calendarData",
            month=month,
            description=f"Month {month} filled with {day_count} default days",
            details={
                "day_count": day_count,
                "apply_to": apply_to,
            },
        )

    @staticmethod
    def day_edited(month: str, day: str, volume: float, cost: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DAY_EDITED,
            record="calendarData",
            month=month,
            description=f"Day {day} of {month} edited",
            details={
                "day": day,
                "volume": volume,
                "cost": cost,
            },
            is_user_action=True,
        )

    @staticmethod
    def input_coerced(field: str, raw_value: Any, coerced: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_COERCED,
            severity=AuditSeverity.WARNING,
            description=f"Invalid {field} input collapsed to {coerced:g}",
            details={
                "field": field,
                "raw_value": repr(raw_value),
                "coerced": coerced,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_discarded(record: str, reason: str, details: Optional[dict] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DISCARDED,
            severity=AuditSeverity.WARNING,
            record=record,
            description=f"Discarded unreadable {record} data: {reason}",
            details=details or {},
        )

    @staticmethod
    def legacy_keys_migrated(migrated: int, months: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEGACY_KEYS_MIGRATED,
            record="calendarData",
            description=f"Converted {migrated} keys to the current format",
            details={
                "migrated": migrated,
                "months": months,
            },
        )

    @staticmethod
    def persistence_failed(record: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            record=record,
            description=f"Could not persist {record}",
            error_message=error_message,
        )
