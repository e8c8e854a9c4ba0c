"""In-memory owners of the two persisted records."""

from milk_tracker.stores.calendar_store import CalendarStore
from milk_tracker.stores.settings_store import SettingsStore

__all__ = [
    "CalendarStore",
    "SettingsStore",
]
