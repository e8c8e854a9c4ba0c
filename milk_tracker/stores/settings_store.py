"""
Settings Store

Holds the single user Settings record. Saving replaces the record
wholesale; there is no partial merge.
"""

from typing import Any, Callable, Optional

from milk_tracker.models.settings import Settings


class SettingsStore:
    """
    Owner of the current Settings.

    on_change is called after every save so the caller can persist the
    record. Loading does not call it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        on_change: Optional[Callable[["SettingsStore"], None]] = None,
    ):
        self._settings = settings or Settings()
        self._on_change = on_change

    @property
    def current(self) -> Settings:
        return self._settings

    def load(self, raw: Any) -> tuple[Settings, list[str]]:
        """
        Replace the current settings with a decoded persisted record.

        Missing or invalid fields get their defaults.
        Returns (settings, discarded_fields).
        """
        settings, discarded = Settings.from_record(raw)
        self._settings = settings
        return settings, discarded

    def save(self, settings: Settings) -> Settings:
        """Replace the record and fire persistence."""
        self._settings = settings
        if self._on_change is not None:
            self._on_change(self)
        return settings

    def to_record(self) -> dict:
        return self._settings.to_record()
