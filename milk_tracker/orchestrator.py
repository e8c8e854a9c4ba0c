"""
Main Orchestrator for Milk Tracker

This module ties together the stores, the month initializer, the
settings rollout and persistence, and exposes the operations the UI calls:

    get_settings / save_settings
    get_month / ensure_month_initialized / set_day_entry / get_day_entry
    apply_settings_change
    compute_month_totals / month_options

DESIGN DECISION: The core is synchronous. Every operation works on the
in-memory state and returns immediately. Persistence is asynchronous and
fire-and-forget:
- load() is awaited once at startup
- each mutation marks its record dirty and schedules a writer task
- writes to the same record are coalesced and always serialize the latest
  state, so a slow write can never overwrite a newer one
- with no running event loop the write runs inline instead

The in-memory state is authoritative for the session. A failed write is
audited and reported through on_persist_error; it is never rolled back.
"""

import asyncio
import json
from datetime import date
from typing import Any, Callable, Mapping, Optional, Union

from milk_tracker.audit import AuditLogger
from milk_tracker.config import TrackerSettings, get_config
from milk_tracker.engine import ensure_month_initialized, propagate_settings
from milk_tracker.models.audit import AuditEventBuilder
from milk_tracker.models.calendar import (
    CalendarData,
    DayEntry,
    MonthEntries,
    MonthKey,
    MonthOption,
    MonthTotals,
    normalize_day_key,
)
from milk_tracker.models.settings import ApplyTo, Settings
from milk_tracker.queries import compute_month_totals, month_options
from milk_tracker.services.storage import (
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    StorageError,
)
from milk_tracker.stores import CalendarStore, SettingsStore
from milk_tracker.stores.calendar_store import DayLike, MonthLike
from milk_tracker.validation import (
    coerce_day_input,
    normalize_calendar,
    parse_json_record,
)


PersistErrorHandler = Callable[[str, Exception], None]


class MilkTracker:
    """
    Application state container.

    Owns the Settings record and the calendar data, and is the only thing
    that talks to storage.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        config: Optional[TrackerSettings] = None,
        today: Optional[Callable[[], date]] = None,
        on_persist_error: Optional[PersistErrorHandler] = None,
    ):
        self._config = config or get_config()
        self._storage = storage if storage is not None else create_storage(self._config)
        self._audit = audit_logger or AuditLogger(
            self._config.audit_history_limit,
            debug=self._config.debug_mode,
        )
        self._today = today or date.today
        self._on_persist_error = on_persist_error

        self._settings_key = self._config.settings_key
        self._calendar_key = self._config.calendar_key
        self._settings_store = SettingsStore(
            on_change=lambda _: self._schedule_persist(self._settings_key)
        )
        self._calendar_store = CalendarStore(
            on_change=lambda _: self._schedule_persist(self._calendar_key)
        )

        self._first_load = True
        self._dirty: set[str] = set()
        self._writers: dict[str, asyncio.Task] = {}

    # =========================================================================
    # STARTUP
    # =========================================================================

    async def load(self) -> None:
        """
        Read both records from storage.

        Missing or unreadable records leave the defaults in place.
        """
        raw_settings = await self._read_record(self._settings_key, "settings")
        discarded: list[str] = []
        if raw_settings is not None:
            _, discarded = self._settings_store.load(raw_settings)
            # A record of the wrong shape counts as absent
            if isinstance(raw_settings, dict):
                self._first_load = False
            if discarded:
                self._audit.log(AuditEventBuilder.record_discarded(
                    record="settings",
                    reason="invalid fields replaced by defaults",
                    details={"fields": discarded},
                ))
        self._audit.log(AuditEventBuilder.settings_loaded(
            found=raw_settings is not None,
            discarded_fields=discarded,
        ))

        raw_calendar = await self._read_record(self._calendar_key, "calendarData")
        result = normalize_calendar(raw_calendar)
        self._calendar_store.replace_all(result.data)

        if result.discarded:
            self._audit.log(AuditEventBuilder.record_discarded(
                record="calendarData",
                reason=f"{len(result.discarded)} unreadable keys dropped",
                details={"keys": result.discarded},
            ))
        if result.migrated_keys:
            self._audit.log(AuditEventBuilder.legacy_keys_migrated(
                migrated=result.migrated_keys,
                months=result.migrated_months,
            ))
        self._audit.log(AuditEventBuilder.calendar_loaded(len(result.data)))

        # Store the repaired record so the old forms are gone for good
        if result.has_repairs:
            self._schedule_persist(self._calendar_key)

    async def _read_record(self, key: str, record: str) -> Any:
        try:
            text = await self._storage.get_item(key)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.record_discarded(
                record=record,
                reason="storage read failed",
                details={"error": str(e)},
            ))
            return None

        raw, readable = parse_json_record(text)
        if not readable:
            self._audit.log(AuditEventBuilder.record_discarded(
                record=record,
                reason="not valid JSON",
            ))
        return raw

    # =========================================================================
    # SETTINGS
    # =========================================================================

    @property
    def is_first_load(self) -> bool:
        """True until settings have been stored once."""
        return self._first_load

    def get_settings(self) -> Settings:
        return self._settings_store.current

    def save_settings(self, settings: Union[Settings, Mapping[str, Any]]) -> list[MonthKey]:
        """
        Replace the settings and roll them out.

        The very first save only ends the first-load state. Every later save
        propagates the new defaults using the settings' apply_to policy.

        Returns the months that were rewritten.
        """
        if not isinstance(settings, Settings):
            settings, _ = Settings.from_record(dict(settings))

        first_save = self._first_load
        self._settings_store.save(settings)
        self._audit.log(AuditEventBuilder.settings_saved(
            settings=settings.to_record(),
            first_save=first_save,
        ))

        if first_save:
            self._first_load = False
            self._audit.log(AuditEventBuilder.first_load_completed())
            return []

        return self.apply_settings_change(settings, settings.apply_to)

    def apply_settings_change(
        self,
        new_settings: Settings,
        tenure: Union[ApplyTo, str, None] = None,
    ) -> list[MonthKey]:
        """
        Rewrite stored months with the new defaults.

        tenure defaults to new_settings.apply_to. Unknown values mean future.
        """
        policy = ApplyTo.coerce(tenure if tenure is not None else new_settings.apply_to)
        today = self.today()

        changed = propagate_settings(self._calendar_store, new_settings, policy, today)
        self._audit.log(AuditEventBuilder.settings_propagated(
            tenure=policy.value,
            today=today.isoformat(),
            months=[month.key for month in changed],
        ))
        return changed

    # =========================================================================
    # CALENDAR
    # =========================================================================

    def today(self) -> date:
        return self._today()

    def get_month(self, month: MonthLike) -> MonthEntries:
        """Stored entries of a month; empty if never initialized."""
        return self._calendar_store.get(month)

    def ensure_month_initialized(self, month: MonthLike) -> MonthEntries:
        """Fill the month on first view and return its entries."""
        month_key = MonthKey.parse(month)
        settings = self.get_settings()

        written = ensure_month_initialized(
            self._calendar_store, month_key, settings, self.today()
        )
        if written is not None:
            self._audit.log(AuditEventBuilder.month_initialized(
                month=month_key.key,
                day_count=len(written),
                apply_to=settings.apply_to.value,
            ))
        return self._calendar_store.get(month_key)

    def set_day_entry(
        self,
        month: MonthLike,
        day: DayLike,
        entry: Union[DayEntry, Mapping[str, Any], None] = None,
        *,
        volume: Any = None,
        cost: Any = None,
    ) -> DayEntry:
        """
        Record the user's edit of one day.

        Accepts a DayEntry, a {"volume", "cost"} mapping or raw volume/cost
        values. Values that are not valid numbers are stored as 0.
        """
        month_key = MonthKey.parse(month)
        day_key = normalize_day_key(day, month_key)

        if isinstance(entry, DayEntry):
            value = entry
        else:
            if isinstance(entry, Mapping):
                volume, cost = entry.get("volume"), entry.get("cost")
            coerced = coerce_day_input(volume, cost)
            for field in coerced.coerced_fields:
                self._audit.log(AuditEventBuilder.input_coerced(
                    field=field,
                    raw_value=volume if field == "volume" else cost,
                    coerced=getattr(coerced.entry, field),
                ))
            value = coerced.entry

        stored = self._calendar_store.set_day(month_key, day_key, value)
        self._audit.log(AuditEventBuilder.day_edited(
            month=month_key.key,
            day=day_key,
            volume=stored.volume,
            cost=stored.cost,
        ))
        return stored

    def get_day_entry(self, month: MonthLike, day: DayLike) -> DayEntry:
        """The stored entry, or the current defaults for an empty day."""
        stored = self._calendar_store.get_day(month, day)
        if stored is not None:
            return stored
        return self.get_settings().default_entry

    def compute_month_totals(self, month: MonthLike) -> MonthTotals:
        month_key = MonthKey.parse(month)
        return compute_month_totals(month_key, self._calendar_store.get(month_key))

    def month_options(self) -> list[MonthOption]:
        """Months offered by the month picker."""
        return month_options(self.today(), self._calendar_store.month_keys())

    def calendar_snapshot(self) -> CalendarData:
        return self._calendar_store.snapshot()

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _record_for(self, key: str) -> dict:
        if key == self._settings_key:
            return self._settings_store.to_record()
        return self._calendar_store.to_record()

    def _schedule_persist(self, key: str) -> None:
        self._dirty.add(key)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._drain(key))
            return

        writer = self._writers.get(key)
        if writer is not None and not writer.done():
            return

        writer = loop.create_task(self._drain(key))
        self._writers[key] = writer
        writer.add_done_callback(
            lambda task, key=key: self._forget_writer(key, task)
        )

    def _forget_writer(self, key: str, task: asyncio.Task) -> None:
        if self._writers.get(key) is task:
            del self._writers[key]

    async def _drain(self, key: str) -> None:
        while key in self._dirty:
            self._dirty.discard(key)
            payload = json.dumps(self._record_for(key), ensure_ascii=False)
            try:
                await self._storage.set_item(key, payload)
            except StorageError as e:
                self._audit.log(AuditEventBuilder.persistence_failed(
                    record=key,
                    error_message=str(e),
                ))
                if self._on_persist_error is not None:
                    self._on_persist_error(key, e)

    async def flush(self) -> None:
        """Wait until every scheduled write has finished."""
        while self._writers:
            await asyncio.gather(*list(self._writers.values()))


def create_storage(config: TrackerSettings) -> KeyValueStorageInterface:
    """Storage backend named by the configuration."""
    if config.storage_backend == "memory":
        return InMemoryKeyValueStorage()
    return JsonFileKeyValueStorage(
        data_dir=config.data_dir,
        retry_attempts=config.write_retry_attempts,
    )


async def create_tracker(
    config: Optional[TrackerSettings] = None,
    storage: Optional[KeyValueStorageInterface] = None,
    on_persist_error: Optional[PersistErrorHandler] = None,
) -> MilkTracker:
    """
    Factory function: build a tracker and load its persisted state.
    """
    tracker = MilkTracker(
        storage=storage,
        config=config,
        on_persist_error=on_persist_error,
    )
    await tracker.load()
    return tracker
