"""Month initialization and settings rollout."""

from milk_tracker.engine.initializer import (
    build_month_entries,
    ensure_month_initialized,
)
from milk_tracker.engine.propagation import (
    days_to_overwrite,
    propagate_settings,
)

__all__ = [
    "build_month_entries",
    "days_to_overwrite",
    "ensure_month_initialized",
    "propagate_settings",
]
