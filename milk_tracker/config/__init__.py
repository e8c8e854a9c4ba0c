"""Configuration package."""

from milk_tracker.config.settings import TrackerSettings, get_config

__all__ = [
    "TrackerSettings",
    "get_config",
]
