"""
Milk Tracker - Core Package

The calendar data model and settings-rollout engine behind a personal
milk-expense tracker: what volume and price apply to each day, and how
saving new defaults rewrites existing months.

DESIGN PRINCIPLES:
1. Nothing the user types is rejected; bad numbers become 0
2. Past days never silently receive new defaults under the future policy
3. In-memory state is authoritative; persistence is fire-and-forget
4. Every change is auditable
5. Storage layer is swappable
"""

from milk_tracker.orchestrator import MilkTracker, create_tracker

__version__ = "1.0.0"
__author__ = "Milk Tracker Team"

__all__ = ["MilkTracker", "create_tracker"]
