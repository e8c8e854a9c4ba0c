"""Month queries package."""

from milk_tracker.queries.totals import compute_month_totals, month_label, month_options

__all__ = ["compute_month_totals", "month_label", "month_options"]
