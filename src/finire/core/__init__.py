"""Functional core - pure business logic with no I/O."""

from .words import SEAL_THRESHOLD, count_words
from .days import (
    TOTAL_DAYS,
    DayRecord,
    DaySlot,
    JourneyStats,
    can_seal,
    current_day_number,
    day_label,
    derive_day_slots,
    journey_stats,
    progress_percent,
    seal_slots,
)
from .reminders import (
    ReminderPreference,
    ReminderTime,
    from_storage,
    local_time_in,
    parse_time_12h,
    select_due,
    to_storage,
)

__all__ = [
    # Words
    "SEAL_THRESHOLD",
    "count_words",
    # Days
    "TOTAL_DAYS",
    "DayRecord",
    "DaySlot",
    "JourneyStats",
    "can_seal",
    "current_day_number",
    "day_label",
    "derive_day_slots",
    "journey_stats",
    "progress_percent",
    "seal_slots",
    # Reminders
    "ReminderPreference",
    "ReminderTime",
    "from_storage",
    "local_time_in",
    "parse_time_12h",
    "select_due",
    "to_storage",
]
