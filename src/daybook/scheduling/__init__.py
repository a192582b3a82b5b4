"""Scheduling: reminder model, trigger calculation, and the APScheduler-backed engine."""

from daybook.scheduling.engine import ReminderEngine, ScheduledFire
from daybook.scheduling.reminders import (
    ReminderSchedule,
    append_reminder,
    list_reminders,
    remove_reminder,
    set_enabled,
)
from daybook.scheduling.service import setup_scheduler
from daybook.scheduling.triggers import compute_next_trigger

__all__ = [
    "ReminderEngine",
    "ReminderSchedule",
    "ScheduledFire",
    "append_reminder",
    "compute_next_trigger",
    "list_reminders",
    "remove_reminder",
    "set_enabled",
    "setup_scheduler",
]
