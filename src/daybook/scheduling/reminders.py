"""Reminder data model and markdown persistence.

A reminder fires at a local wall-clock time on one of three schedules:
once on a given date, every weekday (Mon-Fri), or weekly on one day.
The engine only ever reads these; edits go through the helpers below and the
running service picks them up on its next sync.
"""

from dataclasses import dataclass, replace
from datetime import date, time
from uuid import uuid4

from daybook.storage import DATA_DIR, read_md_dir, remove_md, write_md

REMINDERS_DIR = DATA_DIR / "reminders"

ONE_OFF = "one_off"
DAILY_WEEKDAYS = "daily_weekdays"
WEEKLY = "weekly"
SCHEDULE_KINDS = (ONE_OFF, DAILY_WEEKDAYS, WEEKLY)

# 0=Sunday, matching day_of_week
DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def parse_time(value: str) -> time:
    """Parse "HH:MM" into a time. Raises ValueError when malformed or out of range."""
    hours, sep, minutes = value.partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        raise ValueError(f"Invalid time: {value!r} (expected HH:MM)")
    return time(int(hours), int(minutes))


@dataclass(frozen=True, slots=True)
class ReminderSchedule:
    id: str
    title: str
    message: str
    kind: str
    time: str  # HH:MM local
    date: str | None = None  # YYYY-MM-DD, one_off only
    day_of_week: int | None = None  # 0-6, Sunday = 0, weekly only
    enabled: bool = True

    def describe(self) -> str:
        """Human-readable schedule, e.g. "weekly Sun 09:00"."""
        if self.kind == ONE_OFF:
            return f"once {self.date} {self.time}"
        if self.kind == DAILY_WEEKDAYS:
            return f"weekdays {self.time}"
        if self.kind == WEEKLY and self.day_of_week is not None and 0 <= self.day_of_week <= 6:
            return f"weekly {DAY_NAMES[self.day_of_week]} {self.time}"
        return f"{self.kind} {self.time}"

    @staticmethod
    def new(
        title: str,
        message: str,
        *,
        kind: str,
        time: str,
        date: str | None = None,
        day_of_week: int | None = None,
        enabled: bool = True,
    ) -> "ReminderSchedule":
        """Create a validated reminder with a fresh ID."""
        reminder = ReminderSchedule(
            id=uuid4().hex[:8],
            title=title,
            message=message,
            kind=kind,
            time=time,
            date=date,
            day_of_week=day_of_week,
            enabled=enabled,
        )
        validate(reminder)
        return reminder


def validate(reminder: ReminderSchedule) -> None:
    """Raise ValueError unless the reminder's fields agree with its kind."""
    if reminder.kind not in SCHEDULE_KINDS:
        raise ValueError(f"Invalid kind: {reminder.kind!r} (must be one of {', '.join(SCHEDULE_KINDS)})")
    parse_time(reminder.time)

    if reminder.kind == ONE_OFF:
        if reminder.date is None:
            raise ValueError("one_off reminders require a date")
        date.fromisoformat(reminder.date)
    elif reminder.date is not None:
        raise ValueError(f"date only applies to one_off reminders, not {reminder.kind}")

    if reminder.kind == WEEKLY:
        if reminder.day_of_week is None:
            raise ValueError("weekly reminders require a day_of_week")
        if not 0 <= reminder.day_of_week <= 6:
            raise ValueError(f"day_of_week must be 0-6 (0=Sunday), got {reminder.day_of_week}")
    elif reminder.day_of_week is not None:
        raise ValueError(f"day_of_week only applies to weekly reminders, not {reminder.kind}")


def append_reminder(reminder: ReminderSchedule) -> None:
    write_md(REMINDERS_DIR, reminder, reminder.title, f"add reminder {reminder.id}")


def list_reminders() -> list[ReminderSchedule]:
    return read_md_dir(REMINDERS_DIR, ReminderSchedule)


def get_reminder(reminder_id: str) -> ReminderSchedule | None:
    return next((r for r in list_reminders() if r.id == reminder_id), None)


def remove_reminder(reminder_id: str) -> bool:
    return remove_md(REMINDERS_DIR, reminder_id, f"remove reminder {reminder_id}")


def set_enabled(reminder_id: str, enabled: bool) -> ReminderSchedule | None:
    """Toggle a reminder on disk. Returns the updated reminder, None if not found."""
    reminder = get_reminder(reminder_id)
    if reminder is None:
        return None
    updated = replace(reminder, enabled=enabled)
    state = "enable" if enabled else "disable"
    write_md(REMINDERS_DIR, updated, updated.title, f"{state} reminder {reminder_id}")
    return updated
