"""Next-trigger calculation for reminder schedules.

All arithmetic is calendar date + local wall-clock time, so a reminder fires
at its stated local time across month ends and UTC offset changes.
"""

import logging
from datetime import date, datetime, timedelta

from daybook.scheduling.reminders import (
    DAILY_WEEKDAYS,
    ONE_OFF,
    WEEKLY,
    ReminderSchedule,
    parse_time,
)

log = logging.getLogger(__name__)

# day_of_week is 0=Sunday; date.weekday() is 0=Monday.
_SATURDAY = 6
_SUNDAY = 0


def sunday_weekday(day: date) -> int:
    """Day of week with Sunday = 0."""
    return (day.weekday() + 1) % 7


def _at(day: date, reminder: ReminderSchedule, now: datetime) -> datetime:
    return datetime.combine(day, parse_time(reminder.time), tzinfo=now.tzinfo)


def _next_one_off(reminder: ReminderSchedule, now: datetime) -> datetime | None:
    if reminder.date is None:
        raise ValueError("one_off reminder has no date")
    target = _at(date.fromisoformat(reminder.date), reminder, now)
    if target <= now:
        return None
    return target


def _next_weekday(reminder: ReminderSchedule, now: datetime) -> datetime:
    day = now.date()
    target = _at(day, reminder, now)
    if target <= now or sunday_weekday(day) in (_SATURDAY, _SUNDAY):
        day += timedelta(days=1)
        dow = sunday_weekday(day)
        if dow == _SUNDAY:
            day += timedelta(days=1)
        elif dow == _SATURDAY:
            day += timedelta(days=2)
        target = _at(day, reminder, now)
    return target


def _next_weekly(reminder: ReminderSchedule, now: datetime) -> datetime:
    if reminder.day_of_week is None or not 0 <= reminder.day_of_week <= 6:
        raise ValueError(f"weekly reminder needs day_of_week 0-6, got {reminder.day_of_week!r}")
    days_until = (reminder.day_of_week - sunday_weekday(now.date())) % 7
    if days_until == 0 and _at(now.date(), reminder, now) <= now:
        days_until = 7
    return _at(now.date() + timedelta(days=days_until), reminder, now)


def compute_next_trigger(reminder: ReminderSchedule, now: datetime) -> datetime | None:
    """Next local instant the reminder should fire strictly after `now`.

    None when a one-off has already passed or the reminder is malformed.
    `now` must be timezone-aware; the result shares its tzinfo.
    """
    try:
        if reminder.kind == ONE_OFF:
            return _next_one_off(reminder, now)
        if reminder.kind == DAILY_WEEKDAYS:
            return _next_weekday(reminder, now)
        if reminder.kind == WEEKLY:
            return _next_weekly(reminder, now)
        raise ValueError(f"unknown schedule kind {reminder.kind!r}")
    except (AttributeError, TypeError, ValueError) as e:
        log.warning("malformed reminder %s: %s", getattr(reminder, "id", "?"), e)
        return None


def occurrence_key(reminder_id: str, trigger_at: datetime) -> str:
    """Dedup token for one occurrence: reminder id + local date of its trigger."""
    return f"{reminder_id}-{trigger_at.date().isoformat()}"
