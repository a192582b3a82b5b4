"""Tests for reminders.py — ReminderSchedule model and markdown persistence."""

import pytest

from daybook.scheduling.reminders import (
    ReminderSchedule,
    append_reminder,
    get_reminder,
    list_reminders,
    remove_reminder,
    set_enabled,
)


def test_new_weekly():
    reminder = ReminderSchedule.new(
        "Brag doc", "Log this week's wins", kind="weekly", time="16:30", day_of_week=5
    )

    assert len(reminder.id) == 8
    assert reminder.enabled is True
    assert reminder.describe() == "weekly Fri 16:30"


def test_new_one_off():
    reminder = ReminderSchedule.new("Review", "", kind="one_off", time="10:00", date="2026-03-01")

    assert reminder.describe() == "once 2026-03-01 10:00"


def test_new_weekdays():
    reminder = ReminderSchedule.new("Standup", "Post update", kind="daily_weekdays", time="09:00")

    assert reminder.describe() == "weekdays 09:00"


@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"kind": "monthly", "time": "09:00"}, "Invalid kind"),
        ({"kind": "daily_weekdays", "time": "9"}, "Invalid time"),
        ({"kind": "daily_weekdays", "time": "24:00"}, "hour"),
        ({"kind": "daily_weekdays", "time": "09:60"}, "minute"),
        ({"kind": "one_off", "time": "09:00"}, "require a date"),
        ({"kind": "one_off", "time": "09:00", "date": "2026-02-30"}, "day"),
        ({"kind": "weekly", "time": "09:00"}, "require a day_of_week"),
        ({"kind": "weekly", "time": "09:00", "day_of_week": 7}, "0-6"),
        ({"kind": "daily_weekdays", "time": "09:00", "date": "2026-01-01"}, "only applies"),
        ({"kind": "one_off", "time": "09:00", "date": "2026-01-01", "day_of_week": 1}, "only applies"),
    ],
)
def test_new_rejects_invalid(kwargs, match):
    with pytest.raises(ValueError, match=match):
        ReminderSchedule.new("t", "m", **kwargs)


def test_plain_constructor_is_permissive():
    reminder = ReminderSchedule(id="x", title="t", message="m", kind="weekly", time="09:00")

    assert reminder.day_of_week is None
    assert reminder.describe() == "weekly 09:00"


def test_append_and_list_reminders(data_dir):
    r1 = ReminderSchedule.new("First", "one", kind="daily_weekdays", time="09:00")
    r2 = ReminderSchedule.new("Second", "two", kind="weekly", time="10:00", day_of_week=0)

    append_reminder(r1)
    append_reminder(r2)

    assert list_reminders() == [r1, r2]


def test_list_reminders_empty(data_dir):
    assert list_reminders() == []


def test_roundtrip_preserves_schedule_fields(data_dir):
    original = ReminderSchedule.new(
        "Dentist", "Bring insurance card", kind="one_off", time="08:05", date="2026-04-02"
    )
    append_reminder(original)

    loaded = list_reminders()[0]

    assert loaded == original
    assert loaded.time == "08:05"
    assert loaded.date == "2026-04-02"


def test_roundtrip_sunday_and_disabled(data_dir):
    original = ReminderSchedule.new(
        "Plan week", "", kind="weekly", time="18:00", day_of_week=0, enabled=False
    )
    append_reminder(original)

    loaded = get_reminder(original.id)

    assert loaded == original
    assert loaded.day_of_week == 0
    assert loaded.enabled is False


def test_remove_reminder(data_dir):
    r = ReminderSchedule.new("Temp", "x", kind="daily_weekdays", time="09:00")
    append_reminder(r)

    assert remove_reminder(r.id) is True
    assert list_reminders() == []


def test_remove_reminder_not_found(data_dir):
    assert remove_reminder("nonexistent") is False


def test_set_enabled_toggles_in_place(data_dir):
    r = ReminderSchedule.new("Standup", "x", kind="daily_weekdays", time="09:00")
    append_reminder(r)

    updated = set_enabled(r.id, False)

    assert updated is not None and updated.enabled is False
    assert list_reminders() == [updated]
    assert len(list((data_dir / "reminders").glob("*.md"))) == 1


def test_title_with_dashes_loads_and_removes(data_dir):
    r = ReminderSchedule.new("Standup --- daily", "x", kind="daily_weekdays", time="09:00")
    append_reminder(r)

    assert list_reminders() == [r]
    assert remove_reminder(r.id) is True
    assert list_reminders() == []


def test_set_enabled_not_found(data_dir):
    assert set_enabled("nope", True) is None


def test_hand_edited_malformed_file_still_loads(data_dir):
    d = data_dir / "reminders"
    d.mkdir()
    (d / "broken.md").write_text('---\nid: "b1"\ntitle: "Broken"\nkind: "weekly"\ntime: "09:00"\n---\nno day\n')

    loaded = list_reminders()

    assert loaded[0].id == "b1"
    assert loaded[0].day_of_week is None
