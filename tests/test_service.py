"""Tests for service.py — disk sync, resume detection, and scheduler wiring."""

from daybook import settings
from daybook.notifiers import LogNotifier
from daybook.scheduling.reminders import ReminderSchedule, append_reminder, set_enabled
from daybook.scheduling.service import ReminderSync, ResumeDetector, setup_scheduler


class _Ticker:
    def __init__(self, value: float = 1000.0) -> None:
        self.value = value

    def __call__(self) -> float:
        return self.value


def test_resume_detector_quiet_when_clocks_agree():
    wall, mono = _Ticker(), _Ticker()
    detector = ResumeDetector(wall=wall, monotonic=mono)

    wall.value += 30
    mono.value += 30

    assert detector.check() is False


def test_resume_detector_flags_suspend():
    wall, mono = _Ticker(), _Ticker()
    detector = ResumeDetector(wall=wall, monotonic=mono)

    wall.value += 3600  # wall clock kept going while asleep
    mono.value += 30

    assert detector.check() is True
    wall.value += 30
    mono.value += 30
    assert detector.check() is False


def test_resume_detector_flags_clock_set_back():
    wall, mono = _Ticker(), _Ticker()
    detector = ResumeDetector(wall=wall, monotonic=mono)

    wall.value -= 600
    mono.value += 30

    assert detector.check() is True


def test_sync_pushes_disk_state_into_engine(data_dir, engine):
    standup = ReminderSchedule.new("Standup", "x", kind="daily_weekdays", time="09:00")
    append_reminder(standup)
    sync = ReminderSync(engine, "desktop")

    sync()
    assert engine.scheduled(standup.id) is not None

    set_enabled(standup.id, False)
    sync()
    assert engine.scheduled(standup.id) is None


def test_sync_honours_global_switch(data_dir, engine):
    standup = ReminderSchedule.new("Standup", "x", kind="daily_weekdays", time="09:00")
    append_reminder(standup)
    settings.set_notifications_enabled(False)

    ReminderSync(engine, "desktop")()

    assert engine.next_triggers() == {}


def test_sync_swaps_notifier_on_channel_change(data_dir, engine):
    settings.set_channel("log")

    ReminderSync(engine, "desktop")()

    assert isinstance(engine.notifier, LogNotifier)


def test_setup_scheduler_registers_jobs(data_dir):
    scheduler, engine = setup_scheduler()

    assert scheduler.get_job("sync_reminders") is not None
    assert scheduler.get_job("watch_resume") is not None
    assert engine.next_triggers() == {}
