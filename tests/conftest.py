"""Shared fixtures for daybook tests."""

import os

os.environ.setdefault("DAYBOOK_TIMEZONE", "America/Los_Angeles")

from datetime import datetime, timedelta  # noqa: E402
from zoneinfo import ZoneInfo  # noqa: E402

import pytest  # noqa: E402
from apscheduler.schedulers.background import BackgroundScheduler  # noqa: E402


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    """Redirect all data file paths to a temp directory."""
    import daybook.scheduling.reminders as reminders_mod
    import daybook.settings as settings_mod
    import daybook.storage as storage_mod

    state_dir = tmp_path / "state"
    monkeypatch.setattr(storage_mod, "DATA_DIR", tmp_path)
    monkeypatch.setattr(storage_mod, "STATE_DIR", state_dir)
    monkeypatch.setattr(storage_mod, "BACKUPS_DIR", tmp_path / "backups")
    monkeypatch.setattr(reminders_mod, "REMINDERS_DIR", tmp_path / "reminders")
    monkeypatch.setattr(settings_mod, "SETTINGS_FILE", state_dir / "settings.json")
    return tmp_path


class FakeClock:
    """Settable stand-in for `datetime.now(TZ)`."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class RecordingNotifier:
    def __init__(self, *, granted: bool = True, grant_on_request: bool = False, fail: bool = False):
        self.granted = granted
        self.grant_on_request = grant_on_request
        self.fail = fail
        self.delivered: list[tuple[str, str]] = []
        self.requests = 0
        self.on_deliver = None

    def is_permission_granted(self) -> bool:
        return self.granted

    def request_permission(self) -> bool:
        self.requests += 1
        if self.grant_on_request:
            self.granted = True
        return self.granted

    def deliver(self, title: str, message: str) -> None:
        if self.on_deliver is not None:
            self.on_deliver()
        if self.fail:
            raise RuntimeError("notification backend unavailable")
        self.delivered.append((title, message))


@pytest.fixture()
def scheduler():
    """A started-but-paused scheduler: jobs are stored, never run on their own."""
    sched = BackgroundScheduler(timezone="America/Los_Angeles")
    sched.start(paused=True)
    yield sched
    sched.shutdown(wait=False)


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def clock():
    """Starts at Fri 2026-01-16 08:00 Pacific."""
    return FakeClock(datetime(2026, 1, 16, 8, 0, tzinfo=ZoneInfo("America/Los_Angeles")))


@pytest.fixture()
def engine(scheduler, notifier, clock):
    from daybook.scheduling.engine import ReminderEngine

    eng = ReminderEngine(scheduler, notifier, clock=clock)
    yield eng
    eng.teardown()
