"""Host wiring for the reminder engine via APScheduler.

Polls the reminder files and settings every 10s and pushes them into the
engine (resync is a no-op when nothing changed). A second job watches for
the host being suspended or the wall clock jumping, and makes the engine
recompute every timer from scratch when that happens.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from daybook import settings
from daybook.config import TZ
from daybook.notifiers import make_notifier
from daybook.scheduling.engine import ReminderEngine
from daybook.scheduling.reminders import list_reminders

log = logging.getLogger(__name__)

SYNC_INTERVAL_SECONDS = 10
RESUME_CHECK_SECONDS = 30
RESUME_DRIFT_SECONDS = 60.0


class ResumeDetector:
    """Flags a suspend/resume or clock change between two checks.

    The wall clock keeps advancing while the machine sleeps (and jumps when
    the time is changed); the monotonic clock does neither.
    """

    def __init__(
        self,
        *,
        wall: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        threshold: float = RESUME_DRIFT_SECONDS,
    ) -> None:
        self._wall = wall
        self._monotonic = monotonic
        self._threshold = threshold
        self._last_wall = wall()
        self._last_mono = monotonic()

    def check(self) -> bool:
        wall, mono = self._wall(), self._monotonic()
        drift = (wall - self._last_wall) - (mono - self._last_mono)
        self._last_wall, self._last_mono = wall, mono
        return abs(drift) > self._threshold


class ReminderSync:
    """Pushes the on-disk reminder set and settings into the engine."""

    def __init__(self, engine: ReminderEngine, channel: str) -> None:
        self._engine = engine
        self._channel = channel

    def __call__(self) -> None:
        current = settings.load()
        if current.channel != self._channel:
            log.info("delivery channel changed: %s -> %s", self._channel, current.channel)
            self._engine.notifier = make_notifier(current.channel)
            self._channel = current.channel
        self._engine.resync(list_reminders(), current.notifications_enabled)


def setup_scheduler() -> tuple[AsyncIOScheduler, ReminderEngine]:
    """Scheduler with the sync and resume-watch jobs registered, plus its engine."""
    scheduler = AsyncIOScheduler(timezone=TZ)
    current = settings.load()
    engine = ReminderEngine(scheduler, make_notifier(current.channel))
    sync_all = ReminderSync(engine, current.channel)
    detector = ResumeDetector()

    scheduler.add_job(
        sync_all,
        IntervalTrigger(seconds=SYNC_INTERVAL_SECONDS),
        id="sync_reminders",
        next_run_time=datetime.now(TZ),
        misfire_grace_time=None,
    )

    def watch_resume() -> None:
        if detector.check():
            log.info("clock jump detected (suspend/resume or time change)")
            engine.on_system_resume()

    scheduler.add_job(
        watch_resume,
        IntervalTrigger(seconds=RESUME_CHECK_SECONDS),
        id="watch_resume",
        misfire_grace_time=None,
    )

    return scheduler, engine
