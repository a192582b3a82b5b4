"""One cancellable APScheduler date job per reminder id."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

log = logging.getLogger(__name__)

# A timer whose instant passed while the host was suspended is dropped, not
# fired late; the resume resync recomputes it.
MISFIRE_GRACE_SECONDS = 30
MISFIRE_GRACE = timedelta(seconds=MISFIRE_GRACE_SECONDS)


def job_id(reminder_id: str) -> str:
    return f"rem_{reminder_id}"


class TimerRegistry:
    """Maps reminder id -> outstanding APScheduler job. At most one per id."""

    def __init__(self, scheduler: BaseScheduler, clock: Callable[[], datetime]) -> None:
        self._scheduler = scheduler
        self._clock = clock
        self._jobs: dict[str, Job] = {}

    def arm(
        self,
        reminder_id: str,
        delay: timedelta,
        callback: Callable[..., Any],
        *args: Any,
    ) -> datetime:
        """Run `callback(*args)` after `delay`, superseding any prior timer for the id."""
        self.cancel(reminder_id)
        # Absolute offset; aware local datetimes add timedeltas in wall-clock time
        run_at = self._clock().astimezone(timezone.utc) + delay
        self._jobs[reminder_id] = self._scheduler.add_job(
            callback,
            DateTrigger(run_date=run_at),
            args=args,
            id=job_id(reminder_id),
            replace_existing=True,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
        )
        return run_at

    def cancel(self, reminder_id: str) -> bool:
        """Drop the id's timer. False when there was none outstanding."""
        job = self._jobs.pop(reminder_id, None)
        if job is None:
            return False
        try:
            job.remove()
        except JobLookupError:
            # Already fired: APScheduler drops date jobs once they run
            log.debug("timer for %s already gone", reminder_id)
        return True

    def cancel_all(self) -> None:
        for reminder_id in list(self._jobs):
            self.cancel(reminder_id)

    def __contains__(self, reminder_id: object) -> bool:
        return reminder_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def active_ids(self) -> set[str]:
        return set(self._jobs)
