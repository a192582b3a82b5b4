"""Reminder scheduling engine.

Turns the current reminder list into capped APScheduler timers, delivers
each occurrence at most once, and re-arms recurring reminders after delivery.

Per reminder: unscheduled -> armed -> (partial fire -> armed) or
(final fire -> delivered -> armed for next occurrence | terminal for one-offs).

Waits longer than `max_delay` are chained: each timer segment is at most
`max_delay` long and the remaining wait is re-armed when a segment fires.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.base import BaseScheduler

from daybook.config import TZ
from daybook.notifiers import Notifier
from daybook.scheduling.guard import DeliveryGuard
from daybook.scheduling.reminders import ONE_OFF, ReminderSchedule
from daybook.scheduling.timers import MISFIRE_GRACE, TimerRegistry
from daybook.scheduling.triggers import compute_next_trigger, occurrence_key

log = logging.getLogger(__name__)

MAX_TIMER_DELAY = timedelta(hours=24)
RESCHEDULE_BUFFER = timedelta(seconds=60)


@dataclass(frozen=True, slots=True)
class ScheduledFire:
    """One outstanding timer segment for a reminder."""

    reminder_id: str
    trigger_at: datetime | None  # None while waiting out the reschedule buffer
    armed_at: datetime
    full_delay: timedelta
    remaining_delay: timedelta
    segment: timedelta
    token: int

    @property
    def partial(self) -> bool:
        return self.segment < self.remaining_delay


def _until(target: datetime, now: datetime) -> timedelta:
    # Same-tzinfo subtraction is wall-clock; compare absolute instants instead
    return target.astimezone(timezone.utc) - now.astimezone(timezone.utc)


class ReminderEngine:
    """Owns every reminder timer and the delivery record for one process.

    Timer callbacks and resync/teardown calls may arrive on different threads;
    all state changes happen under one lock. Delivery itself runs outside the
    lock, after the occurrence has been claimed in the guard.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] | None = None,
        max_delay: timedelta = MAX_TIMER_DELAY,
        reschedule_buffer: timedelta = RESCHEDULE_BUFFER,
    ) -> None:
        self._clock = clock or (lambda: datetime.now(TZ))
        self._timers = TimerRegistry(scheduler, self._clock)
        self._guard = DeliveryGuard()
        self._notifier = notifier
        self.max_delay = max_delay
        self.reschedule_buffer = reschedule_buffer
        self._fires: dict[str, ScheduledFire] = {}
        self._reminders: dict[str, ReminderSchedule] = {}
        self._enabled = True
        self._tokens = itertools.count(1)
        self._lock = threading.RLock()

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @notifier.setter
    def notifier(self, notifier: Notifier) -> None:
        with self._lock:
            self._notifier = notifier

    # --- Caller entry points ---

    def resync(self, reminders: Iterable[ReminderSchedule], globally_enabled: bool = True) -> None:
        """Bring timers in line with `reminders`. Unchanged, still-valid timers are kept."""
        with self._lock:
            now = self._clock()
            previous = self._reminders
            self._reminders = {r.id: r for r in reminders}
            self._enabled = globally_enabled
            active = {
                rid: r
                for rid, r in self._reminders.items()
                if globally_enabled and r.enabled
            }
            for rid in set(self._fires) | set(previous):
                if rid not in active:
                    self._drop(rid)
            for rid, reminder in active.items():
                self._sync_one(reminder, previous.get(rid), now)

    def on_system_resume(self) -> None:
        """Discard every outstanding timer and recompute from the current clock."""
        with self._lock:
            log.info("resume: rescheduling %d reminder(s) from scratch", len(self._reminders))
            self._timers.cancel_all()
            self._fires.clear()
            reminders = list(self._reminders.values())
            self._reminders = {}
            self.resync(reminders, self._enabled)

    def teardown(self) -> None:
        """Cancel all timers and forget all state. Safe to call repeatedly."""
        with self._lock:
            if self._fires:
                log.info("teardown: cancelling %d timer(s)", len(self._fires))
            self._timers.cancel_all()
            self._fires.clear()
            self._reminders.clear()
            self._guard.clear()

    # --- Introspection ---

    def scheduled(self, reminder_id: str) -> ScheduledFire | None:
        with self._lock:
            return self._fires.get(reminder_id)

    def next_triggers(self) -> dict[str, datetime]:
        """Pending trigger instants by reminder id (buffer waits excluded)."""
        with self._lock:
            return {
                rid: fire.trigger_at
                for rid, fire in self._fires.items()
                if fire.trigger_at is not None
            }

    # --- Internals (call with the lock held) ---

    def _drop(self, reminder_id: str) -> None:
        if self._timers.cancel(reminder_id):
            log.info("cancelled timer for %s", reminder_id)
        self._fires.pop(reminder_id, None)
        self._guard.forget(reminder_id)

    def _sync_one(
        self,
        reminder: ReminderSchedule,
        before: ReminderSchedule | None,
        now: datetime,
    ) -> None:
        fire = self._fires.get(reminder.id)
        if fire is not None and reminder == before:
            if _until(fire.armed_at, now) + fire.segment < -MISFIRE_GRACE:
                # APScheduler skipped the job; nothing will call back for it
                log.warning("timer for %s missed its run time, re-arming", reminder.id)
            elif fire.trigger_at is None:
                return  # waiting out the reschedule buffer
            elif fire.trigger_at <= now:
                return  # due now; the pending callback delivers it
            elif compute_next_trigger(reminder, now) == fire.trigger_at:
                return
        self._schedule(reminder, now)

    def _schedule(self, reminder: ReminderSchedule, now: datetime) -> None:
        trigger = compute_next_trigger(reminder, now)
        if trigger is None:
            self._timers.cancel(reminder.id)
            self._fires.pop(reminder.id, None)
            log.debug("no upcoming trigger for %s (%s)", reminder.id, reminder.describe())
            return
        full = _until(trigger, now)
        if full < timedelta(0):
            log.warning("trigger for %s is in the past, leaving idle", reminder.id)
            return
        self._arm_wait(reminder.id, trigger, full, full, now)
        log.info("armed %s for %s", reminder.id, trigger.isoformat())

    def _arm_wait(
        self,
        reminder_id: str,
        trigger_at: datetime,
        full_delay: timedelta,
        remaining: timedelta,
        now: datetime,
    ) -> None:
        segment = min(remaining, self.max_delay)
        token = next(self._tokens)
        self._fires[reminder_id] = ScheduledFire(
            reminder_id=reminder_id,
            trigger_at=trigger_at,
            armed_at=now,
            full_delay=full_delay,
            remaining_delay=remaining,
            segment=segment,
            token=token,
        )
        self._timers.arm(reminder_id, segment, self._on_fire, reminder_id, token)

    def _arm_buffer(self, reminder_id: str) -> None:
        token = next(self._tokens)
        self._fires[reminder_id] = ScheduledFire(
            reminder_id=reminder_id,
            trigger_at=None,
            armed_at=self._clock(),
            full_delay=self.reschedule_buffer,
            remaining_delay=self.reschedule_buffer,
            segment=self.reschedule_buffer,
            token=token,
        )
        self._timers.arm(
            reminder_id, self.reschedule_buffer, self._on_buffer_elapsed, reminder_id, token
        )

    def _take(self, reminder_id: str, token: int) -> ScheduledFire | None:
        """Current fire for the id if `token` still owns it; stale callbacks get None."""
        fire = self._fires.get(reminder_id)
        if fire is None or fire.token != token:
            log.debug("stale timer for %s ignored", reminder_id)
            return None
        return fire

    # --- Timer callbacks ---

    def _on_fire(self, reminder_id: str, token: int) -> None:
        with self._lock:
            fire = self._take(reminder_id, token)
            if fire is None or fire.trigger_at is None:
                return
            if fire.partial:
                remaining = fire.remaining_delay - fire.segment
                log.debug("partial wait elapsed for %s, %s left", reminder_id, remaining)
                self._arm_wait(reminder_id, fire.trigger_at, fire.full_delay, remaining, self._clock())
                return

            del self._fires[reminder_id]
            self._timers.cancel(reminder_id)
            reminder = self._reminders.get(reminder_id)
            if reminder is None:
                return
            key = occurrence_key(reminder_id, fire.trigger_at)
            previous = self._guard.last_delivered(reminder_id)
            claimed = self._guard.should_deliver(reminder_id, key)
            if claimed:
                self._guard.record_delivered(reminder_id, key)
            else:
                log.info("occurrence %s already delivered, skipping", key)
            notifier = self._notifier

        if claimed and not self._deliver(notifier, reminder, key):
            with self._lock:
                self._unclaim(reminder_id, key, previous)

        with self._lock:
            self._after_delivery(reminder)

    def _on_buffer_elapsed(self, reminder_id: str, token: int) -> None:
        with self._lock:
            fire = self._take(reminder_id, token)
            if fire is None:
                return
            del self._fires[reminder_id]
            self._timers.cancel(reminder_id)
            reminder = self._reminders.get(reminder_id)
            if reminder is None or not (self._enabled and reminder.enabled):
                return
            self._schedule(reminder, self._clock())

    def _after_delivery(self, reminder: ReminderSchedule) -> None:
        if reminder.kind == ONE_OFF:
            log.debug("one-off %s done", reminder.id)
            return
        current = self._reminders.get(reminder.id)
        if current is None or not (self._enabled and current.enabled):
            log.debug("%s cancelled during delivery, not re-arming", reminder.id)
            return
        if reminder.id in self._fires:
            return  # a resync during delivery already re-armed it
        self._arm_buffer(reminder.id)

    def _unclaim(self, reminder_id: str, key: str, previous: str | None) -> None:
        if self._guard.last_delivered(reminder_id) != key:
            return
        if previous is None:
            self._guard.forget(reminder_id)
        else:
            self._guard.record_delivered(reminder_id, previous)

    @staticmethod
    def _deliver(notifier: Notifier, reminder: ReminderSchedule, key: str) -> bool:
        """Ask for permission, then deliver. Failures are logged, never raised."""
        try:
            granted = notifier.is_permission_granted() or notifier.request_permission()
        except Exception:
            log.exception("permission check failed for %s", key)
            return False
        if not granted:
            log.warning("notification permission not granted, missed %s", key)
            return False
        try:
            notifier.deliver(reminder.title, reminder.message)
        except Exception:
            log.exception("delivery failed for %s", key)
            return False
        log.info("delivered %s", key)
        return True
