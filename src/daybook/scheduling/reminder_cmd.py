"""CLI handler for `daybook reminder` subcommand."""

import argparse
import sys
from datetime import datetime

from daybook.config import TZ
from daybook.scheduling.reminders import (
    SCHEDULE_KINDS,
    ReminderSchedule,
    append_reminder,
    list_reminders,
    remove_reminder,
    set_enabled,
)
from daybook.scheduling.triggers import compute_next_trigger


def _fmt_next(r: ReminderSchedule, now: datetime) -> str:
    if not r.enabled:
        return "off"
    trigger = compute_next_trigger(r, now)
    if trigger is None:
        return "done"
    return trigger.strftime("%a %Y-%m-%d %H:%M")


def run_reminder_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="daybook reminder")
    sub = parser.add_subparsers(dest="action")

    add_p = sub.add_parser("add", help="Add a reminder")
    add_p.add_argument("--title", "-t", required=True, help="Notification title")
    add_p.add_argument("--message", "-m", default="", help="Notification body")
    add_p.add_argument("--kind", "-k", required=True, choices=SCHEDULE_KINDS)
    add_p.add_argument("--time", required=True, help="Local time HH:MM")
    add_p.add_argument("--date", default=None, help="YYYY-MM-DD (one_off)")
    add_p.add_argument(
        "--day", type=int, default=None, help="Day of week 0-6, 0=Sunday (weekly)"
    )
    add_p.add_argument("--disabled", action="store_true", help="Create switched off")

    sub.add_parser("list", help="Show all reminders with their next trigger")

    cancel_p = sub.add_parser("cancel", help="Delete a reminder by ID")
    cancel_p.add_argument("id", help="Reminder ID")

    enable_p = sub.add_parser("enable", help="Switch a reminder on")
    enable_p.add_argument("id", help="Reminder ID")

    disable_p = sub.add_parser("disable", help="Switch a reminder off")
    disable_p.add_argument("id", help="Reminder ID")

    args = parser.parse_args(argv)

    if args.action == "add":
        _handle_add(args)
    elif args.action == "list":
        _handle_list()
    elif args.action == "cancel":
        _handle_cancel(args.id)
    elif args.action in ("enable", "disable"):
        _handle_toggle(args.id, args.action == "enable")
    else:
        parser.print_help()
        sys.exit(1)


def _handle_add(args: argparse.Namespace) -> None:
    try:
        reminder = ReminderSchedule.new(
            args.title,
            args.message,
            kind=args.kind,
            time=args.time,
            date=args.date,
            day_of_week=args.day,
            enabled=not args.disabled,
        )
    except ValueError as e:
        print(f"invalid reminder: {e}")
        sys.exit(1)
    append_reminder(reminder)
    print(f"scheduled {reminder.id}: {reminder.describe()} -- {reminder.title}")


def _handle_list() -> None:
    reminders = list_reminders()
    if not reminders:
        print("no reminders")
        return
    now = datetime.now(TZ)
    for r in reminders:
        print(f"  {r.id}  {r.describe():24s}  next: {_fmt_next(r, now):20s}  {r.title}")


def _handle_cancel(reminder_id: str) -> None:
    if remove_reminder(reminder_id):
        print(f"cancelled {reminder_id}")
    else:
        print(f"reminder {reminder_id} not found")
        sys.exit(1)


def _handle_toggle(reminder_id: str, enabled: bool) -> None:
    if set_enabled(reminder_id, enabled) is None:
        print(f"reminder {reminder_id} not found")
        sys.exit(1)
    print(f"{'enabled' if enabled else 'disabled'} {reminder_id}")
