"""Entry point for daybook."""

from __future__ import annotations

import asyncio
import atexit
import logging
import os
import signal
import sys
from pathlib import Path

import discord

from daybook.config import LOG_LEVEL
from daybook.storage import STATE_DIR

PID_FILE = STATE_DIR / "daybook.pid"


HELP = """\
daybook -- local recurring reminders

commands:
  daybook run                    Run the reminder scheduler
  daybook reminder add           Add a reminder (one_off, daily_weekdays, weekly)
  daybook reminder list          Show reminders and their next trigger
  daybook reminder cancel        Delete a reminder by ID
  daybook reminder enable        Switch a reminder on
  daybook reminder disable       Switch a reminder off
  daybook notifications on|off   Turn all notifications on or off
  daybook notifications status   Show notification settings
  daybook backup create|list     Snapshot or list reminder backups
  daybook backup restore         Restore reminders from a backup
  daybook help                   Show this help message

examples:
  daybook reminder add -k daily_weekdays --time 09:00 -t "Standup" -m "Post your update"
  daybook reminder add -k weekly --day 5 --time 16:30 -t "Brag doc" -m "Log this week's wins"
  daybook reminder add -k one_off --date 2026-03-01 --time 10:00 -t "Review"
  daybook notifications status --channel discord
"""


log = logging.getLogger(__name__)


def _check_already_running() -> None:
    STATE_DIR.mkdir(parents=True, exist_ok=True)
    if PID_FILE.exists():
        pid = int(PID_FILE.read_text().strip())
        proc_cmdline = Path(f"/proc/{pid}/cmdline")
        if proc_cmdline.exists() and "daybook" in proc_cmdline.read_bytes().decode(errors="replace"):
            print(f"daybook is already running (pid {pid})")
            raise SystemExit(1)
    PID_FILE.write_text(str(os.getpid()))
    atexit.register(PID_FILE.unlink, missing_ok=True)


def _dispatch_subcommand() -> bool:
    """Route CLI subcommands. Returns True if handled."""
    if len(sys.argv) < 2:
        return False
    cmd = sys.argv[1]
    rest = sys.argv[2:]
    if cmd in ("help", "--help", "-h"):
        print(HELP)
        return True
    routes: dict[str, tuple[str, str]] = {
        "reminder": ("daybook.scheduling.reminder_cmd", "run_reminder_command"),
        "notifications": ("daybook.notifications_cmd", "run_notifications_command"),
        "backup": ("daybook.backup_cmd", "run_backup_command"),
    }
    if cmd in routes:
        from importlib import import_module

        mod_path, func_name = routes[cmd]
        getattr(import_module(mod_path), func_name)(rest)
        return True
    if cmd != "run":
        print(f"unknown command: {cmd}\n")
        print(HELP)
        raise SystemExit(1)
    return False


def _backup_on_start() -> None:
    from daybook.scheduling.reminders import REMINDERS_DIR
    from daybook.storage import create_backup

    try:
        create_backup(REMINDERS_DIR)
    except OSError:
        log.exception("Failed to create backup")


async def _run() -> None:
    """Run the scheduler until SIGINT/SIGTERM, then tear every timer down."""
    from daybook.scheduling.service import setup_scheduler

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    loop.add_signal_handler(signal.SIGTERM, stop.set)
    loop.add_signal_handler(signal.SIGINT, stop.set)

    scheduler, engine = setup_scheduler()
    scheduler.start()
    log.info("daybook scheduler started")
    try:
        await stop.wait()
    finally:
        engine.teardown()
        scheduler.shutdown(wait=False)
        log.info("daybook scheduler stopped")


def main() -> None:
    if _dispatch_subcommand():
        return

    discord.utils.setup_logging(level=getattr(logging, LOG_LEVEL, logging.INFO))
    _check_already_running()
    _backup_on_start()
    asyncio.run(_run())


if __name__ == "__main__":
    main()
