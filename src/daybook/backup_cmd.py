"""CLI handler for `daybook backup` subcommand."""

import argparse
import sys

from daybook.scheduling import reminders
from daybook.storage import create_backup, list_backups, restore_backup


def run_backup_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="daybook backup")
    sub = parser.add_subparsers(dest="action")
    sub.add_parser("create", help="Snapshot reminders now")
    sub.add_parser("list", help="Show backups, newest first")
    restore_p = sub.add_parser("restore", help="Replace reminders with a backup")
    restore_p.add_argument("name", help="Backup name from `daybook backup list`")
    args = parser.parse_args(argv)

    if args.action == "create":
        name = create_backup(reminders.REMINDERS_DIR)
        print(f"created {name}" if name else "nothing to back up")
    elif args.action == "list":
        names = list_backups()
        if not names:
            print("no backups")
        for name in names:
            print(f"  {name}")
    elif args.action == "restore":
        try:
            restore_backup(args.name, reminders.REMINDERS_DIR)
        except FileNotFoundError as e:
            print(str(e))
            sys.exit(1)
        print(f"restored {args.name}")
    else:
        parser.print_help()
        sys.exit(1)
