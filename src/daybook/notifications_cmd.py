"""CLI handler for `daybook notifications` subcommand."""

import argparse

from daybook import settings


def run_notifications_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="daybook notifications")
    parser.add_argument("action", choices=["on", "off", "status"])
    parser.add_argument(
        "--channel", choices=settings.CHANNELS, default=None, help="Delivery channel"
    )
    args = parser.parse_args(argv)

    if args.action == "on":
        settings.set_notifications_enabled(True)
    elif args.action == "off":
        settings.set_notifications_enabled(False)
    if args.channel is not None:
        settings.set_channel(args.channel)

    current = settings.load()
    state = "on" if current.notifications_enabled else "off"
    print(f"notifications {state} (channel: {current.channel})")
