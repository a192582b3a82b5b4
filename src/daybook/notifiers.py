"""Delivery channels the scheduler hands due reminders to."""

from __future__ import annotations

import logging
from typing import Protocol

import discord
from plyer import notification

from daybook.config import DISCORD_WEBHOOK_URL

log = logging.getLogger(__name__)

APP_NAME = "daybook"
_DESKTOP_TIMEOUT = 10  # seconds the toast stays up


class Notifier(Protocol):
    def is_permission_granted(self) -> bool: ...

    def request_permission(self) -> bool: ...

    def deliver(self, title: str, message: str) -> None:
        """Show the notification. Raises on failure."""
        ...


class DesktopNotifier:
    """Native notification through plyer (notify-send, Notification Center, toast)."""

    def is_permission_granted(self) -> bool:
        return True

    def request_permission(self) -> bool:
        return True

    def deliver(self, title: str, message: str) -> None:
        notification.notify(
            title=title,
            message=message,
            app_name=APP_NAME,
            timeout=_DESKTOP_TIMEOUT,
        )


class DiscordNotifier:
    """Posts reminders to a Discord channel through an incoming webhook."""

    def __init__(self, webhook_url: str | None) -> None:
        self._webhook_url = webhook_url

    def is_permission_granted(self) -> bool:
        return bool(self._webhook_url)

    def request_permission(self) -> bool:
        if not self._webhook_url:
            log.warning("Discord delivery needs DAYBOOK_DISCORD_WEBHOOK_URL")
        return self.is_permission_granted()

    def deliver(self, title: str, message: str) -> None:
        if not self._webhook_url:
            raise RuntimeError("Discord delivery needs DAYBOOK_DISCORD_WEBHOOK_URL")
        webhook = discord.SyncWebhook.from_url(self._webhook_url)
        embed = discord.Embed(title=title[:256], description=message[:4096])
        webhook.send(embed=embed, username=APP_NAME)


class LogNotifier:
    """Writes reminders to the log only."""

    def is_permission_granted(self) -> bool:
        return True

    def request_permission(self) -> bool:
        return True

    def deliver(self, title: str, message: str) -> None:
        log.info("reminder: %s -- %s", title, message)


def make_notifier(channel: str) -> Notifier:
    if channel == "desktop":
        return DesktopNotifier()
    if channel == "discord":
        return DiscordNotifier(DISCORD_WEBHOOK_URL)
    if channel == "log":
        return LogNotifier()
    raise ValueError(f"Unknown channel: {channel!r}")
