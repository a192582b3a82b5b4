"""Global reminder settings -- the notifications on/off switch and delivery channel."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

from daybook.storage import STATE_DIR, read_json, write_json

SETTINGS_FILE: Path = STATE_DIR / "settings.json"
CHANNELS = ("desktop", "discord", "log")


@dataclass(frozen=True, slots=True)
class Settings:
    notifications_enabled: bool = True
    channel: str = "desktop"

    def __post_init__(self) -> None:
        if self.channel not in CHANNELS:
            raise ValueError(f"Invalid channel: {self.channel!r} (must be one of {', '.join(CHANNELS)})")


def load() -> Settings:
    """Read settings from disk; defaults when missing or unreadable."""
    data = read_json(SETTINGS_FILE)
    if data is None:
        return Settings()
    known = {f.name for f in fields(Settings)}
    try:
        return Settings(**{k: v for k, v in data.items() if k in known})
    except (TypeError, ValueError):
        return Settings()


def save(settings: Settings) -> None:
    write_json(SETTINGS_FILE, asdict(settings))


def set_notifications_enabled(enabled: bool) -> Settings:
    settings = replace(load(), notifications_enabled=enabled)
    save(settings)
    return settings


def set_channel(channel: str) -> Settings:
    settings = replace(load(), channel=channel)
    save(settings)
    return settings
