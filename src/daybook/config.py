"""User-configurable values loaded from environment variables."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


def _detect_local_tz() -> str:
    """Detect the system's IANA timezone name. Falls back to UTC."""
    # Debian/Ubuntu: plain text file with IANA name
    etc_tz = Path("/etc/timezone")
    if etc_tz.exists():
        name = etc_tz.read_text().strip()
        if name:
            return name

    # Most Linux/WSL/macOS: /etc/localtime is a symlink into zoneinfo
    localtime = Path("/etc/localtime")
    if localtime.is_symlink():
        target = str(localtime.resolve())
        marker = "/zoneinfo/"
        idx = target.find(marker)
        if idx != -1:
            return target[idx + len(marker) :]

    return "UTC"


TZ: ZoneInfo = ZoneInfo(os.environ.get("DAYBOOK_TIMEZONE") or _detect_local_tz())
DATA_DIR: Path = Path(os.environ.get("DAYBOOK_DATA_DIR") or Path.home() / ".daybook").expanduser()
DISCORD_WEBHOOK_URL: str | None = os.environ.get("DAYBOOK_DISCORD_WEBHOOK_URL") or None
LOG_LEVEL: str = os.environ.get("DAYBOOK_LOG_LEVEL", "INFO").upper()
