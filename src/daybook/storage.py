"""Shared markdown I/O, JSON state I/O, backups, and git helpers for data files."""

import dataclasses
import json
import logging
import os
import re
import shutil
import subprocess
import tempfile
from dataclasses import asdict
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import TypeVar

import yaml

from daybook.config import DATA_DIR as DATA_DIR
from daybook.config import TZ as TZ

STATE_DIR = DATA_DIR / "state"
BACKUPS_DIR = DATA_DIR / "backups"
BACKUP_RETENTION_DAYS = 7

T = TypeVar("T")
log = logging.getLogger(__name__)


def _find_repo(filepath: Path) -> Path | None:
    """Walk up from filepath to find the nearest git repo root."""
    for parent in filepath.parents:
        if (parent / ".git").is_dir():
            return parent
    return None


def git_commit(filepath: Path, message: str) -> None:
    """No-op when no git repo is found above filepath."""
    repo = _find_repo(filepath)
    if repo is None:
        return
    rel = filepath.relative_to(repo)
    subprocess.run(["git", "add", str(rel)], cwd=repo, capture_output=True)
    subprocess.run(
        ["git", "commit", "-m", message, "--", str(rel)],
        cwd=repo,
        capture_output=True,
    )


def git_rm_commit(filepath: Path, message: str) -> None:
    """Remove a file from git and commit. No-op when no git repo is found."""
    repo = _find_repo(filepath)
    if repo is None:
        return
    rel = filepath.relative_to(repo)
    subprocess.run(["git", "rm", "-f", str(rel)], cwd=repo, capture_output=True)
    subprocess.run(
        ["git", "commit", "-m", message, "--", str(rel)],
        cwd=repo,
        capture_output=True,
    )


# --- Markdown I/O ---


def _slugify(text: str, max_len: int = 50) -> str:
    """Convert text to a filesystem-safe slug."""
    slug = text.lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")
    if len(slug) > max_len:
        slug = slug[:max_len].rstrip("-")
    return slug or "untitled"


def _serialize_md(item: T) -> str:
    """Build YAML frontmatter + markdown body from a dataclass with a `message` field."""
    data = asdict(item)  # type: ignore[call-overload]
    message = data.pop("message")
    fields = dataclasses.fields(item)  # type: ignore[arg-type]
    defaults = {
        f.name: f.default
        for f in fields
        if f.default is not dataclasses.MISSING and f.name != "message"
    }

    lines = ["---"]
    for key, value in data.items():
        if key in defaults and value == defaults[key]:
            continue
        if value is None:
            lines.append(f"{key}: null")
        elif isinstance(value, str):
            lines.append(f"{key}: {json.dumps(value)}")
        elif isinstance(value, bool):
            lines.append(f"{key}: {str(value).lower()}")
        else:
            lines.append(f"{key}: {value}")
    lines.append("---")
    lines.append(message)
    return "\n".join(lines) + "\n"


def _is_str_field(field: dataclasses.Field) -> bool:
    # Annotations are strings under `from __future__ import annotations`
    return field.type in (str, "str", "str | None") or field.type == str | None


def _split_frontmatter(text: str) -> tuple[str, str] | None:
    """(yaml, body) split on whole `---` lines, so values may contain `---`."""
    if not text.startswith("---\n"):
        return None
    head, sep, body = text[4:].partition("\n---\n")
    if not sep:
        if not head.endswith("\n---"):
            return None
        head, body = head[: -len("\n---")], ""
    return head, body


def _parse_md(text: str, cls: type[T]) -> T:
    """Parse a single markdown file with YAML frontmatter into a dataclass."""
    parts = _split_frontmatter(text)
    if parts is None:
        raise ValueError("Missing YAML frontmatter delimiters")
    yaml_text, body = parts
    body = body.strip()

    data = yaml.safe_load(yaml_text)
    if not isinstance(data, dict):
        raise ValueError("YAML frontmatter is not a mapping")

    fields = {f.name: f for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
    filtered: dict[str, object] = {}
    for key, value in data.items():
        if key not in fields:
            continue
        if _is_str_field(fields[key]) and value is not None:
            filtered[key] = str(value)
        else:
            filtered[key] = value
    filtered["message"] = body
    return cls(**filtered)


def _read_id(filepath: Path) -> str | None:
    parts = _split_frontmatter(filepath.read_text())
    if parts is None:
        return None
    try:
        data = yaml.safe_load(parts[0])
    except yaml.YAMLError:
        return None
    if isinstance(data, dict) and data.get("id") is not None:
        return str(data["id"])
    return None


def read_md_dir(dir_path: Path, cls: type[T]) -> list[T]:
    """Read all .md files in a directory into dataclass instances."""
    if not dir_path.is_dir():
        return []
    result: list[T] = []
    for filepath in sorted(dir_path.glob("*.md")):
        try:
            text = filepath.read_text()
            result.append(_parse_md(text, cls))
        except (ValueError, yaml.YAMLError, TypeError, KeyError):
            log.warning("Skipping corrupt file: %s", filepath)
    return result


def write_md(dir_path: Path, item: T, slug_text: str, commit_msg: str) -> Path:
    """Write a single item as a .md file with a slug-based filename. Atomic write."""
    dir_path.mkdir(parents=True, exist_ok=True)
    slug = _slugify(slug_text)
    target = dir_path / f"{slug}.md"
    item_id = str(item.id)  # type: ignore[attr-defined]

    # Handle slug collisions: allow overwrite if same id, else bump suffix
    counter = 2
    while target.exists():
        if _read_id(target) == item_id:
            break
        target = dir_path / f"{slug}-{counter}.md"
        counter += 1

    content = _serialize_md(item)
    fd, tmp = tempfile.mkstemp(dir=dir_path, suffix=".tmp")
    try:
        os.write(fd, content.encode())
    finally:
        os.close(fd)
    os.replace(tmp, target)
    git_commit(target, commit_msg)
    return target


def remove_md(dir_path: Path, item_id: str, commit_msg: str) -> bool:
    """Find and delete the .md file whose YAML id matches item_id."""
    if not dir_path.is_dir():
        return False
    for filepath in dir_path.glob("*.md"):
        if _read_id(filepath) == item_id:
            filepath.unlink()
            git_rm_commit(filepath, commit_msg)
            return True
    return False


# --- JSON state ---


def read_json(filepath: Path) -> dict | None:
    """None when the file is missing or not a JSON object."""
    if not filepath.exists():
        return None
    try:
        data = json.loads(filepath.read_text())
    except json.JSONDecodeError:
        log.warning("Ignoring corrupt state file: %s", filepath)
        return None
    return data if isinstance(data, dict) else None


def write_json(filepath: Path, data: dict) -> None:
    """Atomic write via tempfile + os.replace. No git commit -- local state."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
    try:
        os.write(fd, json.dumps(data, indent=2).encode())
    finally:
        os.close(fd)
    os.replace(tmp, filepath)


# --- Backups ---


def _backup_date(name: str) -> date | None:
    try:
        return date.fromisoformat(name.removeprefix("reminders-"))
    except ValueError:
        return None


def create_backup(source: Path) -> str | None:
    """Snapshot `source` into today's backup directory; prune stale backups.

    Returns the backup name, or None when there is nothing to back up.
    """
    if not source.is_dir():
        return None
    today = datetime.now(TZ).date()
    name = f"reminders-{today.isoformat()}"
    shutil.copytree(source, BACKUPS_DIR / name, dirs_exist_ok=True)
    cleanup_old_backups(today)
    log.info("backup created: %s", name)
    return name


def cleanup_old_backups(today: date) -> None:
    cutoff = today - timedelta(days=BACKUP_RETENTION_DAYS)
    for name in list_backups():
        backup_day = _backup_date(name)
        if backup_day is not None and backup_day < cutoff:
            shutil.rmtree(BACKUPS_DIR / name)
            log.info("backup pruned: %s", name)


def list_backups() -> list[str]:
    """Backup names, newest first."""
    if not BACKUPS_DIR.is_dir():
        return []
    names = [p.name for p in BACKUPS_DIR.iterdir() if p.is_dir() and _backup_date(p.name)]
    return sorted(names, reverse=True)


def restore_backup(name: str, target: Path) -> None:
    """Replace `target` with the contents of backup `name`."""
    source = BACKUPS_DIR / name
    if _backup_date(name) is None or not source.is_dir():
        raise FileNotFoundError(f"no backup named {name!r}")
    if target.exists():
        shutil.rmtree(target)
    shutil.copytree(source, target)
    log.info("backup restored: %s", name)
