"""Utility functions for ptk paths and user input."""

import os
from datetime import datetime
from pathlib import Path

from ptk.timeline.errors import ParseError

# (format, carries a year, carries a date)
TIME_FORMATS: tuple[tuple[str, bool, bool], ...] = (
    ("%Y-%m-%dT%H:%M:%S", True, True),
    ("%Y-%m-%d %H:%M:%S", True, True),
    ("%Y-%m-%dT%H:%M", True, True),
    ("%Y-%m-%d %H:%M", True, True),
    ("%m-%dT%H:%M:%S", False, True),
    ("%m-%d %H:%M:%S", False, True),
    ("%m-%dT%H:%M", False, True),
    ("%m-%d %H:%M", False, True),
    ("%H:%M:%S", False, False),
    ("%H:%M", False, False),
)


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_home_config_path() -> Path:
    """Return the per-user config file location (``~/.ptkrc``)."""
    return Path.home() / ".ptkrc"


def env_path(name: str) -> Path | None:
    """Read a path from an environment variable, ignoring blank values."""
    value = str(os.environ.get(name) or "").strip()
    return Path(value).expanduser() if value else None


def parse_time(text: str, now: datetime) -> datetime:
    """
    Interpret a user-supplied time.

    Args:
        text: Full timestamp, month-day plus time, or a bare time of day.
        now: Supplies the year and date a shorter form leaves out.

    Returns:
        A naive local datetime with second precision.
    """
    value = str(text or "").strip()
    for fmt, has_year, has_date in TIME_FORMATS:
        # year and date the input leaves out come from now
        if has_year:
            candidate, full_fmt = value, fmt
        elif has_date:
            candidate, full_fmt = f"{now.year:04d}-{value}", f"%Y-{fmt}"
        else:
            candidate, full_fmt = f"{now:%Y-%m-%d} {value}", f"%Y-%m-%d {fmt}"
        try:
            return datetime.strptime(candidate, full_fmt)
        except ValueError:
            continue
    raise ParseError(f"unable to interpret as a date: {text}", {"time": text})


def parse_tags(values: list[str] | None) -> list[str]:
    """Split repeated and comma-separated tag options into one list."""
    tags: list[str] = []
    for value in values or []:
        tags.extend(part.strip() for part in value.split(",") if part.strip())
    return tags
