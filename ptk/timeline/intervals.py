"""Interval computation and duration rendering."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from ptk.timeline.models import Timeline

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR


def interval_end(timeline: Timeline, index: int, now: datetime) -> datetime:
    """Time bounding the mark at ``index``: the next mark, or ``now``."""
    if index + 1 < len(timeline.marks):
        return timeline.marks[index + 1].time
    return now


def compute_intervals(
    timeline: Timeline,
    indices: Iterable[int],
    now: datetime,
) -> list[tuple[int, timedelta]]:
    """Pair each task index with the duration of its interval.

    Boundary marks are skipped; they still end the interval of the mark
    before them.
    """
    intervals: list[tuple[int, timedelta]] = []
    for idx in indices:
        mark = timeline.marks[idx]
        if mark.is_boundary:
            continue
        intervals.append((idx, interval_end(timeline, idx, now) - mark.time))
    return intervals


def sum_durations(intervals: Iterable[tuple[int, timedelta]]) -> timedelta:
    total = timedelta(0)
    for _, duration in intervals:
        total += duration
    return total


def format_duration(duration: timedelta) -> str:
    """Render a duration as ``1d 2h 3m``, ``2h 3m``, ``3m 4s`` or ``4s``."""
    seconds = int(duration.total_seconds())
    if seconds < 0:
        return "-" + format_duration(timedelta(seconds=-seconds))

    days, rem = divmod(seconds, _DAY)
    hours, rem = divmod(rem, _HOUR)
    minutes, secs = divmod(rem, _MINUTE)
    if seconds >= _DAY:
        return f"{days}d {hours}h {minutes}m"
    if seconds >= _HOUR:
        return f"{hours}h {minutes}m"
    if seconds >= _MINUTE:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def pick_time_format(first_time: datetime, now: datetime) -> str:
    """Choose how much of a timestamp a listing needs to show."""
    age = now - first_time
    if age > timedelta(days=365):
        return "%Y-%m-%d %H:%M"
    if age > timedelta(days=7):
        return "%b %d %H:%M"
    if age > timedelta(days=1):
        return "%a %H:%M"
    return "%H:%M"
