"""Active-task lifecycle: add, stop, continue, resume, amend and delete.

Every transition works on an in-memory :class:`Timeline`, takes the current
time as an explicit ``now`` argument and reports the positions it touched so
callers can render what changed.
"""

from __future__ import annotations

import bisect
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from loguru import logger

from ptk.timeline.errors import NotFoundError, ValidationError
from ptk.timeline.models import (
    STOP_MSG,
    Boundary,
    Mark,
    Task,
    Timeline,
    make_entry,
    normalize_tags,
    truncate_time,
)
from ptk.timeline.resolver import last_active_index, resolve_id


class CommandKind(str, Enum):
    ADD = "add"
    STOP = "stop"
    CONTINUE = "continue"
    RESUME = "resume"
    AMEND = "amend"
    DELETE = "delete"


@dataclass(slots=True)
class CommandResult:
    """Outcome of one lifecycle transition."""

    timeline: Timeline
    touched: list[int] = field(default_factory=list)
    changed: bool = True
    message: str = ""


def _insert_sorted(timeline: Timeline, mark: Mark) -> int:
    # bisect_right keeps insertion order for equal timestamps
    idx = bisect.bisect_right([m.time for m in timeline.marks], mark.time)
    timeline.marks.insert(idx, mark)
    return idx


def _require_summary(summary: str | None) -> str:
    text = str(summary or "").strip()
    if not text:
        raise ValidationError("a summary is required", field="summary")
    return text


def _require_latest(timeline: Timeline, when: datetime, action: str) -> None:
    # these transitions must leave the new mark at the end of the timeline
    if timeline.marks and when < timeline.marks[-1].time:
        last = timeline.marks[-1]
        raise ValidationError(
            f"cannot {action} at {when:%Y-%m-%d %H:%M:%S}, before the last mark {last.short_id}",
            field="time",
        )


def _target_index(timeline: Timeline, mark_id: str | None) -> int:
    if mark_id:
        return resolve_id(timeline.marks, mark_id)
    return last_active_index(timeline.marks)


def add_mark(
    timeline: Timeline,
    *,
    summary: str | None,
    now: datetime,
    time: datetime | None = None,
    notes: str = "",
    tags: Iterable[str] = (),
) -> CommandResult:
    text = _require_summary(summary)
    if text == STOP_MSG:
        raise ValidationError(f"'{STOP_MSG}' is reserved, use stop instead", field="summary")
    mark = Mark.new(time or now, Task(summary=text, notes=notes or "", tags=normalize_tags(tags)))
    idx = _insert_sorted(timeline, mark)
    logger.debug(f"Added mark {mark.short_id} at {idx}: {text}")
    return CommandResult(timeline=timeline, touched=[idx])


def stop(
    timeline: Timeline,
    *,
    now: datetime,
    time: datetime | None = None,
    notes: str = "",
    tags: Iterable[str] = (),
) -> CommandResult:
    if not timeline.is_active:
        return CommandResult(timeline=timeline, changed=False, message="nothing to stop")
    when = truncate_time(time or now)
    _require_latest(timeline, when, "stop")
    mark = Mark.new(when, Boundary(notes=notes or "", tags=normalize_tags(tags)))
    idx = _insert_sorted(timeline, mark)
    logger.debug(f"Stopped timer with mark {mark.short_id} at {idx}")
    touched = [idx - 1, idx] if idx > 0 else [idx]
    return CommandResult(timeline=timeline, touched=touched, message="stopped timer")


def continue_task(
    timeline: Timeline,
    *,
    now: datetime,
    time: datetime | None = None,
) -> CommandResult:
    if timeline.is_active:
        return CommandResult(
            timeline=timeline,
            touched=[len(timeline.marks) - 1],
            changed=False,
            message="already in progress",
        )
    if not timeline.marks:
        raise NotFoundError("nothing to continue: the timeline is empty")
    prev = timeline.marks[last_active_index(timeline.marks)]
    when = truncate_time(time or now)
    _require_latest(timeline, when, "continue")
    mark = Mark.new(when, prev.entry)
    idx = _insert_sorted(timeline, mark)
    logger.debug(f"Continued '{prev.summary}' as {mark.short_id}")
    return CommandResult(timeline=timeline, touched=[idx])


def resume(
    timeline: Timeline,
    *,
    now: datetime,
    mark_id: str | None = None,
    time: datetime | None = None,
    summary: str | None = None,
    notes: str | None = None,
    tags: Iterable[str] | None = None,
) -> CommandResult:
    source = timeline.marks[_target_index(timeline, mark_id)]
    entry = source.entry
    if isinstance(entry, Boundary):
        raise ValidationError("cannot resume a stop mark", field="id")
    if summary is not None:
        entry = dataclasses.replace(entry, summary=_require_summary(summary))
    if notes is not None:
        entry = dataclasses.replace(entry, notes=notes)
    if tags is not None:
        entry = dataclasses.replace(entry, tags=normalize_tags(tags))
    when = truncate_time(time or now)
    _require_latest(timeline, when, "resume")
    mark = Mark.new(when, entry)
    idx = _insert_sorted(timeline, mark)
    logger.debug(f"Resumed {source.short_id} as {mark.short_id}")
    return CommandResult(timeline=timeline, touched=[idx])


def amend(
    timeline: Timeline,
    *,
    now: datetime,
    mark_id: str | None = None,
    summary: str | None = None,
    time: datetime | None = None,
    notes: str | None = None,
    tags: Iterable[str] | None = None,
    add_tags: Iterable[str] = (),
    remove_tags: Iterable[str] = (),
) -> CommandResult:
    del now  # amend never stamps the current time
    idx = _target_index(timeline, mark_id)
    mark = timeline.marks[idx]

    new_summary = mark.summary if summary is None else _require_summary(summary)
    new_notes = mark.notes if notes is None else notes
    new_tags = list(mark.tags if tags is None else normalize_tags(tags))
    new_tags.extend(add_tags)
    dropped = set(normalize_tags(remove_tags))
    mark.entry = make_entry(
        new_summary,
        new_notes,
        [t for t in normalize_tags(new_tags) if t not in dropped],
    )

    if time is not None and truncate_time(time) != mark.time:
        mark.time = truncate_time(time)
        del timeline.marks[idx]
        idx = _insert_sorted(timeline, mark)

    logger.debug(f"Amended mark {mark.short_id} now at {idx}")
    return CommandResult(timeline=timeline, touched=[idx])


def delete(timeline: Timeline, *, mark_id: str | None = None) -> CommandResult:
    if not mark_id:
        raise ValidationError("an id is required to delete a mark", field="id")
    idx = resolve_id(timeline.marks, mark_id)
    removed = timeline.marks.pop(idx)
    logger.info(f"Deleted mark {removed.short_id} ({removed.summary})")
    return CommandResult(timeline=timeline, touched=[idx])


_HANDLERS: dict[CommandKind, Callable[..., CommandResult]] = {
    CommandKind.ADD: add_mark,
    CommandKind.STOP: stop,
    CommandKind.CONTINUE: continue_task,
    CommandKind.RESUME: resume,
    CommandKind.AMEND: amend,
    CommandKind.DELETE: delete,
}

_ALLOWED_PARAMS: dict[CommandKind, frozenset[str]] = {
    CommandKind.ADD: frozenset({"summary", "time", "notes", "tags"}),
    CommandKind.STOP: frozenset({"time", "notes", "tags"}),
    CommandKind.CONTINUE: frozenset({"time"}),
    CommandKind.RESUME: frozenset({"mark_id", "time", "summary", "notes", "tags"}),
    CommandKind.AMEND: frozenset(
        {"mark_id", "summary", "time", "notes", "tags", "add_tags", "remove_tags"}
    ),
    CommandKind.DELETE: frozenset({"mark_id"}),
}


def apply_command(
    timeline: Timeline,
    kind: CommandKind | str,
    params: Mapping[str, Any] | None,
    now: datetime,
) -> CommandResult:
    """Run one lifecycle transition selected by ``kind``."""
    try:
        kind = CommandKind(kind)
    except ValueError as exc:
        raise ValidationError(f"unknown command: {kind}", field="kind") from exc

    args = {k: v for k, v in dict(params or {}).items() if v is not None}
    unknown = sorted(set(args) - _ALLOWED_PARAMS[kind])
    if unknown:
        raise ValidationError(
            f"unexpected parameters for {kind.value}: {', '.join(unknown)}",
            field=unknown[0],
        )
    if kind == CommandKind.ADD and "summary" not in args:
        raise ValidationError("a summary is required", field="summary")
    if kind != CommandKind.DELETE:
        args["now"] = now
    return _HANDLERS[kind](timeline, **args)
