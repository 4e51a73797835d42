"""Combine several timelines into one, reconciling marks that share an id."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from loguru import logger

from ptk.timeline.models import STOP_MSG, Boundary, Entry, Mark, Task, Timeline, normalize_tags

SUMMARY_SEPARATOR = " | "
NOTES_DIVIDER = "\n--------\n"


class ConflictPolicy(str, Enum):
    CONCAT = "concat"
    KEEP_FIRST = "keep_first"
    KEEP_LAST = "keep_last"


@dataclass(slots=True)
class MergeConflict:
    """Distinct values seen for one field of one mark id, in input order.

    ``last`` is the value from the last input that carried the mark.
    """

    id: uuid.UUID
    field: str
    values: list[Any] = field(default_factory=list)
    last: Any = None


@dataclass(slots=True)
class MergeResult:
    name: str
    marks: list[Mark]
    conflicts: list[MergeConflict] = field(default_factory=list)

    def conflicts_for(self, mark_id: uuid.UUID) -> dict[str, MergeConflict]:
        return {c.field: c for c in self.conflicts if c.id == mark_id}


def merged_name(timelines: Sequence[Timeline]) -> str:
    names: list[str] = []
    for timeline in timelines:
        if timeline.name not in names:
            names.append(timeline.name)
    return " + ".join(names)


def _field_values(mark: Mark) -> dict[str, Any]:
    return {
        "kind": "boundary" if mark.is_boundary else "task",
        "summary": mark.summary,
        "notes": mark.notes,
        "time": mark.time,
    }


def collect_merge(timelines: Sequence[Timeline]) -> MergeResult:
    """Walk all inputs in order and record every per-field disagreement.

    Each merged mark keeps the first-seen values; tags are unioned.
    """
    result = MergeResult(name=merged_name(timelines), marks=[])
    by_id: dict[uuid.UUID, Mark] = {}
    conflicts: dict[tuple[uuid.UUID, str], MergeConflict] = {}

    for timeline in timelines:
        for mark in timeline.marks:
            seen = by_id.get(mark.id)
            if seen is None:
                copy = Mark(id=mark.id, time=mark.time, entry=mark.entry)
                by_id[mark.id] = copy
                result.marks.append(copy)
                continue

            first = _field_values(seen)
            for name, value in _field_values(mark).items():
                key = (mark.id, name)
                conflict = conflicts.get(key)
                if conflict is None:
                    if value == first[name]:
                        continue
                    conflict = MergeConflict(id=mark.id, field=name, values=[first[name]])
                    conflicts[key] = conflict
                    result.conflicts.append(conflict)
                if value not in conflict.values:
                    conflict.values.append(value)
                conflict.last = value

            tags = normalize_tags([*seen.tags, *mark.tags])
            if tags != seen.tags:
                seen.entry = _with_tags(seen.entry, tags)

    if result.conflicts:
        logger.info(f"Merge found {len(result.conflicts)} conflicting fields")
    return result


def _with_tags(entry: Entry, tags: tuple[str, ...]) -> Entry:
    if isinstance(entry, Boundary):
        return Boundary(notes=entry.notes, tags=tags)
    return Task(summary=entry.summary, notes=entry.notes, tags=tags)


def _pick(conflict: MergeConflict, policy: ConflictPolicy) -> Any:
    if policy == ConflictPolicy.KEEP_LAST:
        return conflict.values[-1] if conflict.last is None else conflict.last
    if policy == ConflictPolicy.CONCAT and conflict.field == "summary":
        return SUMMARY_SEPARATOR.join(conflict.values)
    if policy == ConflictPolicy.CONCAT and conflict.field == "notes":
        return NOTES_DIVIDER.join(conflict.values)
    return conflict.values[0]


def resolve_conflicts(result: MergeResult, policy: ConflictPolicy = ConflictPolicy.CONCAT) -> None:
    """Apply ``policy`` to the marks of ``result`` in place."""
    by_id = {mark.id: mark for mark in result.marks}
    grouped: dict[uuid.UUID, dict[str, MergeConflict]] = {}
    for conflict in result.conflicts:
        grouped.setdefault(conflict.id, {})[conflict.field] = conflict

    for mark_id, fields in grouped.items():
        mark = by_id[mark_id]
        kind = _pick(fields["kind"], policy) if "kind" in fields else None
        notes = _pick(fields["notes"], policy) if "notes" in fields else mark.notes
        if kind == "boundary" or (kind is None and mark.is_boundary):
            mark.entry = Boundary(notes=notes, tags=mark.tags)
        else:
            summary = mark.summary
            if "summary" in fields:
                # a boundary contributes no summary text to a task
                found = fields["summary"]
                texts = [v for v in found.values if v != STOP_MSG]
                last = found.last if found.last != STOP_MSG else texts[-1]
                summary = _pick(MergeConflict(mark_id, "summary", texts, last), policy)
            mark.entry = Task(summary=summary, notes=notes, tags=mark.tags)
        if "time" in fields:
            mark.time = _pick(fields["time"], policy)


def merge_timelines(
    timelines: Sequence[Timeline],
    policy: ConflictPolicy | str = ConflictPolicy.CONCAT,
) -> Timeline:
    """Merge ``timelines`` into a new timeline sorted by time."""
    result = collect_merge(timelines)
    resolve_conflicts(result, ConflictPolicy(policy))
    merged = Timeline(name=result.name, marks=result.marks)
    merged.sort()
    logger.debug(f"Merged {len(timelines)} timelines into {len(merged.marks)} marks")
    return merged
