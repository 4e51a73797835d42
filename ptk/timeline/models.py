"""Mark and Timeline data model."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

STOP_MSG = "STOP"
ISO_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"
# Written by versions up to 0.6; accepted on read only.
LEGACY_TIME_FORMAT = "%Y:%m:%dT%H:%M:%S"
DEFAULT_TIMELINE_NAME = "New Timeline"


def normalize_tags(tags: Iterable[str] | None) -> tuple[str, ...]:
    """De-duplicate tags keeping the first occurrence order."""
    seen: list[str] = []
    for tag in tags or ():
        text = str(tag).strip()
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


def truncate_time(value: datetime) -> datetime:
    return value.replace(microsecond=0)


@dataclass(frozen=True, slots=True)
class Task:
    """A mark that opens a task."""

    summary: str
    notes: str = ""
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Boundary:
    """A mark that closes whatever was active; nothing is running after it."""

    notes: str = ""
    tags: tuple[str, ...] = ()


Entry = Task | Boundary


def make_entry(summary: str, notes: str = "", tags: Iterable[str] | None = None) -> Entry:
    """Build the entry variant for a persisted summary value."""
    if summary == STOP_MSG:
        return Boundary(notes=notes, tags=normalize_tags(tags))
    return Task(summary=summary, notes=notes, tags=normalize_tags(tags))


@dataclass(slots=True)
class Mark:
    """A single point-in-time record on a timeline."""

    id: uuid.UUID
    time: datetime
    entry: Entry

    def __post_init__(self) -> None:
        self.time = truncate_time(self.time)

    @classmethod
    def new(cls, time: datetime, entry: Entry) -> "Mark":
        return cls(id=uuid.uuid4(), time=time, entry=entry)

    @property
    def is_boundary(self) -> bool:
        return isinstance(self.entry, Boundary)

    @property
    def summary(self) -> str:
        if isinstance(self.entry, Boundary):
            return STOP_MSG
        return self.entry.summary

    @property
    def notes(self) -> str:
        return self.entry.notes

    @property
    def tags(self) -> tuple[str, ...]:
        return self.entry.tags

    @property
    def short_id(self) -> str:
        return str(self.id)[:8]

    def to_dict(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "time": self.time.strftime(ISO_TIME_FORMAT),
            "summary": self.summary,
            "notes": self.notes,
            "tags": list(self.tags),
        }


@dataclass(slots=True)
class Timeline:
    """A named sequence of marks kept in ascending time order."""

    name: str
    marks: list[Mark] = field(default_factory=list)

    def sort(self) -> None:
        # list.sort is stable: marks sharing a timestamp keep their relative order
        self.marks.sort(key=lambda m: m.time)

    @property
    def active_mark(self) -> Mark | None:
        if not self.marks or self.marks[-1].is_boundary:
            return None
        return self.marks[-1]

    @property
    def is_active(self) -> bool:
        return self.active_mark is not None

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "marks": [m.to_dict() for m in self.marks]}
