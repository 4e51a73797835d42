"""Mark selection built from an explicit predicate tree.

Leaves test a single property of a mark (position, time, tags, summary
text); ``AllOf``, ``AnyOf`` and ``Not`` combine them. :class:`Criteria` is the
flat record the command line fills in, and :func:`build_predicate` turns it
into a tree.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol, Sequence

from ptk.timeline.errors import ValidationError
from ptk.timeline.models import Mark, Timeline
from ptk.timeline.resolver import resolve_id


class Predicate(Protocol):
    def matches(self, index: int, mark: Mark) -> bool: ...


@dataclass(frozen=True, slots=True)
class IdRange:
    """Inclusive bounds on mark positions."""

    lower: int
    upper: int

    def matches(self, index: int, mark: Mark) -> bool:
        return self.lower <= index <= self.upper


@dataclass(frozen=True, slots=True)
class After:
    time: datetime

    def matches(self, index: int, mark: Mark) -> bool:
        return mark.time > self.time


@dataclass(frozen=True, slots=True)
class Before:
    time: datetime

    def matches(self, index: int, mark: Mark) -> bool:
        return mark.time < self.time


@dataclass(frozen=True, slots=True)
class Window:
    """Half-open time window ``[start, end)``."""

    start: datetime
    end: datetime

    def matches(self, index: int, mark: Mark) -> bool:
        return self.start <= mark.time < self.end


@dataclass(frozen=True, slots=True)
class HasAllTags:
    tags: tuple[str, ...]

    def matches(self, index: int, mark: Mark) -> bool:
        return all(tag in mark.tags for tag in self.tags)


@dataclass(frozen=True, slots=True)
class HasNoTags:
    tags: tuple[str, ...]

    def matches(self, index: int, mark: Mark) -> bool:
        return not any(tag in mark.tags for tag in self.tags)


@dataclass(frozen=True, slots=True)
class TextMatches:
    """Case-insensitive regular expression search over the summary."""

    pattern: str
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.pattern, re.IGNORECASE)
        except re.error as exc:
            raise ValidationError(
                f"invalid pattern '{self.pattern}': {exc}", field="text_pattern"
            ) from exc
        object.__setattr__(self, "_regex", compiled)

    def matches(self, index: int, mark: Mark) -> bool:
        return self._regex.search(mark.summary) is not None


@dataclass(frozen=True, slots=True)
class AllOf:
    children: tuple[Predicate, ...] = ()

    def matches(self, index: int, mark: Mark) -> bool:
        return all(child.matches(index, mark) for child in self.children)


@dataclass(frozen=True, slots=True)
class AnyOf:
    children: tuple[Predicate, ...] = ()

    def matches(self, index: int, mark: Mark) -> bool:
        return any(child.matches(index, mark) for child in self.children)


@dataclass(frozen=True, slots=True)
class Not:
    child: Predicate

    def matches(self, index: int, mark: Mark) -> bool:
        return not self.child.matches(index, mark)


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def today(now: datetime) -> Window:
    start = _midnight(now)
    return Window(start, start + timedelta(days=1))


def yesterday(now: datetime) -> Window:
    end = _midnight(now)
    return Window(end - timedelta(days=1), end)


def this_week(now: datetime) -> Window:
    start = _midnight(now) - timedelta(days=now.weekday())
    return Window(start, start + timedelta(days=7))


def last_week(now: datetime) -> Window:
    end = _midnight(now) - timedelta(days=now.weekday())
    return Window(end - timedelta(days=7), end)


@dataclass(slots=True)
class Criteria:
    """Flat selection options as a command line collects them."""

    id_lower: str | None = None
    id_upper: str | None = None
    after: datetime | None = None
    before: datetime | None = None
    today: bool = False
    yesterday: bool = False
    this_week: bool = False
    last_week: bool = False
    tags_all_of: tuple[str, ...] = ()
    tags_none_of: tuple[str, ...] = ()
    text_pattern: str | None = None
    union: bool = False


def _id_range(criteria: Criteria, marks: Sequence[Mark]) -> IdRange | None:
    if not criteria.id_lower and not criteria.id_upper:
        return None
    lower = resolve_id(marks, criteria.id_lower) if criteria.id_lower else 0
    upper = resolve_id(marks, criteria.id_upper) if criteria.id_upper else len(marks) - 1
    return IdRange(lower, upper)


def _criteria_predicates(criteria: Criteria, now: datetime) -> list[Predicate]:
    # order: time windows, then tags, then text
    found: list[Predicate] = []
    if criteria.after is not None:
        found.append(After(criteria.after))
    if criteria.before is not None:
        found.append(Before(criteria.before))
    if criteria.today:
        found.append(today(now))
    if criteria.yesterday:
        found.append(yesterday(now))
    if criteria.this_week:
        found.append(this_week(now))
    if criteria.last_week:
        found.append(last_week(now))
    if criteria.tags_all_of:
        found.append(HasAllTags(tuple(criteria.tags_all_of)))
    if criteria.tags_none_of:
        found.append(HasNoTags(tuple(criteria.tags_none_of)))
    if criteria.text_pattern:
        found.append(TextMatches(criteria.text_pattern))
    return found


def build_predicate(criteria: Criteria, marks: Sequence[Mark], now: datetime) -> Predicate:
    """Translate flat criteria into a predicate tree.

    In union mode the id bounds still clamp the selection; every other
    criterion is OR-ed together underneath them.
    """
    id_range = _id_range(criteria, marks)
    others = _criteria_predicates(criteria, now)
    clamps: list[Predicate] = [id_range] if id_range else []
    if criteria.union:
        if others:
            clamps.append(AnyOf(tuple(others)))
        return AllOf(tuple(clamps))
    return AllOf(tuple(clamps + others))


def task_indices(timeline: Timeline) -> list[int]:
    return [idx for idx, mark in enumerate(timeline.marks) if not mark.is_boundary]


def select_indices(
    timeline: Timeline,
    criteria: Criteria | Predicate | None,
    now: datetime,
) -> list[int]:
    """Return the ascending positions of task marks matching ``criteria``."""
    if criteria is None:
        criteria = Criteria()
    if isinstance(criteria, Criteria):
        predicate = build_predicate(criteria, timeline.marks, now)
    else:
        predicate = criteria
    return [idx for idx in task_indices(timeline) if predicate.matches(idx, timeline.marks[idx])]
