"""Timeline engine: marks, lifecycle, selection, intervals and merging."""

from ptk.timeline.errors import (
    AmbiguousIdError,
    NotFoundError,
    ParseError,
    StoreIOError,
    TimelineError,
    ValidationError,
)
from ptk.timeline.intervals import compute_intervals, format_duration, sum_durations
from ptk.timeline.lifecycle import CommandKind, CommandResult, apply_command
from ptk.timeline.merge import ConflictPolicy, MergeConflict, collect_merge, merge_timelines
from ptk.timeline.models import STOP_MSG, Boundary, Mark, Task, Timeline
from ptk.timeline.resolver import find_by_id_prefix, last_active_index, resolve_id
from ptk.timeline.selection import Criteria, build_predicate, select_indices

__all__ = [
    "AmbiguousIdError",
    "Boundary",
    "CommandKind",
    "CommandResult",
    "ConflictPolicy",
    "Criteria",
    "Mark",
    "MergeConflict",
    "NotFoundError",
    "ParseError",
    "STOP_MSG",
    "StoreIOError",
    "Task",
    "Timeline",
    "TimelineError",
    "ValidationError",
    "apply_command",
    "build_predicate",
    "collect_merge",
    "compute_intervals",
    "find_by_id_prefix",
    "format_duration",
    "last_active_index",
    "merge_timelines",
    "resolve_id",
    "select_indices",
    "sum_durations",
]
