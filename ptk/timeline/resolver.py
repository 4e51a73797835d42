"""Resolve short id prefixes to positions in a mark sequence."""

from __future__ import annotations

from typing import Sequence

from ptk.timeline.errors import AmbiguousIdError, NotFoundError
from ptk.timeline.models import Mark


def _normalize_prefix(prefix: str) -> str:
    return str(prefix or "").strip().lower()


def matching_indices(marks: Sequence[Mark], prefix: str) -> list[int]:
    """Return every index whose id text starts with ``prefix``."""
    needle = _normalize_prefix(prefix)
    return [idx for idx, mark in enumerate(marks) if str(mark.id).startswith(needle)]


def find_by_id_prefix(marks: Sequence[Mark], prefix: str) -> int:
    """Return the index of the first mark whose id starts with ``prefix``.

    The first match in sequence order wins; use :func:`resolve_id` where an
    ambiguous prefix must be rejected.
    """
    needle = _normalize_prefix(prefix)
    for idx, mark in enumerate(marks):
        if str(mark.id).startswith(needle):
            return idx
    raise NotFoundError(f"no mark for id: {prefix}", {"prefix": prefix})


def resolve_id(marks: Sequence[Mark], prefix: str) -> int:
    """Resolve ``prefix`` to exactly one mark index."""
    if not _normalize_prefix(prefix):
        raise NotFoundError("empty id prefix", {"prefix": prefix})
    found = matching_indices(marks, prefix)
    if not found:
        raise NotFoundError(f"no mark for id: {prefix}", {"prefix": prefix})
    if len(found) > 1:
        raise AmbiguousIdError(prefix, [str(marks[idx].id) for idx in found])
    return found[0]


def last_active_index(marks: Sequence[Mark]) -> int:
    """Index of the most recent mark that is not a boundary."""
    idx = len(marks) - 1
    while idx >= 0 and marks[idx].is_boundary:
        idx -= 1
    if idx < 0:
        raise NotFoundError("no task marks on the timeline")
    return idx
