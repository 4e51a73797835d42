"""Error types raised by the timeline engine."""

from __future__ import annotations

from typing import Any


class TimelineError(Exception):
    """Base class for every error the engine reports to its caller."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ParseError(TimelineError, ValueError):
    """A persisted document or a time string could not be interpreted."""


class NotFoundError(TimelineError, LookupError):
    """An id prefix resolved to no mark, or there is nothing to act on."""


class AmbiguousIdError(NotFoundError):
    """An id prefix matched more than one mark."""

    def __init__(self, prefix: str, candidates: list[str]) -> None:
        super().__init__(
            f"id prefix '{prefix}' matches {len(candidates)} marks",
            {"prefix": prefix, "candidates": candidates},
        )


class ValidationError(TimelineError, ValueError):
    """A required field is missing or a value is not acceptable."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class StoreIOError(TimelineError, OSError):
    """The persisted store could not be read or written."""
