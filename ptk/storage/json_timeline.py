"""JSON document store for timelines."""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from ptk.timeline.errors import ParseError, StoreIOError
from ptk.timeline.models import (
    DEFAULT_TIMELINE_NAME,
    ISO_TIME_FORMAT,
    LEGACY_TIME_FORMAT,
    Mark,
    Timeline,
    make_entry,
)


def parse_stored_time(value: str) -> tuple[datetime, bool]:
    """Parse a stored time string; the flag is True for the legacy format."""
    try:
        return datetime.strptime(value, ISO_TIME_FORMAT), False
    except ValueError:
        pass
    try:
        return datetime.strptime(value, LEGACY_TIME_FORMAT), True
    except ValueError as exc:
        raise ParseError(f"invalid mark time: {value}", {"time": value}) from exc


def _require(data: dict[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in data:
        raise ParseError(f"{where} is missing '{key}'", {"field": key})
    value = data[key]
    if not isinstance(value, kind):
        raise ParseError(f"{where} field '{key}' must be {kind.__name__}", {"field": key})
    return value


def parse_mark(data: Any) -> tuple[Mark, bool]:
    if not isinstance(data, dict):
        raise ParseError("mark must be a JSON object")
    raw_id = _require(data, "id", str, "mark")
    try:
        mark_id = uuid.UUID(raw_id)
    except ValueError as exc:
        raise ParseError(f"invalid mark id: {raw_id}", {"id": raw_id}) from exc
    time, legacy = parse_stored_time(_require(data, "time", str, "mark"))
    summary = _require(data, "summary", str, "mark")
    notes = data.get("notes") or ""
    tags = data.get("tags") or []
    if not isinstance(notes, str) or not isinstance(tags, list):
        raise ParseError(f"mark {raw_id} has malformed notes or tags", {"id": raw_id})
    return Mark(id=mark_id, time=time, entry=make_entry(summary, notes, [str(t) for t in tags])), legacy


def loads_timeline(text: str) -> Timeline:
    """Parse a timeline document; marks come back sorted by time."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"unable to parse the timeline as JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError("timeline document must be a JSON object")

    name = _require(data, "name", str, "timeline")
    raw_marks = _require(data, "marks", list, "timeline")
    timeline = Timeline(name=name)
    legacy_count = 0
    seen: set[uuid.UUID] = set()
    for item in raw_marks:
        mark, legacy = parse_mark(item)
        if mark.id in seen:
            raise ParseError(f"duplicate mark id: {mark.id}", {"id": str(mark.id)})
        seen.add(mark.id)
        timeline.marks.append(mark)
        legacy_count += int(legacy)
    timeline.sort()
    if legacy_count:
        logger.info(f"Read {legacy_count} marks in the legacy time format; they are rewritten on save")
    return timeline


def dumps_timeline(timeline: Timeline) -> str:
    return json.dumps(timeline.to_dict(), ensure_ascii=False, indent=2) + "\n"


def load_timeline(path: str | Path) -> Timeline:
    """Load the timeline stored at ``path``."""
    source = Path(path).expanduser()
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise StoreIOError(f"unable to read timeline file: {source}", {"path": str(source)}) from exc
    try:
        timeline = loads_timeline(text)
    except ParseError as exc:
        exc.details.setdefault("path", str(source))
        raise
    logger.debug(f"Loaded {len(timeline.marks)} marks from {source}")
    return timeline


def save_timeline(timeline: Timeline, path: str | Path) -> None:
    """Write ``timeline`` to ``path``, replacing the whole document."""
    target = Path(path).expanduser()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8") as f:
            f.write(dumps_timeline(timeline))
    except OSError as exc:
        raise StoreIOError(f"unable to save changes to {target}", {"path": str(target)}) from exc
    logger.debug(f"Saved {len(timeline.marks)} marks to {target}")


def create_timeline(name: str | None, path: str | Path) -> Timeline:
    """Create and persist an empty timeline."""
    timeline = Timeline(name=str(name or "").strip() or DEFAULT_TIMELINE_NAME)
    save_timeline(timeline, path)
    logger.info(f"Initialized timeline '{timeline.name}' at {path}")
    return timeline
