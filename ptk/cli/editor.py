"""Edit a mark's time, summary and notes in the user's $EDITOR."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import click

from ptk.timeline.errors import ValidationError
from ptk.timeline.models import ISO_TIME_FORMAT
from ptk.utils.helpers import parse_time

_HEADER = """# Edit the time, mark, and notes below. Any lines starting with '#' will be
# ignored. When done, save the file and close the editor."""
_NOTES_HEADER = """# Everything from the line below to the end of the file will be considered
# notes for this timeline mark."""


@dataclass(slots=True)
class EditedFields:
    time: datetime
    summary: str
    notes: str


def render_edit_template(time: datetime, summary: str, notes: str) -> str:
    lines = [_HEADER, time.strftime(ISO_TIME_FORMAT), summary, _NOTES_HEADER]
    if notes:
        lines.append(notes)
    return "\n".join(lines) + "\n"


def parse_edited_text(text: str, now: datetime) -> EditedFields:
    """Read back an edited template: time line, summary line, then notes."""
    time: datetime | None = None
    summary: str | None = None
    notes: list[str] = []
    for line in text.splitlines():
        if line.strip().startswith("#"):
            continue
        if time is None:
            if not line.strip():
                continue
            time = parse_time(line, now)
        elif summary is None:
            summary = line.strip()
        else:
            notes.append(line)
    if time is None or not summary:
        raise ValidationError("the edited mark needs a time and a summary", field="summary")
    return EditedFields(time=time, summary=summary, notes="\n".join(notes).strip())


def edit_mark_fields(time: datetime, summary: str, notes: str, now: datetime) -> EditedFields:
    """Open the template in an editor; unsaved edits keep the given values."""
    edited = click.edit(render_edit_template(time, summary, notes), extension=".txt")
    if edited is None:
        return EditedFields(time=time, summary=summary, notes=notes)
    return parse_edited_text(edited, now)
