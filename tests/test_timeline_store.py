import json
import uuid
from datetime import datetime
from pathlib import Path

import pytest

from ptk.storage import create_timeline, load_timeline, loads_timeline, save_timeline
from ptk.timeline import Boundary, Mark, ParseError, StoreIOError, Task, Timeline

_ID_A = "1b4e28ba-2fa1-11d2-883f-0016d3cca427"
_ID_B = "6fa459ea-ee8a-3ca4-894e-db77e160355e"
_ID_C = "0a2c4b9e-7d31-4c7e-9e43-5f0d1d6a8b21"


def _doc(marks: list[dict]) -> str:
    return json.dumps({"name": "Work", "marks": marks})


def test_load_sorts_marks_and_builds_boundaries(tmp_path: Path) -> None:
    path = tmp_path / "timeline.json"
    path.write_text(
        _doc(
            [
                {"id": _ID_B, "time": "2024-03-04T10:00:00", "summary": "STOP", "notes": "", "tags": []},
                {"id": _ID_A, "time": "2024-03-04T09:00:00", "summary": "Report", "notes": "n", "tags": ["w"]},
            ]
        )
    )

    timeline = load_timeline(path)

    assert timeline.name == "Work"
    assert [str(m.id) for m in timeline.marks] == [_ID_A, _ID_B]
    assert timeline.marks[0].entry == Task(summary="Report", notes="n", tags=("w",))
    assert isinstance(timeline.marks[1].entry, Boundary)
    assert timeline.active_mark is None


def test_legacy_time_format_is_read_and_rewritten(tmp_path: Path) -> None:
    path = tmp_path / "timeline.json"
    path.write_text(
        _doc([{"id": _ID_A, "time": "2016:10:21T14:30:00", "summary": "Old", "notes": "", "tags": []}])
    )

    timeline = load_timeline(path)
    assert timeline.marks[0].time == datetime(2016, 10, 21, 14, 30)

    save_timeline(timeline, path)
    saved = json.loads(path.read_text())
    assert saved["marks"][0]["time"] == "2016-10-21T14:30:00"


def test_save_then_load_round_trip(tmp_path: Path) -> None:
    timeline = Timeline(
        name="Round trip ✓",
        marks=[
            Mark(uuid.UUID(_ID_C), datetime(2024, 1, 2, 8, 0, 0), Task("Write", "line 1\nline 2", ("a", "b"))),
            Mark(uuid.UUID(_ID_A), datetime(2024, 1, 2, 9, 15, 30), Boundary(notes="done")),
            Mark(uuid.UUID(_ID_B), datetime(2024, 1, 2, 7, 0, 0), Task("Email")),
        ],
    )
    path = tmp_path / "nested" / "timeline.json"

    save_timeline(timeline, path)
    loaded = load_timeline(path)

    assert loaded.name == timeline.name
    assert [m.time for m in loaded.marks] == sorted(m.time for m in timeline.marks)
    by_id = {m.id: m for m in loaded.marks}
    for original in timeline.marks:
        assert by_id[original.id].time == original.time
        assert by_id[original.id].entry == original.entry


def test_save_is_deterministic(tmp_path: Path) -> None:
    timeline = Timeline(
        name="Work",
        marks=[Mark(uuid.UUID(_ID_A), datetime(2024, 1, 2, 8, 0), Task("Write", tags=("x",)))],
    )
    path = tmp_path / "timeline.json"
    save_timeline(timeline, path)
    first = path.read_text()
    save_timeline(load_timeline(path), path)

    assert path.read_text() == first
    assert list(json.loads(first)["marks"][0]) == ["id", "time", "summary", "notes", "tags"]


def test_missing_optional_fields_default() -> None:
    timeline = loads_timeline(_doc([{"id": _ID_A, "time": "2024-01-01T08:00:00", "summary": "x"}]))

    assert timeline.marks[0].notes == ""
    assert timeline.marks[0].tags == ()


@pytest.mark.parametrize(
    "text",
    [
        "{not json",
        "[]",
        json.dumps({"marks": []}),
        json.dumps({"name": "x"}),
        _doc([{"time": "2024-01-01T08:00:00", "summary": "x"}]),
        _doc([{"id": _ID_A, "summary": "x"}]),
        _doc([{"id": _ID_A, "time": "2024-01-01T08:00:00"}]),
        _doc([{"id": "not-a-uuid", "time": "2024-01-01T08:00:00", "summary": "x"}]),
        _doc([{"id": _ID_A, "time": "yesterday", "summary": "x"}]),
        _doc(
            [
                {"id": _ID_A, "time": "2024-01-01T08:00:00", "summary": "x"},
                {"id": _ID_A, "time": "2024-01-01T09:00:00", "summary": "y"},
            ]
        ),
    ],
)
def test_malformed_documents_raise_parse_error(text: str) -> None:
    with pytest.raises(ParseError):
        loads_timeline(text)


def test_missing_file_raises_store_io_error(tmp_path: Path) -> None:
    with pytest.raises(StoreIOError):
        load_timeline(tmp_path / "missing.json")


def test_create_timeline_writes_empty_document(tmp_path: Path) -> None:
    path = tmp_path / "timeline.json"

    timeline = create_timeline("  ", path)

    assert timeline.name == "New Timeline"
    assert json.loads(path.read_text()) == {"name": "New Timeline", "marks": []}
