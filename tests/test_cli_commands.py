import json
from datetime import datetime

import pytest
from typer.testing import CliRunner

from ptk.cli.commands import app
from ptk.storage import load_timeline, save_timeline
from ptk.timeline import Mark, Task, Timeline

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path):
    timeline_path = tmp_path / "timeline.json"
    config_path = tmp_path / "ptkrc.json"
    config_path.write_text(json.dumps({"timelineLogFile": str(timeline_path)}))
    return config_path, timeline_path


def _invoke(config_path, *args):
    return runner.invoke(app, ["--config", str(config_path), *args])


def test_init_creates_named_timeline(workspace) -> None:
    config_path, timeline_path = workspace

    result = _invoke(config_path, "init", "--name", "Work")

    assert result.exit_code == 0
    assert "Created timeline" in result.stdout
    timeline = load_timeline(timeline_path)
    assert timeline.name == "Work"
    assert timeline.marks == []


def test_add_stop_continue_and_sum(workspace) -> None:
    config_path, timeline_path = workspace
    _invoke(config_path, "init", "--name", "Work")

    added = _invoke(config_path, "add", "Write report", "--time", "2024-03-04 09:00", "--tag", "docs")
    stopped = _invoke(config_path, "stop", "--time", "2024-03-04 10:30")
    continued = _invoke(config_path, "continue", "--time", "2024-03-04 11:00")

    assert added.exit_code == 0
    assert "Write report" in added.stdout
    assert stopped.exit_code == 0
    assert "stopped timer" in stopped.stdout
    assert continued.exit_code == 0

    timeline = load_timeline(timeline_path)
    assert [m.summary for m in timeline.marks] == ["Write report", "STOP", "Write report"]
    assert timeline.marks[2].tags == ("docs",)

    total = _invoke(config_path, "sum-time", "--before", "2024-03-04 10:00")
    assert total.exit_code == 0
    assert "1h 30m" in total.stdout


def test_stop_without_active_task_is_a_no_op(workspace) -> None:
    config_path, timeline_path = workspace
    _invoke(config_path, "init", "--name", "Work")

    result = _invoke(config_path, "stop")

    assert result.exit_code == 0
    assert "nothing to stop" in result.stdout
    assert load_timeline(timeline_path).marks == []


def test_add_requires_summary(workspace) -> None:
    config_path, _ = workspace
    _invoke(config_path, "init", "--name", "Work")

    result = _invoke(config_path, "add")

    assert result.exit_code == 1
    assert "summary is required" in result.stdout


def test_list_filters_by_tag(workspace) -> None:
    config_path, _ = workspace
    _invoke(config_path, "init", "--name", "Work")
    _invoke(config_path, "add", "Review PR", "--time", "2024-03-04 09:00", "--tag", "code")
    _invoke(config_path, "add", "Lunch", "--time", "2024-03-04 12:00")

    result = _invoke(config_path, "list", "--tag", "code")

    assert result.exit_code == 0
    assert "Review PR" in result.stdout
    assert "Lunch" not in result.stdout

    empty = _invoke(config_path, "list", "--tag", "nope")
    assert "no marks found" in empty.stdout


def test_delete_by_id_prefix(workspace) -> None:
    config_path, timeline_path = workspace
    _invoke(config_path, "init", "--name", "Work")
    _invoke(config_path, "add", "First", "--time", "2024-03-04 09:00")
    _invoke(config_path, "add", "Second", "--time", "2024-03-04 10:00")
    target = load_timeline(timeline_path).marks[0]

    result = _invoke(config_path, "delete", target.short_id)

    assert result.exit_code == 0
    assert "Deleted mark" in result.stdout
    assert [m.summary for m in load_timeline(timeline_path).marks] == ["Second"]


def test_delete_unknown_id_fails(workspace) -> None:
    config_path, _ = workspace
    _invoke(config_path, "init", "--name", "Work")

    result = _invoke(config_path, "delete", "ffff")

    assert result.exit_code == 1


def test_missing_timeline_file_exits_2(workspace) -> None:
    config_path, timeline_path = workspace

    result = _invoke(config_path, "list")

    assert result.exit_code == 2
    assert "doesn't exist" in result.stdout
    assert not timeline_path.exists()


def test_merge_writes_output(tmp_path, workspace) -> None:
    config_path, _ = workspace
    shared = Mark.new(datetime(2024, 3, 4, 9, 0), Task(summary="Shared"))
    first = Timeline(name="Home", marks=[shared])
    second = Timeline(
        name="Office",
        marks=[
            Mark(id=shared.id, time=shared.time, entry=Task(summary="Shared", tags=("work",))),
            Mark.new(datetime(2024, 3, 4, 8, 0), Task(summary="Commute")),
        ],
    )
    save_timeline(first, tmp_path / "a.json")
    save_timeline(second, tmp_path / "b.json")
    output = tmp_path / "merged.json"

    result = _invoke(
        config_path,
        "merge",
        str(tmp_path / "a.json"),
        str(tmp_path / "b.json"),
        "--output",
        str(output),
    )

    assert result.exit_code == 0
    merged = load_timeline(output)
    assert merged.name == "Home + Office"
    assert [m.summary for m in merged.marks] == ["Commute", "Shared"]
    assert merged.marks[1].tags == ("work",)


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "ptk v" in result.stdout
