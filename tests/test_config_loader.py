import json
from pathlib import Path

import pytest

from ptk.config.loader import (
    check_config,
    convert_keys,
    convert_to_camel,
    find_config_path,
    load_config,
    resolve_timeline_path,
    save_config,
)
from ptk.config.schema import Config


def test_key_conversion_round_trip() -> None:
    data = {"timelineLogFile": "a.json", "mergeConflictPolicy": "keep_last"}

    assert convert_keys(data) == {"timeline_log_file": "a.json", "merge_conflict_policy": "keep_last"}
    assert convert_to_camel(convert_keys(data)) == data


def test_load_config_from_explicit_path(tmp_path: Path) -> None:
    config_path = tmp_path / "ptkrc.json"
    config_path.write_text(json.dumps({"timelineLogFile": "~/work.json", "listVerbose": True}))

    cfg = load_config(config_path)

    assert cfg.timeline_log_file == "~/work.json"
    assert cfg.list_verbose is True
    assert cfg.merge_conflict_policy == "concat"


def test_load_config_rejects_bad_policy(tmp_path: Path) -> None:
    config_path = tmp_path / "ptkrc.json"
    config_path.write_text(json.dumps({"mergeConflictPolicy": "random"}))

    with pytest.raises(Exception):
        load_config(config_path)


def test_load_config_writes_defaults_when_missing(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("PTKRC", raising=False)

    cfg = load_config()

    assert cfg.timeline_log_file == "timeline.log.json"
    written = json.loads((tmp_path / "home" / ".ptkrc").read_text())
    assert written["timelineLogFile"] == "timeline.log.json"


def test_find_config_path_priority(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    env_rc = tmp_path / "env.ptkrc"
    env_rc.write_text("{}")
    monkeypatch.setenv("PTKRC", str(env_rc))

    assert find_config_path() == env_rc

    (tmp_path / ".ptkrc").write_text("{}")
    assert find_config_path() == Path(".ptkrc")
    assert find_config_path(tmp_path / "other") == tmp_path / "other"


def test_resolve_timeline_path_priority(tmp_path: Path, monkeypatch) -> None:
    cfg = Config(timeline_log_file=str(tmp_path / "configured.json"))
    monkeypatch.delenv("PTK_FILE", raising=False)

    assert resolve_timeline_path(tmp_path / "cli.json", cfg) == tmp_path / "cli.json"
    assert resolve_timeline_path(None, cfg) == tmp_path / "configured.json"

    monkeypatch.setenv("PTK_FILE", str(tmp_path / "env.json"))
    assert resolve_timeline_path(None, cfg) == tmp_path / "env.json"

    monkeypatch.delenv("PTK_FILE")
    assert resolve_timeline_path(None, Config(timeline_log_file=" ")) == Path("ptk.log.json")


def test_save_config_and_check(tmp_path: Path) -> None:
    config_path = tmp_path / "cfg" / ".ptkrc"
    save_config(Config(list_verbose=True), config_path)
    raw = json.loads(config_path.read_text())
    raw["colour"] = "blue"
    config_path.write_text(json.dumps(raw))

    report = check_config(config_path)

    assert report.config.list_verbose is True
    assert report.unknown_keys == ["colour"]
