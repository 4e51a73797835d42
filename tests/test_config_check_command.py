import json

from typer.testing import CliRunner

from ptk.cli.commands import app

runner = CliRunner()


def test_config_check_passes_for_valid_config(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "timelineLogFile": str(tmp_path / "timeline.json"),
                "mergeConflictPolicy": "keep_first",
            }
        )
    )

    result = runner.invoke(
        app,
        [
            "config",
            "check",
            "--config",
            str(config_path),
        ],
    )

    assert result.exit_code == 0
    assert "Config validation passed" in result.stdout
    assert "merge_policy=keep_first" in result.stdout


def test_config_check_fails_when_missing(tmp_path) -> None:
    result = runner.invoke(
        app,
        [
            "config",
            "check",
            "--config",
            str(tmp_path / "missing.json"),
        ],
    )

    assert result.exit_code == 2
    assert "Config file not found" in result.stdout


def test_config_check_fails_on_invalid_values(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"mergeConflictPolicy": "coin-flip"}))

    result = runner.invoke(app, ["config", "check", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Schema validation failed" in result.stdout


def test_config_check_strict_fails_unknown_keys(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "timelineLogFile": "t.json",
                "unknownRoot": {
                    "x": 1,
                },
            }
        )
    )

    result = runner.invoke(
        app,
        [
            "config",
            "check",
            "--config",
            str(config_path),
            "--strict",
        ],
    )

    assert result.exit_code == 1
    assert "Unknown config keys detected" in result.stdout
