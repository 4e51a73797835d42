"""Locate, load and save the ptk config file (``.ptkrc``)."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from ptk.config.schema import Config
from ptk.utils.helpers import ensure_dir, env_path, get_home_config_path

LOCAL_CONFIG_NAME = ".ptkrc"
FALLBACK_TIMELINE_FILE = "ptk.log.json"


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case, recursively."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase, recursively."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def find_config_path(explicit: Path | None = None) -> Path | None:
    """
    Find the config file to use.

    Priority:
    1. ``--config`` argument
    2. ``.ptkrc`` in the working directory
    3. ``PTKRC`` env override
    4. ``~/.ptkrc``
    """
    if explicit is not None:
        return explicit.expanduser()
    candidates = [Path(LOCAL_CONFIG_NAME), env_path("PTKRC"), get_home_config_path()]
    for candidate in candidates:
        if candidate is not None and candidate.is_file():
            return candidate
    return None


def load_json_file(path: Path) -> dict[str, Any]:
    """Load a JSON object from file."""
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a JSON object")
    return data


def save_config(config: Config, path: Path) -> None:
    """Write config to ``path`` with camelCase keys."""
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        json.dump(convert_to_camel(config.model_dump()), f, indent=2)
        f.write("\n")


def load_config(path: Path | None = None) -> Config:
    """
    Load config from ``path`` or the discovered location.

    When no config exists an explicit path is an error; otherwise defaults
    are written to ``~/.ptkrc`` and returned.
    """
    config_path = find_config_path(path)
    if config_path is None:
        default_path = get_home_config_path()
        logger.warning(f"Could not find a .ptkrc file, writing defaults to {default_path}")
        config = Config()
        try:
            save_config(config, default_path)
        except OSError as e:
            logger.warning(f"Could not write default config to {default_path}: {e}")
        return config

    data = load_json_file(config_path)
    logger.debug(f"Loaded config from {config_path}")
    return Config(**convert_keys(data))


def resolve_timeline_path(explicit: Path | None, config: Config) -> Path:
    """First of ``--file``, ``PTK_FILE``, the configured file and ``ptk.log.json``."""
    for candidate in (explicit, env_path("PTK_FILE")):
        if candidate is not None:
            return candidate.expanduser()
    configured = config.timeline_log_file.strip()
    return Path(configured or FALLBACK_TIMELINE_FILE).expanduser()


@dataclass(slots=True)
class ConfigCheck:
    path: Path
    config: Config
    unknown_keys: list[str] = field(default_factory=list)


def check_config(path: Path) -> ConfigCheck:
    """Validate a config file and report keys the schema does not know."""
    raw = load_json_file(path)
    config = Config(**convert_keys(raw))
    known = set(Config.model_fields)
    unknown = sorted(k for k in raw if camel_to_snake(k) not in known)
    return ConfigCheck(path=path, config=config, unknown_keys=unknown)
