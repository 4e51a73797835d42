"""Configuration module for ptk."""

from ptk.config.loader import find_config_path, load_config, resolve_timeline_path
from ptk.config.schema import Config

__all__ = ["Config", "find_config_path", "load_config", "resolve_timeline_path"]
