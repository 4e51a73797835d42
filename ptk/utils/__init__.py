"""Utility functions for ptk."""

from ptk.utils.helpers import ensure_dir, parse_tags, parse_time

__all__ = ["ensure_dir", "parse_tags", "parse_time"]
