"""Persistence for timelines."""

from ptk.storage.json_timeline import (
    create_timeline,
    dumps_timeline,
    load_timeline,
    loads_timeline,
    save_timeline,
)

__all__ = [
    "create_timeline",
    "dumps_timeline",
    "load_timeline",
    "loads_timeline",
    "save_timeline",
]
