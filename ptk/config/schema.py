"""Configuration schema using Pydantic."""

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Root configuration for ptk."""
    timeline_log_file: str = "timeline.log.json"  # Used when neither --file nor PTK_FILE is set
    merge_conflict_policy: Literal["concat", "keep_first", "keep_last"] = "concat"
    list_verbose: bool = False  # Include notes in list output by default

    model_config = ConfigDict(
        env_prefix="PTK_",
        env_nested_delimiter="__",
        extra="ignore",
    )
