"""
Service configuration.

Settings come from an optional JSON file, then TIMETABLER_* environment
variables override individual fields:

    TIMETABLER_DATABASE_PATH=timetable.db
    TIMETABLER_SCHOOL_DATA_PATH=school.json
    TIMETABLER_MAX_RECOMMENDED_LOAD=25
    TIMETABLER_MAX_SLOT_CHECKS=10000
    TIMETABLER_REQUIRE_BREATHING_SPACE=false
    TIMETABLER_LOG_LEVEL=INFO
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .data.loader import convert_keys_to_snake_case

ENV_PREFIX = "TIMETABLER_"


class Settings(BaseModel):
    """Runtime settings for the timetable service."""
    model_config = ConfigDict(extra="forbid")

    database_path: str = Field(default=":memory:", description="SQLite database file")
    school_data_path: Optional[str] = Field(default=None, description="School data JSON file")
    max_recommended_load: int = Field(default=25, ge=1, le=100, description="Weekly periods per teacher before overload")
    max_slot_checks: int = Field(default=10_000, ge=1, description="Upper bound on slot checks per generation")
    require_breathing_space: bool = Field(
        default=False,
        description="Reject manual entries that put a teacher in back-to-back periods",
    )
    log_level: str = Field(default="INFO", description="Logging level name")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{value}'")
        return level


def load_settings(
    path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Load settings from a JSON file and the environment.

    Args:
        path: Optional JSON settings file (camelCase or snake_case keys)
        environ: Environment mapping, defaults to os.environ

    Returns:
        Validated Settings

    Raises:
        FileNotFoundError: If path is given but missing
        pydantic.ValidationError: If a value is invalid
    """
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}

    if path is not None:
        with open(Path(path)) as f:
            values.update(convert_keys_to_snake_case(json.load(f)))

    for name in Settings.model_fields:
        env_name = f"{ENV_PREFIX}{name.upper()}"
        if env_name in environ:
            values[name] = environ[env_name]

    return Settings.model_validate(values)


def configure_logging(level: str = "INFO") -> None:
    """Send log records to the console through Rich."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )
