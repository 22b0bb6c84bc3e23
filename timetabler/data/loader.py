"""Load and validate school data from JSON files."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Union

import pydantic

from .models import SchoolData


class DataValidationError(Exception):
    """Raised when school data fails validation."""
    pass


def load_school_data(path: Union[str, Path]) -> SchoolData:
    """
    Load school data from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Validated SchoolData model

    Raises:
        FileNotFoundError: If the file doesn't exist
        DataValidationError: If the file isn't valid JSON or fails validation
    """
    path = Path(path)

    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DataValidationError(f"Invalid JSON in {path}: {e}") from e

    return parse_school_data(data)


def parse_school_data(data: Any) -> SchoolData:
    """
    Validate a decoded JSON document as school data.

    Keys may be camelCase (as exported by the web client) or snake_case.
    Period keys are kept as written.

    Raises:
        DataValidationError: If validation fails
    """
    if not isinstance(data, dict):
        raise DataValidationError("School data must be a JSON object")

    periods = data.get("periods")
    converted = convert_keys_to_snake_case({k: v for k, v in data.items() if k != "periods"})
    if periods is not None:
        converted["periods"] = periods

    try:
        return SchoolData.model_validate(converted)
    except pydantic.ValidationError as e:
        raise DataValidationError(str(e)) from e


def convert_keys_to_snake_case(obj: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""

    def to_snake_case(name: str) -> str:
        name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
        name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)
        return name.lower()

    if isinstance(obj, dict):
        return {to_snake_case(k): convert_keys_to_snake_case(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_keys_to_snake_case(item) for item in obj]
    else:
        return obj
