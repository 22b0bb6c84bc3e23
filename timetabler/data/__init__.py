"""School data models and loading utilities."""

from .loader import DataValidationError, load_school_data, parse_school_data
from .generator import (
    GeneratorConfig,
    generate_sample_school,
    generate_small_school,
    generate_medium_school,
    save_generated_school,
)

__all__ = [
    # Loader
    "DataValidationError",
    "load_school_data",
    "parse_school_data",
    # Generator
    "GeneratorConfig",
    "generate_sample_school",
    "generate_small_school",
    "generate_medium_school",
    "save_generated_school",
]
