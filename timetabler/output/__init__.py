"""Response models and output formatting."""

from .schema import (
    OverloadedTeacher,
    WorkloadRecommendations,
    DepartmentSummary,
    UnderScheduledSubject,
    GenerationResult,
    TimetableStatistics,
    TimetableView,
    BulkFailure,
    BulkCreateResult,
)
from .formatters import (
    CSVFormatter,
    WeekGridFormatter,
    format_json,
    format_csv,
    format_week_grid,
    save_json,
    save_csv,
    save_week_grid,
)

__all__ = [
    # Schema models
    "OverloadedTeacher",
    "WorkloadRecommendations",
    "DepartmentSummary",
    "UnderScheduledSubject",
    "GenerationResult",
    "TimetableStatistics",
    "TimetableView",
    "BulkFailure",
    "BulkCreateResult",
    # Formatters
    "CSVFormatter",
    "WeekGridFormatter",
    "format_json",
    "format_csv",
    "format_week_grid",
    # File utilities
    "save_json",
    "save_csv",
    "save_week_grid",
]
