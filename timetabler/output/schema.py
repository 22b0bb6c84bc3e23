"""
Response schema for timetable operations.

These models are what the API returns and what the CLI prints; they
serialize with camelCase aliases to match the web client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from timetabler.data.models import TimetableEntry


# =============================================================================
# Workload
# =============================================================================

class OverloadedTeacher(BaseModel):
    """A teacher scheduled beyond the recommended weekly load."""
    id: str
    name: str
    current_load: int = Field(alias="currentLoad")
    recommended: int

    model_config = {"populate_by_name": True}


class WorkloadRecommendations(BaseModel):
    """Teacher workload report for a set of entries."""
    current_teachers: int = Field(alias="currentTeachers")
    recommended_teachers: int = Field(alias="recommendedTeachers")
    average_load_per_teacher: int = Field(alias="averageLoadPerTeacher")
    max_recommended_load: int = Field(alias="maxRecommendedLoad")
    need_more_teachers: bool = Field(alias="needMoreTeachers")
    overloaded_teachers: list[OverloadedTeacher] = Field(default_factory=list, alias="overloadedTeachers")
    warnings: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


# =============================================================================
# Generation
# =============================================================================

class DepartmentSummary(BaseModel):
    """Scheduled periods per department group."""
    core_subjects: int = Field(default=0, alias="coreSubjects")
    science_subjects: int = Field(default=0, alias="scienceSubjects")
    arts_subjects: int = Field(default=0, alias="artsSubjects")
    other_subjects: int = Field(default=0, alias="otherSubjects")

    model_config = {"populate_by_name": True}


class UnderScheduledSubject(BaseModel):
    """A subject that got fewer periods than it needs."""
    subject: str
    required: int
    placed: int


class GenerationResult(BaseModel):
    """Outcome of one timetable generation run."""
    class_name: str = Field(alias="className")
    total_periods: int = Field(alias="totalPeriods")
    subjects_included: int = Field(alias="subjectsIncluded")
    teachers_involved: int = Field(alias="teachersInvolved")
    utilization_rate: int = Field(ge=0, le=100, alias="utilizationRate")
    summary: DepartmentSummary
    recommendations: WorkloadRecommendations
    subjects_without_teachers: list[str] = Field(default_factory=list, alias="subjectsWithoutTeachers")
    under_scheduled: list[UnderScheduledSubject] = Field(default_factory=list, alias="underScheduled")
    entries: list[TimetableEntry] = Field(default_factory=list, exclude=True)

    model_config = {"populate_by_name": True}

    @property
    def message(self) -> str:
        if self.recommendations.warnings:
            return "Timetable generated with recommendations"
        return "Timetable generated successfully"

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Queries
# =============================================================================

class TimetableStatistics(BaseModel):
    """Counts over a filtered set of entries."""
    total_slots: int = Field(alias="totalSlots")
    unique_teachers: int = Field(alias="uniqueTeachers")
    unique_classes: int = Field(alias="uniqueClasses")
    unique_subjects: int = Field(alias="uniqueSubjects")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_entries(cls, entries: list[TimetableEntry]) -> TimetableStatistics:
        return cls(
            totalSlots=len(entries),
            uniqueTeachers=len({e.teacher.id for e in entries}),
            uniqueClasses=len({e.class_name for e in entries}),
            uniqueSubjects=len({e.subject for e in entries}),
        )


class TimetableView(BaseModel):
    """Everything the timetable page needs for one set of filters."""
    timetable: Any
    available_classes: list[str] = Field(alias="availableClasses")
    available_teachers: list[dict[str, str]] = Field(alias="availableTeachers")
    subjects: list[dict[str, Any]]
    periods: dict[str, dict[str, str]]
    days_of_week: list[str] = Field(alias="daysOfWeek")
    statistics: TimetableStatistics

    model_config = {"populate_by_name": True}

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# =============================================================================
# Bulk create
# =============================================================================

class BulkFailure(BaseModel):
    """An entry from a bulk request that was not created."""
    index: int
    error: str
    entry: dict[str, Any]


class BulkCreateResult(BaseModel):
    """Per-entry outcome of a bulk create."""
    successful: list[TimetableEntry] = Field(default_factory=list)
    failed: list[BulkFailure] = Field(default_factory=list)
    conflicts: list[BulkFailure] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

