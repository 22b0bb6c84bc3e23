"""
Pydantic models for the school timetable data.

Naming conventions:
- Classes are identified by name, e.g. 'JS1 silver' or 'SS2 gold'
- Days are named ('Monday' .. 'Friday' by default)
- Periods are keyed by their number as a string ('1', '2', ...); the
  special keys 'BREAK' and 'LUNCH' mark non-teaching periods

Times are 'HH:MM' strings, e.g. '08:00' or '14:15'.
"""

from __future__ import annotations

import re
import uuid
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# Constants and Enums
# =============================================================================

class Department(str, Enum):
    """Subject department, used for reporting."""
    CORE = "core"
    SCIENCE = "science"
    ARTS = "arts"
    SOCIAL_SCIENCE = "social_science"
    COMMERCIAL = "commercial"
    VOCATIONAL = "vocational"
    OTHER = "other"


# Weekly periods a subject gets when the catalog does not say
DEFAULT_PERIODS_BY_DEPARTMENT = {
    Department.CORE: 4,
    Department.SCIENCE: 3,
    Department.ARTS: 3,
    Department.SOCIAL_SCIENCE: 3,
    Department.COMMERCIAL: 3,
    Department.VOCATIONAL: 2,
    Department.OTHER: 2,
}

NON_TEACHING_PERIODS = ("BREAK", "LUNCH")

# Teaching periods are keyed by ASCII positive integers
PERIOD_NUMBER_PATTERN = re.compile(r"[1-9][0-9]*")

DEFAULT_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

TimeString = Annotated[str, Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="Time as HH:MM")]


# =============================================================================
# Helper Functions
# =============================================================================

def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM format to minutes from midnight."""
    h, m = map(int, time_str.split(":"))
    return h * 60 + m


def new_entry_id() -> str:
    return uuid.uuid4().hex


# =============================================================================
# Core Entity Models
# =============================================================================

class PeriodSlot(BaseModel):
    """Start and end time of one period of the school day."""
    model_config = ConfigDict(extra="forbid")

    start: TimeString
    end: TimeString

    @model_validator(mode="after")
    def validate_time_range(self) -> "PeriodSlot":
        """Ensure start time is before end time."""
        if time_to_minutes(self.start) >= time_to_minutes(self.end):
            raise ValueError(f"start ({self.start}) must be before end ({self.end})")
        return self

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


DEFAULT_PERIODS = {
    "1": PeriodSlot(start="08:00", end="09:05"),
    "2": PeriodSlot(start="09:05", end="10:10"),
    "3": PeriodSlot(start="10:10", end="11:20"),
    "BREAK": PeriodSlot(start="11:20", end="11:35"),
    "4": PeriodSlot(start="11:35", end="12:40"),
    "5": PeriodSlot(start="12:40", end="13:45"),
    "6": PeriodSlot(start="13:45", end="14:15"),
    "LUNCH": PeriodSlot(start="14:15", end="14:30"),
    "7": PeriodSlot(start="14:30", end="15:35"),
    "8": PeriodSlot(start="15:35", end="16:00"),
}


class Subject(BaseModel):
    """Subject in the school catalog."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Subject name")
    code: Optional[str] = Field(default=None, max_length=10, description="Short code")
    classes: list[str] = Field(
        default_factory=list,
        description="Class names, stage-levels ('SS2') or stages ('SS'); empty means all classes",
    )
    periods_per_week: Optional[int] = Field(default=None, ge=0, le=20, description="Weekly periods per class")
    department: Optional[Department] = Field(default=None, description="Department")

    @field_validator("department", mode="before")
    @classmethod
    def normalize_department(cls, value: Any) -> Any:
        """Accept any casing and fold unknown departments into 'other'."""
        if value is None or isinstance(value, Department):
            return value
        key = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        if not key:
            return None
        try:
            return Department(key)
        except ValueError:
            return Department.OTHER

    @field_validator("classes", mode="before")
    @classmethod
    def default_classes(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def required_periods(self) -> int:
        """Weekly periods to schedule for one class."""
        if self.periods_per_week is not None:
            return self.periods_per_week
        return DEFAULT_PERIODS_BY_DEPARTMENT[self.department or Department.OTHER]

    def __str__(self) -> str:
        return f"{self.name} ({self.code or self.id})"


class Teacher(BaseModel):
    """Teacher entity."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Full name")
    department: Optional[str] = Field(default=None, description="Department")
    subject_ids: list[str] = Field(default_factory=list, description="Subject IDs this teacher can teach")
    is_active: bool = Field(default=True, description="Inactive teachers are never scheduled")

    def teaches(self, subject_id: str) -> bool:
        return subject_id in self.subject_ids

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class TeacherRef(BaseModel):
    """Teacher as embedded in a timetable entry."""
    id: str
    name: str


class TimetableEntry(BaseModel):
    """One subject taught to one class in one (day, period) slot."""
    id: str = Field(default_factory=new_entry_id)
    class_name: str = Field(alias="className")
    day_of_week: str = Field(alias="dayOfWeek")
    period: str
    subject: str
    teacher: TeacherRef
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")

    model_config = {"populate_by_name": True}

    @property
    def slot(self) -> tuple[str, str]:
        return (self.day_of_week, self.period)

    def __str__(self) -> str:
        return f"{self.class_name} {self.day_of_week} P{self.period}: {self.subject} ({self.teacher.name})"


# =============================================================================
# School Data
# =============================================================================

class SchoolData(BaseModel):
    """
    Reference data for one school.

    Immutable for the duration of a generation run.
    """
    model_config = ConfigDict(extra="forbid")

    school_name: Optional[str] = Field(default=None, description="School name")
    subjects: list[Subject] = Field(default_factory=list, description="Subject catalog")
    teachers: list[Teacher] = Field(default_factory=list, description="Teaching staff")
    classes: list[str] = Field(default_factory=list, description="Known class names")
    periods: dict[str, PeriodSlot] = Field(
        default_factory=lambda: dict(DEFAULT_PERIODS),
        description="Period structure keyed by period number",
    )
    days: list[str] = Field(default_factory=lambda: list(DEFAULT_DAYS), min_length=1, description="School days")

    @field_validator("periods")
    @classmethod
    def validate_period_keys(cls, v: dict[str, PeriodSlot]) -> dict[str, PeriodSlot]:
        bad = [k for k in v if k not in NON_TEACHING_PERIODS and not PERIOD_NUMBER_PATTERN.fullmatch(k)]
        if bad:
            raise ValueError(
                f"Invalid period keys {bad}: use positive integers or one of {list(NON_TEACHING_PERIODS)}"
            )
        return v

    # Lookup caches (populated after validation)
    _subject_map: dict[str, Subject] = {}
    _teacher_map: dict[str, Teacher] = {}

    def model_post_init(self, __context: Any) -> None:
        """Build lookup maps after model initialization."""
        self._subject_map = {s.id: s for s in self.subjects}
        self._teacher_map = {t.id: t for t in self.teachers}

    @model_validator(mode="after")
    def validate_no_duplicate_ids(self) -> "SchoolData":
        """Ensure no duplicate IDs within each entity type."""
        errors: list[str] = []

        def check_duplicates(items: list, entity_name: str) -> None:
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    errors.append(f"Duplicate {entity_name} ID: '{item.id}'")
                seen.add(item.id)

        check_duplicates(self.subjects, "subject")
        check_duplicates(self.teachers, "teacher")

        if len(set(self.days)) != len(self.days):
            errors.append("Duplicate day names")

        if errors:
            raise ValueError(f"Duplicate ID validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return self

    @model_validator(mode="after")
    def validate_references(self) -> "SchoolData":
        """Teachers may only reference subjects from the catalog."""
        subject_ids = {s.id for s in self.subjects}
        errors = [
            f"Teacher {teacher.id}: unknown subject '{subject_id}'"
            for teacher in self.teachers
            for subject_id in teacher.subject_ids
            if subject_id not in subject_ids
        ]
        if errors:
            raise ValueError(f"Reference validation failed:\n" + "\n".join(f"  - {e}" for e in errors))
        return self

    # -------------------------------------------------------------------------
    # Lookup Methods
    # -------------------------------------------------------------------------

    def get_subject(self, subject_id: str) -> Optional[Subject]:
        """Get subject by ID."""
        return self._subject_map.get(subject_id)

    def get_teacher(self, teacher_id: str) -> Optional[Teacher]:
        """Get teacher by ID."""
        return self._teacher_map.get(teacher_id)

    def teachers_for_subject(self, subject_id: str) -> list[Teacher]:
        """Active teachers who can teach a subject, in catalog order."""
        return [t for t in self.teachers if t.is_active and t.teaches(subject_id)]

    def summary(self) -> dict[str, Any]:
        """Get a summary of the school data."""
        return {
            "school_name": self.school_name,
            "subjects": len(self.subjects),
            "teachers": len(self.teachers),
            "active_teachers": sum(1 for t in self.teachers if t.is_active),
            "classes": len(self.classes),
            "periods": len(self.periods),
            "days": len(self.days),
        }


# =============================================================================
# Manual Entry Input
# =============================================================================

class EntryInput(BaseModel):
    """Fields supplied when creating or editing an entry by hand."""
    class_name: Optional[str] = Field(default=None, alias="className")
    day_of_week: Optional[str] = Field(default=None, alias="dayOfWeek")
    period: Optional[str] = None
    subject: Optional[str] = None
    teacher_id: Optional[str] = Field(default=None, alias="teacherId")

    model_config = {"populate_by_name": True, "coerce_numbers_to_str": True}

    def missing_fields(self) -> list[str]:
        """Aliases of the required fields that are empty."""
        names = {
            "class_name": "className",
            "day_of_week": "dayOfWeek",
            "period": "period",
            "subject": "subject",
            "teacher_id": "teacherId",
        }
        return [alias for name, alias in names.items() if not getattr(self, name)]
