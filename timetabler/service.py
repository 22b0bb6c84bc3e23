"""
Timetable service: the operations behind the REST API and the CLI.

Every request is a plain call with explicit parameters; the service keeps
no per-request state. Reference data (subjects, teachers, periods) comes
from the school data file, timetable entries and added periods from the
store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

import pydantic

from .catalog import is_subject_available, resolve_subjects
from .config import Settings
from .data.loader import load_school_data
from .data.models import PERIOD_NUMBER_PATTERN, EntryInput, PeriodSlot, SchoolData, Subject, TeacherRef, TimetableEntry
from .errors import ConflictError, NotFoundError, TimetableError, ValidationError
from .grid import SlotGrid
from .heuristic import TimetableGenerator
from .output.schema import (
    BulkCreateResult,
    BulkFailure,
    GenerationResult,
    TimetableStatistics,
    TimetableView,
    WorkloadRecommendations,
)
from .store import TimetableStore
from .workload import analyze

logger = logging.getLogger(__name__)

VIEWS = ("grid", "list", "teacher")


@dataclass
class TimetableQuery:
    """Filters for reading the timetable."""
    class_name: Optional[str] = None
    day_of_week: Optional[str] = None
    teacher_id: Optional[str] = None
    view: str = "grid"


def subject_payload(subject: Subject) -> dict[str, Any]:
    return {
        "id": subject.id,
        "name": subject.name,
        "code": subject.code,
        "classes": subject.classes,
        "periodsPerWeek": subject.required_periods,
        "department": subject.department.value if subject.department else None,
    }


class TimetableService:
    """
    Timetable operations for one school.

    Usage:
        service = TimetableService.from_settings(load_settings())
        result = service.generate("JS1 silver", overwrite=True)
    """

    def __init__(
        self,
        school: SchoolData,
        store: Optional[TimetableStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.school = school
        self.settings = settings or Settings()
        self.store = store or TimetableStore(self.settings.database_path)
        self.grid = SlotGrid.from_mapping(school.periods, school.days)
        self.grid.periods.update(self.store.load_periods())

    @classmethod
    def from_settings(cls, settings: Settings) -> "TimetableService":
        """Build the service from settings, loading school data if configured."""
        school = load_school_data(settings.school_data_path) if settings.school_data_path else SchoolData()
        return cls(school, TimetableStore(settings.database_path), settings)

    @property
    def generator(self) -> TimetableGenerator:
        return TimetableGenerator(
            self.school,
            self.grid,
            self.store,
            max_recommended_load=self.settings.max_recommended_load,
            max_slot_checks=self.settings.max_slot_checks,
        )

    # -------------------------------------------------------------------------
    # Catalogs
    # -------------------------------------------------------------------------

    def list_subjects(self, class_name: Optional[str] = None) -> list[Subject]:
        """Subjects for a class, or the whole catalog."""
        return resolve_subjects(class_name, self.school.subjects)

    def list_classes(self) -> list[str]:
        """Known class names: the school's list, then any others that have entries."""
        known = list(self.school.classes)
        extra = [name for name in self.store.class_names() if name not in known]
        return known + sorted(extra)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def query(self, query: Optional[TimetableQuery] = None) -> TimetableView:
        """
        Read the timetable for a set of filters.

        Raises:
            ValidationError: If the view is unknown
        """
        query = query or TimetableQuery()
        if query.view not in VIEWS:
            raise ValidationError(f"Unknown view '{query.view}', expected one of: {', '.join(VIEWS)}")

        entries = self.sorted_entries(self.store.list_entries(
            class_name=query.class_name,
            day_of_week=query.day_of_week,
            teacher_id=query.teacher_id,
        ))

        return TimetableView(
            timetable=self._arrange(entries, query.view),
            availableClasses=self.list_classes(),
            availableTeachers=[
                {"id": t.id, "name": t.name} for t in self.school.teachers if t.is_active
            ],
            subjects=[subject_payload(s) for s in self.list_subjects(query.class_name)],
            periods=self.grid.periods_payload(),
            daysOfWeek=list(self.grid.days),
            statistics=TimetableStatistics.from_entries(entries),
        )

    def sorted_entries(self, entries: Iterable[TimetableEntry]) -> list[TimetableEntry]:
        """Order entries by day of the week, then period, then class."""
        day_index = {day: i for i, day in enumerate(self.grid.days)}

        def key(entry: TimetableEntry) -> tuple:
            period = int(entry.period) if PERIOD_NUMBER_PATTERN.fullmatch(entry.period) else 10**6
            return (day_index.get(entry.day_of_week, len(day_index)), period, entry.class_name)

        return sorted(entries, key=key)

    def _arrange(self, entries: list[TimetableEntry], view: str) -> Any:
        if view == "list":
            return [e.model_dump(by_alias=True) for e in entries]

        if view == "teacher":
            by_teacher: dict[str, dict[str, Any]] = {}
            for entry in entries:
                schedule = by_teacher.setdefault(entry.teacher.id, {"name": entry.teacher.name, "entries": []})
                schedule["entries"].append(entry.model_dump(by_alias=True))
            return by_teacher

        cells = self.grid.build_cells(entries)
        return {
            day: {period: [e.model_dump(by_alias=True) for e in cell] for period, cell in periods.items()}
            for day, periods in cells.items()
        }

    def workload(self, class_name: Optional[str] = None) -> WorkloadRecommendations:
        """Workload report over stored entries."""
        entries = self.store.list_entries(class_name=class_name)
        return analyze(entries, self.school.teachers, self.settings.max_recommended_load)

    # -------------------------------------------------------------------------
    # Manual entries
    # -------------------------------------------------------------------------

    def create_entry(self, data: Union[EntryInput, dict]) -> TimetableEntry:
        """
        Add one entry by hand.

        Raises:
            ValidationError: Missing or invalid fields
            NotFoundError: Unknown teacher
            ConflictError: Teacher already teaching in that slot
        """
        data = self._entry_input(data)
        with self.store.transaction() as tx:
            entry = self._build_entry(data)
            tx.insert_entry(entry)
        logger.info("Created entry %s", entry)
        return entry

    def update_entry(self, entry_id: str, data: Union[EntryInput, dict]) -> TimetableEntry:
        """
        Replace the fields of an existing entry, re-running validation.

        Raises:
            NotFoundError: Unknown entry or teacher
            ValidationError: Missing or invalid fields
            ConflictError: Teacher already teaching in that slot
        """
        data = self._entry_input(data)
        with self.store.transaction() as tx:
            if tx.get_entry(entry_id) is None:
                raise NotFoundError("Timetable entry not found")
            entry = self._build_entry(data, entry_id=entry_id)
            tx.update_entry(entry)
        logger.info("Updated entry %s", entry)
        return entry

    def delete_entry(self, entry_id: str) -> None:
        """
        Remove one entry.

        Raises:
            NotFoundError: Unknown entry
        """
        with self.store.transaction() as tx:
            if not tx.delete_entry(entry_id):
                raise NotFoundError("Timetable entry not found")
        logger.info("Deleted entry %s", entry_id)

    def bulk_create(self, items: Iterable[Union[EntryInput, dict]]) -> BulkCreateResult:
        """
        Create many entries, each validated on its own.

        Clashes are reported separately from other failures; one bad entry
        does not stop the rest.
        """
        result = BulkCreateResult()
        for index, item in enumerate(items):
            raw = item.model_dump(by_alias=True) if isinstance(item, EntryInput) else dict(item)
            try:
                result.successful.append(self.create_entry(item))
            except ConflictError as e:
                result.conflicts.append(BulkFailure(index=index, error=e.message, entry=raw))
            except TimetableError as e:
                result.failed.append(BulkFailure(index=index, error=e.message, entry=raw))
        logger.info(
            "Bulk create: %d created, %d failed, %d conflicts",
            len(result.successful), len(result.failed), len(result.conflicts),
        )
        return result

    def _entry_input(self, data: Union[EntryInput, dict]) -> EntryInput:
        if isinstance(data, EntryInput):
            return data
        try:
            return EntryInput.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid timetable entry: {e.errors()[0]['msg']}") from e

    def _build_entry(self, data: EntryInput, entry_id: Optional[str] = None) -> TimetableEntry:
        """Validate manual entry fields against the grid, catalog and existing bookings."""
        missing = data.missing_fields()
        if missing:
            raise ValidationError(f"Please fill in all required fields: {', '.join(missing)}")

        if data.day_of_week not in self.grid.days:
            raise ValidationError(f"Unknown day '{data.day_of_week}'")
        if not self.grid.is_schedulable(data.period):
            raise ValidationError(f"Period '{data.period}' is not a teaching period")

        teacher = self.school.get_teacher(data.teacher_id)
        if teacher is None:
            raise NotFoundError(f"Teacher '{data.teacher_id}' not found")
        if not teacher.is_active:
            raise ValidationError(f"Teacher '{teacher.name}' is not active")

        if not is_subject_available(data.subject, data.class_name, self.school.subjects):
            raise ValidationError("Please select a valid subject for this class")

        bookings = [
            e for e in self.store.list_entries(day_of_week=data.day_of_week, teacher_id=teacher.id)
            if e.id != entry_id
        ]
        if any(e.period == data.period for e in bookings):
            raise ConflictError("Teacher already assigned to another class at this period")
        if self.settings.require_breathing_space:
            adjacent = set(self.grid.adjacent_periods(data.period))
            if any(e.period in adjacent for e in bookings):
                raise ConflictError("Teacher must have a free period before and after this period")

        start, end = self.grid.slot_times(data.period)
        fields: dict[str, Any] = dict(
            class_name=data.class_name,
            day_of_week=data.day_of_week,
            period=data.period,
            subject=data.subject,
            teacher=TeacherRef(id=teacher.id, name=teacher.name),
            start_time=start,
            end_time=end,
        )
        if entry_id is not None:
            fields["id"] = entry_id
        return TimetableEntry(**fields)

    # -------------------------------------------------------------------------
    # Generation and periods
    # -------------------------------------------------------------------------

    def generate(self, class_name: Optional[str], overwrite: bool = False) -> GenerationResult:
        """Auto-generate a class timetable. See TimetableGenerator.generate."""
        return self.generator.generate(class_name, overwrite=overwrite)

    def add_period(self, number: str, start: str, end: str) -> PeriodSlot:
        """
        Add a teaching period and store it.

        The grid only changes once the period is saved.
        """
        candidate = SlotGrid.from_mapping(self.grid.periods, self.grid.days)
        slot = candidate.add_period(number, start, end)
        with self.store.transaction() as tx:
            tx.save_period(str(number).strip(), slot)
        self.grid.periods = candidate.periods
        logger.info("Added period %s (%s)", number, slot)
        return slot
