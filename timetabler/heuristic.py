"""
Timetable auto-generation.

A single greedy pass that fills one class's week:

1. Resolve the subjects taught to the class
2. Place subjects with more weekly periods first
3. Give each subject the least-loaded teacher who can teach it
4. Walk days (outer) and periods (inner), placing at most one period of a
   subject per day, skipping slots where the class is taken or the teacher
   is already teaching another class

Subjects that cannot get all their periods are reported, not rejected.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .catalog import resolve_subjects
from .data.models import SchoolData, Subject, Teacher, TeacherRef, TimetableEntry
from .errors import ConflictError, ValidationError
from .grid import SlotGrid
from .output.schema import GenerationResult, UnderScheduledSubject
from .store import TimetableStore
from .workload import DEFAULT_MAX_RECOMMENDED_LOAD, analyze, summarize_departments, utilization_rate

logger = logging.getLogger(__name__)

DEFAULT_MAX_SLOT_CHECKS = 10_000


# =============================================================================
# Placement
# =============================================================================

@dataclass
class PlacementPlan:
    """Entries chosen for one class, plus what could not be placed."""
    class_name: str
    entries: list[TimetableEntry] = field(default_factory=list)
    subjects_without_teachers: list[str] = field(default_factory=list)
    under_scheduled: list[UnderScheduledSubject] = field(default_factory=list)
    slot_checks: int = 0
    search_exhausted: bool = False

    @property
    def teacher_ids(self) -> set[str]:
        return {entry.teacher.id for entry in self.entries}


def placement_order(subjects: Iterable[Subject]) -> list[Subject]:
    """Subjects with more weekly periods first; ties keep their given order."""
    indexed = list(enumerate(subjects))
    indexed.sort(key=lambda pair: (-pair[1].required_periods, pair[0]))
    return [subject for _, subject in indexed]


def choose_teacher(
    candidates: list[Teacher],
    run_load: Counter,
    prior_load: Counter,
) -> Optional[Teacher]:
    """
    Pick the least-loaded teacher for a subject.

    Load in this run decides first, then load already carried in other
    classes, then catalog order.
    """
    if not candidates:
        return None
    return min(candidates, key=lambda t: (run_load[t.id], prior_load[t.id]))


def plan_timetable(
    class_name: str,
    subjects: list[Subject],
    school: SchoolData,
    grid: SlotGrid,
    other_entries: Iterable[TimetableEntry] = (),
    max_slot_checks: int = DEFAULT_MAX_SLOT_CHECKS,
) -> PlacementPlan:
    """
    Place subjects into a class's free slots without persisting anything.

    Args:
        class_name: Class being scheduled
        subjects: Subjects resolved for the class
        school: Teacher catalog
        grid: Days and teaching periods
        other_entries: Existing entries of other classes (teacher bookings)
        max_slot_checks: Upper bound on slot inspections for the whole run

    Returns:
        PlacementPlan with the new entries
    """
    plan = PlacementPlan(class_name=class_name)

    teacher_busy: set[tuple[str, str, str]] = set()
    prior_load: Counter = Counter()
    for entry in other_entries:
        teacher_busy.add((entry.day_of_week, entry.period, entry.teacher.id))
        prior_load[entry.teacher.id] += 1

    class_busy: set[tuple[str, str]] = set()
    run_load: Counter = Counter()

    for subject in placement_order(subjects):
        required = subject.required_periods
        if required <= 0:
            continue

        teacher = choose_teacher(school.teachers_for_subject(subject.id), run_load, prior_load)
        if teacher is None:
            plan.subjects_without_teachers.append(subject.name)
            logger.warning("No active teacher for %s; skipped for %s", subject.name, class_name)
            continue

        placed_days: set[str] = set()
        for day, period in grid.iter_slots():
            if len(placed_days) >= required:
                break
            if day in placed_days:
                continue
            if plan.slot_checks >= max_slot_checks:
                plan.search_exhausted = True
                break
            plan.slot_checks += 1

            if (day, period) in class_busy or (day, period, teacher.id) in teacher_busy:
                continue

            start, end = grid.slot_times(period)
            plan.entries.append(TimetableEntry(
                class_name=class_name,
                day_of_week=day,
                period=period,
                subject=subject.name,
                teacher=TeacherRef(id=teacher.id, name=teacher.name),
                start_time=start,
                end_time=end,
            ))
            class_busy.add((day, period))
            teacher_busy.add((day, period, teacher.id))
            run_load[teacher.id] += 1
            placed_days.add(day)

        placed = len(placed_days)

        if placed < required:
            plan.under_scheduled.append(
                UnderScheduledSubject(subject=subject.name, required=required, placed=placed)
            )
            logger.warning("%s for %s: placed %d of %d periods", subject.name, class_name, placed, required)

    if plan.search_exhausted:
        logger.warning("Slot search limit (%d) reached for %s", max_slot_checks, class_name)

    return plan


# =============================================================================
# Generator
# =============================================================================

class TimetableGenerator:
    """
    Generates and stores a class timetable.

    Usage:
        generator = TimetableGenerator(school, SlotGrid(), TimetableStore())
        result = generator.generate("SS2 gold", overwrite=True)
    """

    def __init__(
        self,
        school: SchoolData,
        grid: SlotGrid,
        store: TimetableStore,
        max_recommended_load: int = DEFAULT_MAX_RECOMMENDED_LOAD,
        max_slot_checks: int = DEFAULT_MAX_SLOT_CHECKS,
    ):
        self.school = school
        self.grid = grid
        self.store = store
        self.max_recommended_load = max_recommended_load
        self.max_slot_checks = max_slot_checks

    def generate(self, class_name: Optional[str], overwrite: bool = False) -> GenerationResult:
        """
        Generate the timetable for a class and store it.

        Args:
            class_name: Class to schedule, e.g. 'JS1 silver'
            overwrite: Replace the class's existing timetable

        Returns:
            GenerationResult describing the new timetable

        Raises:
            ValidationError: Missing class name, or no subjects for the class
            ConflictError: The class has a timetable and overwrite is off
            PersistenceError: Storage failed; the previous timetable is kept
        """
        class_name = (class_name or "").strip()
        if not class_name:
            raise ValidationError("Class name is required")

        subjects = resolve_subjects(class_name, self.school.subjects)
        if not subjects:
            raise ValidationError(
                "No subjects found for this class",
                recommendation="Please add subjects to the system first",
            )

        logger.info("Generating timetable for %s (%d subjects, overwrite=%s)", class_name, len(subjects), overwrite)

        with self.store.transaction() as tx:
            existing = tx.count_class(class_name)
            if existing and not overwrite:
                raise ConflictError(
                    "Timetable already exists for this class",
                    recommendation='Enable "overwrite" option to replace existing timetable',
                )

            other_entries = [e for e in tx.list_entries() if e.class_name != class_name]
            plan = plan_timetable(
                class_name,
                subjects,
                self.school,
                self.grid,
                other_entries=other_entries,
                max_slot_checks=self.max_slot_checks,
            )

            if existing:
                deleted = tx.delete_class(class_name)
                logger.info("Removed %d existing entries for %s", deleted, class_name)
            tx.insert_entries(plan.entries)

        result = self._build_result(class_name, subjects, plan)
        logger.info(
            "Generated %d periods for %s (%d%% of slots, %d teachers)",
            result.total_periods, class_name, result.utilization_rate, result.teachers_involved,
        )
        return result

    def _build_result(self, class_name: str, subjects: list[Subject], plan: PlacementPlan) -> GenerationResult:
        recommendations = analyze(plan.entries, self.school.teachers, self.max_recommended_load)
        return GenerationResult(
            className=class_name,
            totalPeriods=len(plan.entries),
            subjectsIncluded=len(subjects),
            teachersInvolved=len(plan.teacher_ids),
            utilizationRate=utilization_rate(len(plan.entries), len(self.grid.days), len(self.grid.schedulable_periods)),
            summary=summarize_departments(plan.entries, subjects),
            recommendations=recommendations,
            subjectsWithoutTeachers=plan.subjects_without_teachers,
            underScheduled=plan.under_scheduled,
            entries=plan.entries,
        )
