"""
Teacher workload analysis.

Pure functions over a list of timetable entries: per-teacher period counts,
overload detection, headcount recommendation, slot utilization, and the
department breakdown reported after a generation run.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Iterable, Optional

from .data.models import Department, Subject, Teacher, TimetableEntry
from .output.schema import DepartmentSummary, OverloadedTeacher, WorkloadRecommendations

# Weekly periods per teacher before they count as overloaded
DEFAULT_MAX_RECOMMENDED_LOAD = 25

OVERLOAD_WARNING = "Some teachers exceed recommended workload"


def teacher_loads(entries: Iterable[TimetableEntry]) -> Counter:
    """Count entries per teacher ID."""
    return Counter(entry.teacher.id for entry in entries)


def analyze(
    entries: Iterable[TimetableEntry],
    teachers: Iterable[Teacher] = (),
    max_recommended_load: int = DEFAULT_MAX_RECOMMENDED_LOAD,
) -> WorkloadRecommendations:
    """
    Summarize teacher workload for a set of entries.

    Args:
        entries: Timetable entries to analyze
        teachers: Teacher catalog, used for display names
        max_recommended_load: Weekly periods per teacher before overload

    Returns:
        WorkloadRecommendations for the entries
    """
    if max_recommended_load < 1:
        raise ValueError("max_recommended_load must be at least 1")

    entries = list(entries)
    loads = teacher_loads(entries)
    names = {t.id: t.name for t in teachers}
    for entry in entries:
        names.setdefault(entry.teacher.id, entry.teacher.name)

    total = len(entries)
    current_teachers = len(loads)
    recommended_teachers = math.ceil(total / max_recommended_load)
    average_load = round(total / current_teachers) if current_teachers else 0

    overloaded = [
        OverloadedTeacher(
            id=teacher_id,
            name=names.get(teacher_id) or "Unknown",
            currentLoad=load,
            recommended=max_recommended_load,
        )
        for teacher_id, load in sorted(loads.items(), key=lambda item: (-item[1], item[0]))
        if load > max_recommended_load
    ]

    return WorkloadRecommendations(
        currentTeachers=current_teachers,
        recommendedTeachers=recommended_teachers,
        averageLoadPerTeacher=average_load,
        maxRecommendedLoad=max_recommended_load,
        needMoreTeachers=recommended_teachers > current_teachers,
        overloadedTeachers=overloaded,
        warnings=[OVERLOAD_WARNING] if overloaded else [],
    )


def utilization_rate(total_periods: int, num_days: int, periods_per_day: int) -> int:
    """
    Percentage of a class's weekly teaching slots that are filled.

    Returns:
        Integer percentage in the range 0-100
    """
    slots = num_days * periods_per_day
    if slots <= 0:
        return 0
    rate = round(total_periods / slots * 100)
    return max(0, min(100, rate))


def summarize_departments(
    entries: Iterable[TimetableEntry],
    subjects: Iterable[Subject],
) -> DepartmentSummary:
    """Count scheduled periods for core, science, arts, and everything else."""
    departments: dict[str, Optional[Department]] = {s.name: s.department for s in subjects}
    counts = Counter(departments.get(entry.subject) for entry in entries)

    core = counts.get(Department.CORE, 0)
    science = counts.get(Department.SCIENCE, 0)
    arts = counts.get(Department.ARTS, 0)
    return DepartmentSummary(
        coreSubjects=core,
        scienceSubjects=science,
        artsSubjects=arts,
        otherSubjects=sum(counts.values()) - core - science - arts,
    )
