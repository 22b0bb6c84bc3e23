"""Shared fixtures: a small school with junior and senior classes."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from timetabler.config import Settings
from timetabler.data.generator import school_to_dict
from timetabler.data.models import SchoolData, Subject, Teacher, TeacherRef, TimetableEntry
from timetabler.grid import SlotGrid
from timetabler.service import TimetableService
from timetabler.store import TimetableStore


@pytest.fixture
def school() -> SchoolData:
    """
    JS1 classes resolve to Civic Education, English Language, Mathematics
    (11 periods). SS2 gold resolves to Further Mathematics, Biology, Civic
    Education, Literature in English, Mathematics; Literature has no active
    teacher.
    """
    return SchoolData(
        school_name="Unity Model College",
        subjects=[
            Subject(id="eng", name="English Language", department="core", classes=["JS"], periods_per_week=4),
            Subject(id="mth", name="Mathematics", department="core", periods_per_week=5),
            Subject(id="bio", name="Biology", department="science", classes=["SS"], periods_per_week=3),
            Subject(id="fmt", name="Further Mathematics", department="science", classes=["SS2"], periods_per_week=2),
            Subject(id="lit", name="Literature in English", department="arts", classes=["SS"], periods_per_week=3),
            Subject(id="civ", name="Civic Education", department="core", periods_per_week=2),
        ],
        teachers=[
            Teacher(id="t1", name="Ada Obi", subject_ids=["eng", "civ"]),
            Teacher(id="t2", name="Bola Ade", subject_ids=["mth"]),
            Teacher(id="t3", name="Chidi Eze", subject_ids=["mth"]),
            Teacher(id="t4", name="Dayo Bello", subject_ids=["bio", "fmt"]),
            Teacher(id="t5", name="Emeka Nwosu", subject_ids=["lit"], is_active=False),
        ],
        classes=["JS1 silver", "JS1 gold", "SS2 gold"],
    )


@pytest.fixture
def grid(school) -> SlotGrid:
    return SlotGrid.from_mapping(school.periods, school.days)


@pytest.fixture
def store():
    store = TimetableStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def service(school, store) -> TimetableService:
    return TimetableService(school, store, Settings())


@pytest.fixture
def school_file(school, tmp_path) -> Path:
    path = tmp_path / "school.json"
    path.write_text(json.dumps(school_to_dict(school)))
    return path


def make_entry(
    class_name: str = "JS1 silver",
    day: str = "Monday",
    period: str = "1",
    subject: str = "Mathematics",
    teacher_id: str = "t2",
    teacher_name: str = "Bola Ade",
) -> TimetableEntry:
    return TimetableEntry(
        class_name=class_name,
        day_of_week=day,
        period=period,
        subject=subject,
        teacher=TeacherRef(id=teacher_id, name=teacher_name),
    )


@pytest.fixture(name="make_entry")
def make_entry_fixture():
    return make_entry
