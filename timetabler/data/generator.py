"""
Sample school generator.

Produces a junior/senior secondary school (JS1-JS3, SS1-SS3, several arms
per level) with a subject catalog and teaching staff that covers every
subject. Used by the `sample` CLI command and by the tests.

Usage:
    from timetabler.data.generator import generate_small_school

    school = generate_small_school(seed=7)
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .models import SchoolData, Subject, Teacher


# =============================================================================
# Name Data
# =============================================================================

FIRST_NAMES = [
    "Adaeze", "Babatunde", "Chinedu", "Damilola", "Emeka", "Funmilayo", "Gbenga",
    "Halima", "Ifeoma", "Jide", "Kemi", "Ladi", "Musa", "Ngozi", "Obinna",
    "Precious", "Rukayat", "Segun", "Temitope", "Uche", "Victoria", "Yusuf",
    "Zainab", "Amaka", "Bola", "Chioma", "Dayo", "Efe", "Folake", "Ibrahim",
]

LAST_NAMES = [
    "Adeyemi", "Okafor", "Bello", "Eze", "Ogunleye", "Nwosu", "Abubakar", "Olawale",
    "Okonkwo", "Balogun", "Chukwu", "Danjuma", "Ekwueme", "Fashola", "Ibekwe",
    "Lawal", "Mohammed", "Nnamdi", "Obi", "Salami", "Uzor", "Yakubu", "Adebayo",
]

ARMS = ["silver", "gold", "diamond", "mercury", "platinum", "copper"]

LEVELS = ["JS1", "JS2", "JS3", "SS1", "SS2", "SS3"]


# =============================================================================
# Subject Definitions
# =============================================================================

JS_SUBJECTS = [
    {"id": "js-eng", "name": "English Language", "code": "ENG", "department": "core", "classes": ["JS"], "periods_per_week": 5},
    {"id": "js-mth", "name": "Mathematics", "code": "MTH", "department": "core", "classes": ["JS"], "periods_per_week": 5},
    {"id": "bsc", "name": "Basic Science", "code": "BSC", "department": "science", "classes": ["JS"], "periods_per_week": 3},
    {"id": "btc", "name": "Basic Technology", "code": "BTC", "department": "vocational", "classes": ["JS"], "periods_per_week": 2},
    {"id": "sst", "name": "Social Studies", "code": "SST", "department": "social_science", "classes": ["JS"], "periods_per_week": 2},
    {"id": "cca", "name": "Cultural and Creative Arts", "code": "CCA", "department": "arts", "classes": ["JS"], "periods_per_week": 2},
    {"id": "bus", "name": "Business Studies", "code": "BUS", "department": "commercial", "classes": ["JS2", "JS3"], "periods_per_week": 2},
    {"id": "fre", "name": "French", "code": "FRE", "department": "arts", "classes": ["JS1"], "periods_per_week": 2},
]

SS_SUBJECTS = [
    {"id": "ss-eng", "name": "English Language", "code": "ENG", "department": "core", "classes": ["SS"], "periods_per_week": 5},
    {"id": "ss-mth", "name": "Mathematics", "code": "MTH", "department": "core", "classes": ["SS"], "periods_per_week": 5},
    {"id": "bio", "name": "Biology", "code": "BIO", "department": "science", "classes": ["SS"], "periods_per_week": 3},
    {"id": "chm", "name": "Chemistry", "code": "CHM", "department": "science", "classes": ["SS"], "periods_per_week": 3},
    {"id": "phy", "name": "Physics", "code": "PHY", "department": "science", "classes": ["SS"], "periods_per_week": 3},
    {"id": "lit", "name": "Literature in English", "code": "LIT", "department": "arts", "classes": ["SS"], "periods_per_week": 3},
    {"id": "gov", "name": "Government", "code": "GOV", "department": "social_science", "classes": ["SS"], "periods_per_week": 2},
    {"id": "eco", "name": "Economics", "code": "ECO", "department": "social_science", "classes": ["SS"], "periods_per_week": 2},
    {"id": "fmt", "name": "Further Mathematics", "code": "FMT", "department": "science", "classes": ["SS2", "SS3"], "periods_per_week": 2},
]

SHARED_SUBJECTS = [
    {"id": "civ", "name": "Civic Education", "code": "CIV", "department": "core", "classes": [], "periods_per_week": 2},
    {"id": "phe", "name": "Physical and Health Education", "code": "PHE", "department": "vocational", "classes": [], "periods_per_week": 1},
]


# =============================================================================
# Generator Configuration
# =============================================================================

@dataclass
class GeneratorConfig:
    """Configuration for sample school generation.

    Each subject gets `teachers_per_subject` teachers; with the default
    period grid (40 teaching slots a week) that keeps most classes fully
    schedulable for small schools.
    """
    levels: list[str] = field(default_factory=lambda: list(LEVELS))
    arms_per_level: int = 2
    teachers_per_subject: int = 1
    inactive_teachers: int = 0
    school_name: str = "Sample Secondary School"

    # Randomization
    seed: Optional[int] = None


# =============================================================================
# Generator Functions
# =============================================================================

def generate_sample_school(config: GeneratorConfig | None = None) -> SchoolData:
    """
    Generate a sample school.

    Args:
        config: Generator configuration (uses defaults if None)

    Returns:
        SchoolData with generated data
    """
    if config is None:
        config = GeneratorConfig()

    rng = random.Random(config.seed)

    subjects = [Subject(**data) for data in JS_SUBJECTS + SS_SUBJECTS + SHARED_SUBJECTS]
    teachers = _generate_teachers(config, subjects, rng)
    classes = _generate_classes(config)

    return SchoolData(
        school_name=config.school_name,
        subjects=subjects,
        teachers=teachers,
        classes=classes,
    )


def generate_small_school(seed: int | None = None) -> SchoolData:
    """
    Generate a small school for quick testing.

    - 12 classes (2 arms per level)
    - one teacher per subject
    """
    return generate_sample_school(GeneratorConfig(arms_per_level=2, teachers_per_subject=1, seed=seed))


def generate_medium_school(seed: int | None = None) -> SchoolData:
    """
    Generate a medium-sized school.

    - 36 classes (all six arms per level)
    - three teachers per subject, one of them inactive overall
    """
    return generate_sample_school(GeneratorConfig(
        arms_per_level=len(ARMS),
        teachers_per_subject=3,
        inactive_teachers=1,
        seed=seed,
    ))


# =============================================================================
# Private Generator Helpers
# =============================================================================

def _generate_teachers(config: GeneratorConfig, subjects: list[Subject], rng: random.Random) -> list[Teacher]:
    """Generate teachers so that every subject is covered."""
    teachers: list[Teacher] = []
    used_names: set[str] = set()

    for subject in subjects:
        for _ in range(config.teachers_per_subject):
            while True:
                full_name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
                if full_name not in used_names or len(used_names) >= len(FIRST_NAMES) * len(LAST_NAMES):
                    used_names.add(full_name)
                    break

            teachers.append(Teacher(
                id=f"t{len(teachers) + 1}",
                name=full_name,
                department=subject.department.value if subject.department else None,
                subject_ids=[subject.id],
            ))

    # Some teachers take a second subject from the same department
    for teacher in teachers:
        related = [
            s.id for s in subjects
            if s.department and s.department.value == teacher.department and s.id not in teacher.subject_ids
        ]
        if related and rng.random() < 0.3:
            teacher.subject_ids.append(rng.choice(related))

    for teacher in rng.sample(teachers, min(config.inactive_teachers, len(teachers))):
        teacher.is_active = False

    return teachers


def _generate_classes(config: GeneratorConfig) -> list[str]:
    """Generate class names such as 'JS1 silver'."""
    arms = ARMS[:config.arms_per_level]
    return [f"{level} {arm}" for level in config.levels for arm in arms]


def save_generated_school(school: SchoolData, filepath: Union[str, Path]) -> None:
    """
    Save generated school data to a JSON file.

    Args:
        school: Generated school data
        filepath: Path to save the JSON file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(school_to_dict(school), f, indent=2)


def school_to_dict(school: SchoolData) -> dict:
    """Convert school data to the camelCase JSON layout read by the loader."""
    return {
        "schoolName": school.school_name,
        "subjects": [
            {
                "id": s.id,
                "name": s.name,
                "code": s.code,
                "classes": s.classes,
                "periodsPerWeek": s.periods_per_week,
                "department": s.department.value if s.department else None,
            }
            for s in school.subjects
        ],
        "teachers": [
            {
                "id": t.id,
                "name": t.name,
                "department": t.department,
                "subjectIds": t.subject_ids,
                "isActive": t.is_active,
            }
            for t in school.teachers
        ],
        "classes": school.classes,
        "periods": {key: slot.model_dump() for key, slot in school.periods.items()},
        "days": school.days,
    }
