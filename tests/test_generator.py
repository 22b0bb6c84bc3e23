"""Tests for the sample school generator."""

from __future__ import annotations

from timetabler.catalog import resolve_subjects
from timetabler.data.generator import (
    ARMS,
    GeneratorConfig,
    generate_medium_school,
    generate_sample_school,
    generate_small_school,
    save_generated_school,
)
from timetabler.data.loader import load_school_data


class TestGenerateSampleSchool:
    """Tests for generate_sample_school."""

    def test_small_school(self):
        school = generate_small_school(seed=1)
        assert len(school.classes) == 12
        assert school.classes[:2] == ["JS1 silver", "JS1 gold"]
        assert all(t.is_active for t in school.teachers)

    def test_every_subject_has_an_active_teacher(self):
        school = generate_small_school(seed=3)
        for subject in school.subjects:
            assert school.teachers_for_subject(subject.id), subject.name

    def test_medium_school(self):
        school = generate_medium_school(seed=5)
        assert len(school.classes) == 6 * len(ARMS)
        assert sum(1 for t in school.teachers if not t.is_active) == 1

    def test_seed_is_reproducible(self):
        a = generate_small_school(seed=42)
        b = generate_small_school(seed=42)
        assert [t.name for t in a.teachers] == [t.name for t in b.teachers]
        assert [t.subject_ids for t in a.teachers] == [t.subject_ids for t in b.teachers]

    def test_custom_levels(self):
        school = generate_sample_school(GeneratorConfig(levels=["SS2"], arms_per_level=3, seed=0))
        assert school.classes == ["SS2 silver", "SS2 gold", "SS2 diamond"]

    def test_classes_fit_the_week(self):
        school = generate_small_school(seed=0)
        slots = len(school.days) * sum(1 for key in school.periods if key.isdigit())
        for class_name in school.classes:
            subjects = resolve_subjects(class_name, school.subjects)
            assert subjects
            assert sum(s.required_periods for s in subjects) <= slots


class TestSaveGeneratedSchool:
    """Tests for saving generated data."""

    def test_saved_file_loads(self, tmp_path):
        school = generate_small_school(seed=9)
        path = tmp_path / "out" / "school.json"
        save_generated_school(school, path)

        loaded = load_school_data(path)
        assert loaded.summary() == school.summary()
        assert [t.subject_ids for t in loaded.teachers] == [t.subject_ids for t in school.teachers]
