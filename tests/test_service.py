"""Tests for the timetable service operations."""

from __future__ import annotations

import pytest

from timetabler.config import Settings
from timetabler.data.models import EntryInput
from timetabler.errors import ConflictError, NotFoundError, ValidationError
from timetabler.service import TimetableQuery, TimetableService
from timetabler.store import TimetableStore


def entry_data(**overrides) -> dict:
    data = {
        "className": "JS1 silver",
        "dayOfWeek": "Monday",
        "period": "1",
        "subject": "Mathematics",
        "teacherId": "t2",
    }
    data.update(overrides)
    return data


class TestCatalogs:
    """Tests for subject and class listings."""

    def test_list_subjects(self, service):
        assert [s.id for s in service.list_subjects("SS2 gold")][0] == "fmt"
        assert len(service.list_subjects()) == 6

    def test_list_classes_includes_stored_classes(self, service):
        service.create_entry(entry_data(className="JS3 copper"))
        assert service.list_classes() == ["JS1 silver", "JS1 gold", "SS2 gold", "JS3 copper"]


class TestCreateEntry:
    """Tests for manual entry creation."""

    def test_create(self, service, store):
        entry = service.create_entry(entry_data())
        assert entry.teacher.name == "Bola Ade"
        assert (entry.start_time, entry.end_time) == ("08:00", "09:05")
        assert store.get_entry(entry.id) == entry

    def test_accepts_entry_input(self, service):
        data = EntryInput(class_name="SS2 gold", day_of_week="Friday", period="8", subject="Biology", teacher_id="t4")
        assert service.create_entry(data).period == "8"

    def test_missing_fields(self, service):
        with pytest.raises(ValidationError, match="dayOfWeek, teacherId"):
            service.create_entry(entry_data(dayOfWeek="", teacherId=None))

    def test_unknown_day(self, service):
        with pytest.raises(ValidationError, match="Unknown day 'Sunday'"):
            service.create_entry(entry_data(dayOfWeek="Sunday"))

    @pytest.mark.parametrize("period", ["BREAK", "LUNCH", "12"])
    def test_not_a_teaching_period(self, service, period):
        with pytest.raises(ValidationError, match="not a teaching period"):
            service.create_entry(entry_data(period=period))

    def test_unknown_teacher(self, service):
        with pytest.raises(NotFoundError):
            service.create_entry(entry_data(teacherId="t99"))

    def test_inactive_teacher(self, service):
        with pytest.raises(ValidationError, match="not active"):
            service.create_entry(entry_data(className="SS2 gold", subject="Literature in English", teacherId="t5"))

    def test_subject_not_for_class(self, service):
        with pytest.raises(ValidationError, match="valid subject"):
            service.create_entry(entry_data(subject="Biology", teacherId="t4"))

    def test_teacher_clash(self, service, store):
        service.create_entry(entry_data())
        with pytest.raises(ConflictError, match="Teacher already assigned"):
            service.create_entry(entry_data(className="JS1 gold"))
        assert store.count_class("JS1 gold") == 0

    def test_adjacent_periods_allowed_by_default(self, service):
        service.create_entry(entry_data())
        assert service.create_entry(entry_data(className="JS1 gold", period="2")).period == "2"

    def test_breathing_space(self, school, store):
        service = TimetableService(school, store, Settings(require_breathing_space=True))
        service.create_entry(entry_data(period="3"))
        with pytest.raises(ConflictError, match="free period before and after"):
            service.create_entry(entry_data(className="JS1 gold", period="4"))
        assert service.create_entry(entry_data(className="JS1 gold", period="5")).period == "5"


class TestUpdateDelete:
    """Tests for editing and removing entries."""

    def test_update(self, service, store):
        entry = service.create_entry(entry_data())
        updated = service.update_entry(entry.id, entry_data(period="4", teacherId="t3"))
        assert updated.id == entry.id
        assert store.get_entry(entry.id).teacher.id == "t3"
        assert store.get_entry(entry.id).start_time == "11:35"

    def test_update_same_slot_is_not_a_clash(self, service):
        entry = service.create_entry(entry_data())
        updated = service.update_entry(entry.id, entry_data(subject="Civic Education"))
        assert updated.subject == "Civic Education"

    def test_update_clash(self, service):
        service.create_entry(entry_data())
        other = service.create_entry(entry_data(className="JS1 gold", period="2"))
        with pytest.raises(ConflictError):
            service.update_entry(other.id, entry_data(className="JS1 gold", period="1"))

    def test_update_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.update_entry("missing", entry_data())

    def test_delete(self, service, store):
        entry = service.create_entry(entry_data())
        service.delete_entry(entry.id)
        assert store.get_entry(entry.id) is None
        with pytest.raises(NotFoundError):
            service.delete_entry(entry.id)


class TestBulkCreate:
    """Tests for bulk creation."""

    def test_mixed_results(self, service, store):
        result = service.bulk_create([
            entry_data(),
            entry_data(period="2", teacherId="t3"),
            entry_data(className="JS1 gold"),
            entry_data(period="BREAK"),
        ])
        assert len(result.successful) == 2
        assert [c.index for c in result.conflicts] == [2]
        assert [f.index for f in result.failed] == [3]
        assert result.failed[0].entry["period"] == "BREAK"
        assert store.count_class("JS1 silver") == 2

    def test_invalid_item(self, service):
        result = service.bulk_create([{"className": ["not", "a", "string"]}])
        assert result.failed[0].error.startswith("Invalid timetable entry")


class TestQuery:
    """Tests for timetable queries."""

    @pytest.fixture
    def generated(self, service):
        service.generate("JS1 silver")
        service.generate("JS1 gold")
        return service

    def test_grid_view(self, generated):
        view = generated.query(TimetableQuery(class_name="JS1 silver"))
        assert view.timetable["Monday"]["1"][0]["subject"] == "Mathematics"
        assert view.timetable["Friday"]["8"] == []
        assert view.statistics.total_slots == 11
        assert view.statistics.unique_classes == 1
        assert view.days_of_week[0] == "Monday"
        assert "BREAK" in view.periods

    def test_list_view_sorted(self, generated):
        view = generated.query(TimetableQuery(view="list"))
        keys = [(e["dayOfWeek"], int(e["period"])) for e in view.timetable]
        day_order = {d: i for i, d in enumerate(view.days_of_week)}
        assert keys == sorted(keys, key=lambda k: (day_order[k[0]], k[1]))
        assert view.statistics.total_slots == 22

    def test_teacher_view(self, generated):
        view = generated.query(TimetableQuery(view="teacher", teacher_id="t1"))
        assert list(view.timetable) == ["t1"]
        assert view.timetable["t1"]["name"] == "Ada Obi"
        assert len(view.timetable["t1"]["entries"]) == view.statistics.total_slots

    def test_day_filter(self, generated):
        view = generated.query(TimetableQuery(day_of_week="Friday", view="list"))
        assert {e["dayOfWeek"] for e in view.timetable} == {"Friday"}

    def test_available_lists(self, generated):
        data = generated.query().to_dict()
        assert {"id": "t5", "name": "Emeka Nwosu"} not in data["availableTeachers"]
        assert data["availableClasses"] == ["JS1 silver", "JS1 gold", "SS2 gold"]
        assert len(data["subjects"]) == 6

    def test_unknown_view(self, service):
        with pytest.raises(ValidationError, match="Unknown view"):
            service.query(TimetableQuery(view="calendar"))


class TestGenerateAndPeriods:
    """Tests for generation, workload and added periods."""

    def test_generate(self, service):
        result = service.generate("JS1 silver")
        assert result.total_periods == 11

    def test_generate_uses_settings(self, school, store):
        service = TimetableService(school, store, Settings(max_recommended_load=3))
        result = service.generate("JS1 silver")
        assert result.recommendations.max_recommended_load == 3
        assert result.recommendations.warnings

    def test_workload(self, service):
        service.generate("JS1 silver")
        service.generate("JS1 gold")
        report = service.workload()
        assert report.current_teachers == 3
        assert service.workload("JS1 gold").current_teachers == 2

    def test_add_period_is_schedulable(self, service):
        slot = service.add_period("9", "16:00", "16:40")
        assert str(slot) == "16:00-16:40"
        entry = service.create_entry(entry_data(period="9"))
        assert entry.start_time == "16:00"

    def test_added_period_survives_restart(self, school, store):
        TimetableService(school, store).add_period("9", "16:00", "16:40")
        assert "9" in TimetableService(school, store).grid.schedulable_periods

    def test_add_period_rejected_leaves_grid(self, service):
        with pytest.raises(ConflictError):
            service.add_period("3", "16:00", "16:40")
        with pytest.raises(ValidationError):
            service.add_period("9", "17:00", "16:00")
        assert "9" not in service.grid.periods

    def test_added_period_raises_utilization_denominator(self, service):
        service.add_period("9", "16:00", "16:40")
        result = service.generate("JS1 silver")
        assert result.utilization_rate == round(11 / 45 * 100)

    def test_from_settings(self, school_file, tmp_path):
        settings = Settings(school_data_path=str(school_file), database_path=str(tmp_path / "t.db"))
        service = TimetableService.from_settings(settings)
        assert service.school.school_name == "Unity Model College"
        assert isinstance(service.store, TimetableStore)
