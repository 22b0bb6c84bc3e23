"""Tests for the HTTP API."""

from __future__ import annotations

import sqlite3

import pytest
from fastapi.testclient import TestClient

from timetabler.api import create_app
from timetabler.config import Settings


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_app(service))


def entry_body(**overrides) -> dict:
    body = {
        "className": "JS1 silver",
        "dayOfWeek": "Monday",
        "period": 1,
        "subject": "Mathematics",
        "teacherId": "t2",
    }
    body.update(overrides)
    return body


class TestGenerate:
    """Tests for POST /api/timetable/generate."""

    def test_generate(self, client):
        response = client.post("/api/timetable/generate", json={"className": "JS1 silver"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Timetable generated successfully"
        assert body["data"]["totalPeriods"] == 11
        assert body["data"]["recommendations"]["maxRecommendedLoad"] == 25
        assert "entries" not in body["data"]

    def test_conflict_without_overwrite(self, client):
        client.post("/api/timetable/generate", json={"className": "JS1 silver"})
        response = client.post("/api/timetable/generate", json={"className": "JS1 silver", "overwrite": False})
        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "error": "Timetable already exists for this class",
            "recommendation": 'Enable "overwrite" option to replace existing timetable',
        }

    def test_overwrite(self, client):
        client.post("/api/timetable/generate", json={"className": "JS1 silver"})
        response = client.post("/api/timetable/generate", json={"className": "JS1 silver", "overwrite": True})
        assert response.status_code == 200
        assert response.json()["data"]["totalPeriods"] == 11

    def test_bad_overwrite_value(self, client):
        response = client.post("/api/timetable/generate", json={"className": "JS1 silver", "overwrite": "maybe"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid request: overwrite:")
        assert "detail" not in body

    def test_missing_class(self, client):
        response = client.post("/api/timetable/generate", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "Class name is required"

    def test_no_subjects(self, client, school):
        school.subjects.clear()
        response = client.post("/api/timetable/generate", json={"className": "JS1 silver"})
        assert response.status_code == 400
        assert response.json()["recommendation"] == "Please add subjects to the system first"


class TestTimetable:
    """Tests for /api/timetable reads and writes."""

    def test_query(self, client):
        client.post("/api/timetable/generate", json={"className": "JS1 silver"})
        response = client.get("/api/timetable", params={"class": "JS1 silver", "view": "list"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["timetable"]) == 11
        assert data["statistics"]["totalSlots"] == 11
        assert data["daysOfWeek"] == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

    def test_query_grid_default(self, client):
        data = client.get("/api/timetable").json()["data"]
        assert data["timetable"]["Monday"]["1"] == []
        assert data["availableClasses"] == ["JS1 silver", "JS1 gold", "SS2 gold"]

    def test_unknown_view(self, client):
        response = client.get("/api/timetable", params={"view": "calendar"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_create_update_delete(self, client):
        response = client.post("/api/timetable", json=entry_body())
        assert response.status_code == 201
        created = response.json()["data"]
        assert created["period"] == "1"
        assert created["startTime"] == "08:00"

        response = client.put("/api/timetable", params={"id": created["id"]}, json=entry_body(period="2"))
        assert response.status_code == 200
        assert response.json()["data"]["period"] == "2"

        response = client.delete("/api/timetable", params={"id": created["id"]})
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = client.delete("/api/timetable", params={"id": created["id"]})
        assert response.status_code == 404

    def test_create_missing_fields(self, client):
        response = client.post("/api/timetable", json={"className": "JS1 silver"})
        assert response.status_code == 400
        assert "dayOfWeek" in response.json()["error"]

    def test_create_clash(self, client):
        client.post("/api/timetable", json=entry_body())
        response = client.post("/api/timetable", json=entry_body(className="JS1 gold"))
        assert response.status_code == 409

    def test_update_without_id(self, client):
        response = client.put("/api/timetable", json=entry_body())
        assert response.status_code == 400

    def test_bulk(self, client):
        response = client.post("/api/timetable/bulk", json={"entries": [
            entry_body(),
            entry_body(className="JS1 gold"),
            entry_body(teacherId="t99", period=3),
        ]})
        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["successful"]) == 1
        assert data["conflicts"][0]["index"] == 1
        assert data["failed"][0]["index"] == 2

    def test_bulk_plain_list(self, client):
        response = client.post("/api/timetable/bulk", json=[entry_body()])
        assert len(response.json()["data"]["successful"]) == 1

    def test_bulk_malformed_json(self, client):
        response = client.post(
            "/api/timetable/bulk",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid JSON body"}

    def test_create_malformed_json(self, client):
        response = client.post(
            "/api/timetable",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_bulk_bad_payload(self, client):
        response = client.post("/api/timetable/bulk", json={"entries": "nope"})
        assert response.status_code == 400


class TestCatalogs:
    """Tests for subjects, classes and periods."""

    def test_subjects_for_class(self, client):
        response = client.get("/api/subjects", params={"class": "SS2 gold"})
        names = [s["name"] for s in response.json()["data"]]
        assert names[0] == "Further Mathematics"
        assert "English Language" not in names

    def test_all_subjects(self, client):
        data = client.get("/api/subjects").json()["data"]
        assert len(data) == 6
        assert data[0]["periodsPerWeek"] == 4

    def test_classes(self, client):
        assert client.get("/api/classes").json()["data"] == ["JS1 silver", "JS1 gold", "SS2 gold"]

    def test_add_period(self, client):
        response = client.post("/api/timetable/periods", json={"number": 9, "start": "16:00", "end": "16:40"})
        assert response.status_code == 201
        assert response.json()["data"] == {"number": "9", "start": "16:00", "end": "16:40"}

        response = client.post("/api/timetable/periods", json={"number": "9", "start": "16:40", "end": "17:00"})
        assert response.status_code == 409

        periods = client.get("/api/timetable").json()["data"]["periods"]
        assert list(periods)[-1] == "9"

    def test_health(self, client):
        assert client.get("/health").json() == {"ok": "true"}


def test_create_app_from_settings(school_file, tmp_path):
    settings = Settings(school_data_path=str(school_file), database_path=str(tmp_path / "api.db"))
    client = TestClient(create_app(settings=settings))
    response = client.post("/api/timetable/generate", json={"className": "JS1 gold"})
    assert response.json()["data"]["totalPeriods"] == 11


def test_store_closed_on_shutdown(school_file, tmp_path):
    settings = Settings(school_data_path=str(school_file), database_path=str(tmp_path / "api.db"))
    app = create_app(settings=settings)
    with TestClient(app) as client:
        assert client.get("/api/classes").status_code == 200

    with pytest.raises(sqlite3.ProgrammingError):
        app.state.service.store.connection.execute("SELECT 1")


def test_given_service_left_open(service):
    with TestClient(create_app(service)) as client:
        client.post("/api/timetable/generate", json={"className": "JS1 silver"})

    assert len(service.store.list_entries(class_name="JS1 silver")) == 11
