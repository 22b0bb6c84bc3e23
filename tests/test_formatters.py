"""Tests for output formatters."""

from __future__ import annotations

import csv
import io
import json

import pytest

from timetabler.grid import SlotGrid
from timetabler.output.formatters import (
    CSVFormatter,
    WeekGridFormatter,
    format_csv,
    format_json,
    format_week_grid,
    save_csv,
    save_json,
    save_week_grid,
)


@pytest.fixture
def entries(make_entry):
    return [
        make_entry(),
        make_entry(day="Tuesday", period="4", subject="Civic Education", teacher_id="t1", teacher_name="Ada Obi"),
    ]


class TestJSON:
    def test_camel_case_array(self, entries):
        data = json.loads(format_json(entries))
        assert len(data) == 2
        assert data[1]["subject"] == "Civic Education"
        assert data[1]["dayOfWeek"] == "Tuesday"


class TestCSV:
    def test_default_columns(self, entries):
        rows = list(csv.reader(io.StringIO(format_csv(entries))))
        assert rows[0] == CSVFormatter.DEFAULT_COLUMNS
        assert rows[1][CSVFormatter.DEFAULT_COLUMNS.index("teacher_name")] == "Bola Ade"
        assert rows[1][CSVFormatter.DEFAULT_COLUMNS.index("start_time")] == ""

    def test_minimal(self, entries):
        rows = list(csv.reader(io.StringIO(format_csv(entries, minimal=True))))
        assert rows[0] == ["class_name", "day_of_week", "period", "subject", "teacher_name"]
        assert rows[2] == ["JS1 silver", "Tuesday", "4", "Civic Education", "Ada Obi"]

    def test_no_header(self, entries):
        text = CSVFormatter(include_header=False, delimiter=";").format(entries)
        assert len(text.strip().split("\n")) == 2
        assert ";" in text


class TestWeekGrid:
    def test_cells_and_breaks(self, entries):
        text = format_week_grid(entries, SlotGrid(), title="JS1 silver")
        assert "JS1 silver" in text
        assert "Mathematics" in text
        assert "BREAK" in text
        assert "LUNCH" in text
        assert "Mon" in text and "Fri" in text

    def test_class_names_shown(self, entries):
        text = WeekGridFormatter(SlotGrid(), show_class=True, show_teacher=False).format(entries, width=160)
        assert "JS1 silver" in text
        assert "Bola Ade" not in text


class TestSave:
    def test_save_json_and_csv(self, entries, tmp_path):
        save_json(entries, tmp_path / "out" / "t.json")
        save_csv(entries, tmp_path / "out" / "t.csv", minimal=True)
        assert len(json.loads((tmp_path / "out" / "t.json").read_text())) == 2
        assert (tmp_path / "out" / "t.csv").read_text().startswith("class_name,")

    def test_save_week_grid(self, entries, tmp_path):
        path = tmp_path / "grids" / "js1.txt"
        save_week_grid(entries, SlotGrid(), path, title="JS1 silver", show_teacher=False)
        text = path.read_text()
        assert "Civic Education" in text
        assert "Bola Ade" not in text
