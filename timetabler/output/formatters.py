"""
Output formatters for timetable entries.

- JSON: entries with camelCase keys, as the API returns them
- CSV: flat rows for spreadsheets
- Week grid: periods down, days across, for the console
"""

from __future__ import annotations

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Iterable, Optional, TextIO

from rich.console import Console
from rich.table import Table

from timetabler.data.models import TimetableEntry
from timetabler.grid import SlotGrid


# =============================================================================
# JSON Formatter
# =============================================================================

def format_json(entries: Iterable[TimetableEntry], indent: int = 2) -> str:
    """Entries as a JSON array."""
    data = [entry.model_dump(by_alias=True) for entry in entries]
    return json.dumps(data, indent=indent, ensure_ascii=False)


# =============================================================================
# CSV Formatter
# =============================================================================

class CSVFormatter:
    """Formats timetable entries as CSV."""

    DEFAULT_COLUMNS = [
        'id', 'class_name', 'day_of_week', 'period', 'start_time', 'end_time',
        'subject', 'teacher_id', 'teacher_name',
    ]

    MINIMAL_COLUMNS = ['class_name', 'day_of_week', 'period', 'subject', 'teacher_name']

    def __init__(self, columns: list[str] | None = None, include_header: bool = True, delimiter: str = ','):
        self.columns = columns or self.DEFAULT_COLUMNS
        self.include_header = include_header
        self.delimiter = delimiter

    def format(self, entries: Iterable[TimetableEntry]) -> str:
        buffer = StringIO()
        self.write(entries, buffer)
        return buffer.getvalue()

    def write(self, entries: Iterable[TimetableEntry], file: TextIO) -> None:
        writer = csv.writer(file, delimiter=self.delimiter, lineterminator='\n')
        if self.include_header:
            writer.writerow(self.columns)
        for entry in entries:
            writer.writerow(self._entry_to_row(entry))

    def _entry_to_row(self, entry: TimetableEntry) -> list[str]:
        field_map = {
            'id': entry.id,
            'class_name': entry.class_name,
            'day_of_week': entry.day_of_week,
            'period': entry.period,
            'start_time': entry.start_time or '',
            'end_time': entry.end_time or '',
            'subject': entry.subject,
            'teacher_id': entry.teacher.id,
            'teacher_name': entry.teacher.name,
        }
        return [field_map.get(col, '') for col in self.columns]


def format_csv(entries: Iterable[TimetableEntry], minimal: bool = False) -> str:
    """Convenience function for CSV formatting."""
    columns = CSVFormatter.MINIMAL_COLUMNS if minimal else None
    return CSVFormatter(columns=columns).format(entries)


# =============================================================================
# Week Grid
# =============================================================================

class WeekGridFormatter:
    """Formats entries as a week grid, one row per period including breaks."""

    def __init__(self, grid: SlotGrid, show_class: bool = False, show_teacher: bool = True):
        """
        Args:
            grid: Days and periods to lay out
            show_class: Add the class name to each cell (teacher or day views)
            show_teacher: Add the teacher name to each cell
        """
        self.grid = grid
        self.show_class = show_class
        self.show_teacher = show_teacher

    def table(self, entries: Iterable[TimetableEntry], title: Optional[str] = None) -> Table:
        cells = self.grid.build_cells(entries)

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Period", style="dim")
        for day in self.grid.days:
            table.add_column(day[:3], justify="center")

        for key, slot in self.grid.periods_payload().items():
            label = f"{key}\n{slot['start']}-{slot['end']}"
            if key not in self.grid.schedulable_periods:
                table.add_row(label, *([f"[dim]{key}[/dim]"] * len(self.grid.days)))
                continue
            row = [label]
            for day in self.grid.days:
                entries_here = cells.get(day, {}).get(key, [])
                row.append("\n".join(self._cell(e) for e in entries_here) or "[dim]-[/dim]")
            table.add_row(*row)

        return table

    def format(self, entries: Iterable[TimetableEntry], title: Optional[str] = None, width: int = 120) -> str:
        """Render the grid to plain text."""
        console = Console(record=True, width=width)
        console.print(self.table(entries, title=title))
        return console.export_text()

    def _cell(self, entry: TimetableEntry) -> str:
        lines = [f"[bold]{entry.subject}[/bold]"]
        if self.show_class:
            lines.append(entry.class_name)
        if self.show_teacher:
            lines.append(entry.teacher.name)
        return "\n".join(lines)


def format_week_grid(
    entries: Iterable[TimetableEntry],
    grid: SlotGrid,
    title: Optional[str] = None,
    show_class: bool = False,
    show_teacher: bool = True,
) -> str:
    """Format entries as a week grid."""
    return WeekGridFormatter(grid, show_class=show_class, show_teacher=show_teacher).format(entries, title=title)


# =============================================================================
# File Writing Utilities
# =============================================================================

def save_json(entries: Iterable[TimetableEntry], filepath: str | Path, indent: int = 2) -> None:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath.write_text(format_json(entries, indent=indent), encoding='utf-8')


def save_csv(entries: Iterable[TimetableEntry], filepath: str | Path, minimal: bool = False) -> None:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    columns = CSVFormatter.MINIMAL_COLUMNS if minimal else None
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        CSVFormatter(columns=columns).write(entries, f)


def save_week_grid(
    entries: Iterable[TimetableEntry],
    grid: SlotGrid,
    filepath: str | Path,
    title: Optional[str] = None,
    show_class: bool = False,
    show_teacher: bool = True,
) -> None:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    text = format_week_grid(entries, grid, title=title, show_class=show_class, show_teacher=show_teacher)
    filepath.write_text(text, encoding='utf-8')
