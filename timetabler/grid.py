"""
Weekly slot grid: school days by teaching periods.

The grid holds the period map (period number -> start/end time) and the
day order. BREAK and LUNCH live in the same map but are never schedulable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Optional, Sequence

from .data.models import (
    DEFAULT_DAYS,
    DEFAULT_PERIODS,
    PERIOD_NUMBER_PATTERN,
    PeriodSlot,
    TimetableEntry,
    time_to_minutes,
)
from .errors import ConflictError, ValidationError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass
class SlotGrid:
    """Days and periods available to a timetable."""
    periods: dict[str, PeriodSlot] = field(default_factory=lambda: dict(DEFAULT_PERIODS))
    days: list[str] = field(default_factory=lambda: list(DEFAULT_DAYS))

    @classmethod
    def from_mapping(cls, periods: Mapping[str, PeriodSlot], days: Optional[Sequence[str]] = None) -> "SlotGrid":
        return cls(periods=dict(periods), days=list(days or DEFAULT_DAYS))

    @property
    def schedulable_periods(self) -> list[str]:
        """Teaching periods in numeric order."""
        keys = [p for p in self.periods if PERIOD_NUMBER_PATTERN.fullmatch(p)]
        return sorted(keys, key=int)

    @property
    def slot_count(self) -> int:
        """Number of teaching slots in a week for one class."""
        return len(self.days) * len(self.schedulable_periods)

    def iter_slots(self) -> Iterator[tuple[str, str]]:
        """Yield (day, period) pairs, days outer and periods inner."""
        periods = self.schedulable_periods
        for day in self.days:
            for period in periods:
                yield day, period

    def is_schedulable(self, period: str) -> bool:
        return period in self.schedulable_periods

    def slot_times(self, period: str) -> tuple[Optional[str], Optional[str]]:
        """Start and end time of a period, or (None, None) if unknown."""
        slot = self.periods.get(period)
        if slot is None:
            return None, None
        return slot.start, slot.end

    def adjacent_periods(self, period: str) -> list[str]:
        """Teaching periods immediately before and after a period."""
        periods = self.schedulable_periods
        if period not in periods:
            return []
        index = periods.index(period)
        return [periods[i] for i in (index - 1, index + 1) if 0 <= i < len(periods)]

    def add_period(self, number: str, start: str, end: str) -> PeriodSlot:
        """
        Add a teaching period to the grid.

        Args:
            number: Period number, e.g. '9'
            start: Start time as HH:MM
            end: End time as HH:MM

        Returns:
            The new period slot

        Raises:
            ValidationError: If the number or times are malformed
            ConflictError: If the period number already exists
        """
        number = str(number).strip()
        if not PERIOD_NUMBER_PATTERN.fullmatch(number):
            raise ValidationError(f"Period number must be a positive integer, got '{number}'")
        if number in self.periods:
            raise ConflictError(f"Period {number} already exists")
        for value in (start, end):
            if not TIME_PATTERN.match(value or ""):
                raise ValidationError(f"Invalid time '{value}', expected HH:MM")
        if time_to_minutes(start) >= time_to_minutes(end):
            raise ValidationError(f"Period start ({start}) must be before end ({end})")

        slot = PeriodSlot(start=start, end=end)
        self.periods[number] = slot
        return slot

    def build_cells(self, entries: Iterable[TimetableEntry]) -> dict[str, dict[str, list[TimetableEntry]]]:
        """
        Arrange entries into {day: {period: [entries]}}.

        Every configured day and teaching period is present, so empty cells
        come back as empty lists. Entries for unknown days or periods are
        kept under their own keys.
        """
        cells: dict[str, dict[str, list[TimetableEntry]]] = {
            day: {period: [] for period in self.schedulable_periods}
            for day in self.days
        }
        for entry in entries:
            cells.setdefault(entry.day_of_week, {}).setdefault(entry.period, []).append(entry)
        return cells

    def periods_payload(self) -> dict[str, dict[str, str]]:
        """Period map as plain dicts, ordered by start time."""
        ordered = sorted(self.periods.items(), key=lambda item: time_to_minutes(item[1].start))
        return {key: slot.model_dump() for key, slot in ordered}
