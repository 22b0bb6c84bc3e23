"""
SQLite storage for timetable entries and period definitions.

All writes go through `transaction()`, which holds the store lock and
commits or rolls back as one unit. A generation run deletes a class's
entries and inserts the new ones inside a single transaction, so a failed
or concurrent run never leaves a partial timetable behind.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from .data.models import PeriodSlot, TeacherRef, TimetableEntry
from .errors import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS timetable_entries (
    id TEXT PRIMARY KEY,
    class_name TEXT NOT NULL,
    day_of_week TEXT NOT NULL,
    period TEXT NOT NULL,
    subject TEXT NOT NULL,
    teacher_id TEXT NOT NULL,
    teacher_name TEXT NOT NULL,
    start_time TEXT,
    end_time TEXT,
    UNIQUE (day_of_week, period, teacher_id)
);
CREATE INDEX IF NOT EXISTS idx_entries_class ON timetable_entries (class_name);
CREATE TABLE IF NOT EXISTS periods (
    number TEXT PRIMARY KEY,
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL
);
"""

ENTRY_COLUMNS = "id, class_name, day_of_week, period, subject, teacher_id, teacher_name, start_time, end_time"


def _row_to_entry(row: sqlite3.Row) -> TimetableEntry:
    return TimetableEntry(
        id=row["id"],
        class_name=row["class_name"],
        day_of_week=row["day_of_week"],
        period=row["period"],
        subject=row["subject"],
        teacher=TeacherRef(id=row["teacher_id"], name=row["teacher_name"]),
        start_time=row["start_time"],
        end_time=row["end_time"],
    )


def _entry_params(entry: TimetableEntry) -> tuple:
    return (
        entry.id,
        entry.class_name,
        entry.day_of_week,
        entry.period,
        entry.subject,
        entry.teacher.id,
        entry.teacher.name,
        entry.start_time,
        entry.end_time,
    )


class TimetableStore:
    """
    Timetable persistence on top of sqlite3.

    Usage:
        store = TimetableStore(":memory:")
        with store.transaction() as tx:
            tx.delete_class("SS2 gold")
            tx.insert_entries(entries)
    """

    def __init__(self, database_path: str = ":memory:"):
        self.database_path = database_path
        self._lock = threading.RLock()
        try:
            self.connection = sqlite3.connect(database_path, check_same_thread=False)
            self.connection.row_factory = sqlite3.Row
            self.connection.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open timetable database '{database_path}': {e}") from e

    def close(self) -> None:
        with self._lock:
            self.connection.close()

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["TimetableStore"]:
        """
        Run a group of writes atomically.

        Raises:
            PersistenceError: If SQLite fails; nothing is committed
        """
        with self._lock:
            try:
                yield self
                self.connection.commit()
            except sqlite3.Error as e:
                self.connection.rollback()
                logger.error("Timetable transaction rolled back: %s", e)
                raise PersistenceError(f"Failed to save timetable: {e}") from e
            except BaseException as e:
                self.connection.rollback()
                logger.debug("Timetable transaction rolled back: %r", e)
                raise

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def list_entries(
        self,
        class_name: Optional[str] = None,
        day_of_week: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> list[TimetableEntry]:
        """Entries matching every given filter, ordered by class then period."""
        clauses = []
        params: list[str] = []
        for column, value in (
            ("class_name", class_name),
            ("day_of_week", day_of_week),
            ("teacher_id", teacher_id),
        ):
            if value:
                clauses.append(f"{column} = ?")
                params.append(value)

        sql = f"SELECT {ENTRY_COLUMNS} FROM timetable_entries"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY class_name, CAST(period AS INTEGER), period"

        rows = self._fetch(sql, params)
        return [_row_to_entry(row) for row in rows]

    def get_entry(self, entry_id: str) -> Optional[TimetableEntry]:
        rows = self._fetch(f"SELECT {ENTRY_COLUMNS} FROM timetable_entries WHERE id = ?", [entry_id])
        return _row_to_entry(rows[0]) if rows else None

    def count_class(self, class_name: str) -> int:
        rows = self._fetch("SELECT COUNT(*) AS n FROM timetable_entries WHERE class_name = ?", [class_name])
        return rows[0]["n"]

    def class_names(self) -> list[str]:
        rows = self._fetch("SELECT DISTINCT class_name FROM timetable_entries ORDER BY class_name", [])
        return [row["class_name"] for row in rows]

    def insert_entry(self, entry: TimetableEntry) -> TimetableEntry:
        self.connection.execute(
            f"INSERT INTO timetable_entries ({ENTRY_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            _entry_params(entry),
        )
        return entry

    def insert_entries(self, entries: Iterable[TimetableEntry]) -> int:
        params = [_entry_params(e) for e in entries]
        self.connection.executemany(
            f"INSERT INTO timetable_entries ({ENTRY_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            params,
        )
        return len(params)

    def update_entry(self, entry: TimetableEntry) -> TimetableEntry:
        self.connection.execute(
            "UPDATE timetable_entries SET class_name = ?, day_of_week = ?, period = ?, subject = ?, "
            "teacher_id = ?, teacher_name = ?, start_time = ?, end_time = ? WHERE id = ?",
            _entry_params(entry)[1:] + (entry.id,),
        )
        return entry

    def delete_entry(self, entry_id: str) -> bool:
        cursor = self.connection.execute("DELETE FROM timetable_entries WHERE id = ?", (entry_id,))
        return cursor.rowcount > 0

    def delete_class(self, class_name: str) -> int:
        cursor = self.connection.execute("DELETE FROM timetable_entries WHERE class_name = ?", (class_name,))
        return cursor.rowcount

    # -------------------------------------------------------------------------
    # Periods
    # -------------------------------------------------------------------------

    def load_periods(self) -> dict[str, PeriodSlot]:
        """Period definitions added at runtime."""
        rows = self._fetch("SELECT number, start_time, end_time FROM periods", [])
        return {row["number"]: PeriodSlot(start=row["start_time"], end=row["end_time"]) for row in rows}

    def save_period(self, number: str, slot: PeriodSlot) -> None:
        self.connection.execute(
            "INSERT INTO periods (number, start_time, end_time) VALUES (?, ?, ?)",
            (number, slot.start, slot.end),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _fetch(self, sql: str, params: list) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self.connection.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to read timetable: {e}") from e
