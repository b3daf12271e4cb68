"""Optional mirror of computed attendance into a database.

The report is always computed in memory first. A store only receives a copy
through idempotent upserts keyed by employee id and (employee, date), so
writing the same report twice leaves the same rows behind.
"""
import logging
import os
import sqlite3
from contextlib import closing, contextmanager
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from attendance.calendar_policy import days_in_month, expected_hours_for
from attendance.errors import StoreUnavailableError
from attendance.models import AttendanceFact, MonthlyReport

logger = logging.getLogger(__name__)

DB_PATH_ENV = "ATTENDANCE_DB_PATH"

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS employees (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        employee_id TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS attendances (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        employee_id INTEGER NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
        date TEXT NOT NULL,
        in_time TEXT,
        out_time TEXT,
        worked_hours REAL,
        is_leave INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (employee_id, date)
    )
    """,
)


class AttendanceStore:
    """Interface for attendance persistence backends."""

    def is_enabled(self) -> bool:
        raise NotImplementedError

    @contextmanager
    def session(self):
        """Group several writes; backends without transactions just run them."""
        yield self

    def upsert_employee(self, employee_id: str, name: str) -> int:
        raise NotImplementedError

    def upsert_attendance(
        self,
        employee_handle: int,
        day: str,
        in_time: Optional[str],
        out_time: Optional[str],
        worked_hours: Optional[float],
        is_leave: bool,
    ) -> None:
        raise NotImplementedError

    def load_month(self, year: int, month: int) -> Tuple[List[AttendanceFact], List[Tuple[str, str]]]:
        """Stored facts for the month plus every stored (employee_id, name)."""
        raise NotImplementedError


class NullStore(AttendanceStore):
    """Used when no database is configured: writes are dropped, reads fail."""

    def is_enabled(self) -> bool:
        return False

    def upsert_employee(self, employee_id: str, name: str) -> int:
        return 0

    def upsert_attendance(self, employee_handle, day, in_time, out_time, worked_hours, is_leave) -> None:
        return None

    def load_month(self, year: int, month: int):
        raise StoreUnavailableError("Database not configured")


class SqliteAttendanceStore(AttendanceStore):
    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _connection(self):
        """The open session connection, or a short-lived one committed and closed on exit."""
        if self._conn is not None:
            yield self._conn
            return
        with closing(self._connect()) as conn, conn:
            yield conn

    @contextmanager
    def session(self):
        """Run every write inside one connection and one transaction."""
        if self._conn is not None:
            yield self
            return
        with closing(self._connect()) as conn:
            self._conn = conn
            try:
                with conn:
                    yield self
            finally:
                self._conn = None

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for statement in SCHEMA:
                conn.execute(statement)

    def is_enabled(self) -> bool:
        return True

    def upsert_employee(self, employee_id: str, name: str) -> int:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO employees (employee_id, name) VALUES (?, ?)
                ON CONFLICT (employee_id) DO UPDATE SET
                    name = excluded.name,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (employee_id, name),
            )
            cur = conn.execute("SELECT id FROM employees WHERE employee_id = ?", (employee_id,))
            return cur.fetchone()[0]

    def upsert_attendance(self, employee_handle, day, in_time, out_time, worked_hours, is_leave) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO attendances (employee_id, date, in_time, out_time, worked_hours, is_leave)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (employee_id, date) DO UPDATE SET
                    in_time = excluded.in_time,
                    out_time = excluded.out_time,
                    worked_hours = excluded.worked_hours,
                    is_leave = excluded.is_leave,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (employee_handle, day, in_time, out_time, worked_hours, int(bool(is_leave))),
            )

    def load_month(self, year: int, month: int):
        start = date(year, month, 1).isoformat()
        end = date(year, month, days_in_month(year, month)).isoformat()
        with self._connection() as conn:
            employees = conn.execute("SELECT employee_id, name FROM employees ORDER BY id").fetchall()
            rows = conn.execute(
                """
                SELECT e.employee_id, e.name, a.date, a.in_time, a.out_time, a.worked_hours, a.is_leave
                FROM attendances a JOIN employees e ON e.id = a.employee_id
                WHERE a.date BETWEEN ? AND ?
                ORDER BY e.id, a.date
                """,
                (start, end),
            ).fetchall()

        facts = [
            AttendanceFact(
                employee_id=employee_id,
                employee_name=name,
                date=day,
                in_time=in_time,
                out_time=out_time,
                worked_hours=worked_hours,
                is_leave=bool(is_leave),
                expected_hours=expected_hours_for(date.fromisoformat(day)),
            )
            for employee_id, name, day, in_time, out_time, worked_hours, is_leave in rows
        ]
        return facts, [(employee_id, name) for employee_id, name in employees]


def store_from_env() -> AttendanceStore:
    """SQLite store when ATTENDANCE_DB_PATH is set, otherwise a NullStore."""
    db_path = os.environ.get(DB_PATH_ENV)
    if not db_path:
        return NullStore()
    return SqliteAttendanceStore(Path(db_path))


def persist_report(store: AttendanceStore, report: MonthlyReport) -> bool:
    """Mirror every employee and daily record into `store`.

    Failures are logged and swallowed so they never change the report outcome.
    Returns True when everything was written.
    """
    if not store.is_enabled():
        return False
    try:
        with store.session():
            for emp in report.employees:
                handle = store.upsert_employee(emp.employee_id, emp.employee_name)
                for record in emp.daily_records:
                    store.upsert_attendance(
                        handle,
                        record.date,
                        record.in_time,
                        record.out_time,
                        record.worked_hours,
                        record.is_leave,
                    )
    except Exception:
        logger.exception("Database error (non-fatal)")
        return False
    logger.info(f"Stored {len(report.employees)} employees for {report.year}-{report.month_number:02d}")
    return True
