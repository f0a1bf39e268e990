from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Iterator, Optional, Sequence

import mysql.connector

from ..core.exceptions import AlreadyClockedIn, ConfigurationError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..shifts.model import ShiftSchedule, ShiftScheduleDetail
from ..shifts.mysql_shift_repository import MySQLShiftCalendar
from .model import AttendanceEntry
from .repository import TimesheetRepository, TimesheetUnitOfWork

_COLUMNS = """
    entry_id, employee_id, shift_date, time_in, time_out,
    shift_schedule_id, shift_schedule_detail_id,
    next_day_shift_schedule_id, next_day_shift_schedule_detail_id,
    duration, minutes_late, minutes_undertime, minutes_excess
"""


class _RowMapper:
    """Hydrates entry rows; schedules are loaded once per cursor."""

    def __init__(self, cur, calendar: MySQLShiftCalendar):
        self._cur = cur
        self._calendar = calendar
        self._schedules: dict[int, ShiftSchedule] = {}

    def _schedule(self, schedule_id: int) -> ShiftSchedule:
        if schedule_id not in self._schedules:
            schedule = self._calendar.load_schedule(self._cur, schedule_id)
            if schedule is None:
                raise ConfigurationError(f"Unknown shift schedule {schedule_id}")
            self._schedules[schedule_id] = schedule
        return self._schedules[schedule_id]

    @staticmethod
    def _detail(schedule: ShiftSchedule, detail_id: int) -> ShiftScheduleDetail:
        for detail in schedule.details:
            if detail.detail_id == detail_id:
                return detail
        raise ConfigurationError(f"Schedule {schedule.schedule_id} has no detail {detail_id}")

    def entry(self, r: Dict[str, Any]) -> AttendanceEntry:
        schedule = self._schedule(int(r["shift_schedule_id"]))
        next_schedule = self._schedule(int(r["next_day_shift_schedule_id"]))
        return AttendanceEntry(
            entry_id=int(r["entry_id"]),
            employee_id=int(r["employee_id"]),
            shift_date=r["shift_date"],
            time_in=r["time_in"],
            time_out=r.get("time_out"),
            shift_schedule=schedule,
            shift_schedule_detail=self._detail(schedule, int(r["shift_schedule_detail_id"])),
            next_day_shift_schedule=next_schedule,
            next_day_shift_schedule_detail=self._detail(next_schedule, int(r["next_day_shift_schedule_detail_id"])),
            duration=int(r["duration"] or 0),
            minutes_late=int(r["minutes_late"] or 0),
            minutes_undertime=int(r["minutes_undertime"] or 0),
            minutes_excess=int(r["minutes_excess"] or 0),
        )

    def entries(self, rows) -> list[AttendanceEntry]:
        return [self.entry(r) for r in rows]


def _values(entry: AttendanceEntry) -> tuple:
    return (
        entry.shift_date,
        entry.time_in,
        entry.time_out,
        entry.shift_schedule.schedule_id,
        entry.shift_schedule_detail.detail_id,
        entry.next_day_shift_schedule.schedule_id,
        entry.next_day_shift_schedule_detail.detail_id,
        entry.duration,
        entry.minutes_late,
        entry.minutes_undertime,
        entry.minutes_excess,
    )


class MySQLTimesheetUnitOfWork(TimesheetUnitOfWork):
    """Runs on one connection; every read locks the rows it returns."""

    def __init__(self, cur, employee_id: int, mapper: _RowMapper):
        self._cur = cur
        self._employee_id = int(employee_id)
        self._mapper = mapper

    def open_entries(self) -> Sequence[AttendanceEntry]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM attendance_entries
            WHERE employee_id=%s AND time_out IS NULL
            ORDER BY time_in ASC, entry_id ASC
            FOR UPDATE
            """,
            (self._employee_id,),
        )
        return self._mapper.entries(fetchall(self._cur))

    def entries_for_shift_date(self, shift_date: date) -> Sequence[AttendanceEntry]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM attendance_entries
            WHERE employee_id=%s AND shift_date=%s
            ORDER BY time_in ASC, entry_id ASC
            FOR UPDATE
            """,
            (self._employee_id, shift_date),
        )
        return self._mapper.entries(fetchall(self._cur))

    def previous_closed_entry(self, before: datetime, *, exclude_id: Optional[int] = None) -> Optional[AttendanceEntry]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM attendance_entries
            WHERE employee_id=%s AND time_out IS NOT NULL AND time_in <= %s AND entry_id <> %s
            ORDER BY time_in DESC, entry_id DESC
            LIMIT 1
            """,
            (self._employee_id, before, int(exclude_id or 0)),
        )
        r = fetchone(self._cur)
        return self._mapper.entry(r) if r else None

    def get(self, entry_id: int) -> Optional[AttendanceEntry]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM attendance_entries
            WHERE entry_id=%s AND employee_id=%s
            FOR UPDATE
            """,
            (int(entry_id), self._employee_id),
        )
        r = fetchone(self._cur)
        return self._mapper.entry(r) if r else None

    def insert(self, entry: AttendanceEntry) -> AttendanceEntry:
        try:
            self._cur.execute(
                """
                INSERT INTO attendance_entries(
                    employee_id, shift_date, time_in, time_out,
                    shift_schedule_id, shift_schedule_detail_id,
                    next_day_shift_schedule_id, next_day_shift_schedule_detail_id,
                    duration, minutes_late, minutes_undertime, minutes_excess
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (self._employee_id, *_values(entry)),
            )
        except mysql.connector.IntegrityError as e:
            # uq_one_open_entry: another request opened an entry first.
            if is_duplicate_key(e):
                raise AlreadyClockedIn("You are still clocked in; clock out first") from e
            raise
        return replace(entry, entry_id=int(self._cur.lastrowid))

    def save_all(self, entries: Sequence[AttendanceEntry]) -> None:
        if not entries:
            return
        self._cur.executemany(
            """
            UPDATE attendance_entries
            SET shift_date=%s, time_in=%s, time_out=%s,
                shift_schedule_id=%s, shift_schedule_detail_id=%s,
                next_day_shift_schedule_id=%s, next_day_shift_schedule_detail_id=%s,
                duration=%s, minutes_late=%s, minutes_undertime=%s, minutes_excess=%s
            WHERE entry_id=%s AND employee_id=%s
            """,
            [(*_values(e), int(e.entry_id), self._employee_id) for e in entries],
        )


class MySQLTimesheetRepository(TimesheetRepository):
    def __init__(self, conn_factory: DatabaseConnection, calendar: MySQLShiftCalendar):
        self._conn_factory = conn_factory
        self._calendar = calendar

    @contextmanager
    def transaction(self, employee_id: int) -> Iterator[TimesheetUnitOfWork]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Per-employee serialization point held until commit/rollback.
            cur.execute("SELECT employee_id FROM employees WHERE employee_id=%s FOR UPDATE", (int(employee_id),))
            if not fetchone(cur):
                raise ValidationError("Employee does not exist")
            yield MySQLTimesheetUnitOfWork(cur, employee_id, _RowMapper(cur, self._calendar))

    def get_entry(self, entry_id: int) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_entries WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return _RowMapper(cur, self._calendar).entry(r) if r else None

    def entries_within(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_entries
                WHERE employee_id=%s AND shift_date BETWEEN %s AND %s
                ORDER BY time_in ASC, entry_id ASC
                """,
                (int(employee_id), start, end),
            )
            return _RowMapper(cur, self._calendar).entries(fetchall(cur))

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_entries
                WHERE employee_id=%s
                ORDER BY time_in DESC, entry_id DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            return _RowMapper(cur, self._calendar).entries(fetchall(cur))
