from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Optional

from src.shift_timesheet.shift_timesheet.employees.model import Employee
from src.shift_timesheet.shift_timesheet.shifts.model import ScheduleOverride, ShiftSchedule, ShiftScheduleDetail
from src.shift_timesheet.shift_timesheet.timesheets.durations import DurationComputer
from src.shift_timesheet.shift_timesheet.timesheets.model import AttendanceEntry
from src.shift_timesheet.shift_timesheet.timesheets.resolver import ShiftResolver
from src.shift_timesheet.shift_timesheet.timesheets.service import TimesheetService
from src.shift_timesheet.shift_timesheet.timesheets.workdays import WorkDayPolicy

# 2025-03-03 is a Monday.
MONDAY = date(2025, 3, 3)
TUESDAY = MONDAY + timedelta(days=1)
SATURDAY = MONDAY + timedelta(days=5)


def at(day: date, hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute, second))


def weekly_schedule(
    schedule_id: int,
    name: str,
    *,
    time_in: tuple[time, time],
    time_out: tuple[time, time],
    total: int = 480,
    days_off: tuple[int, ...] = (5, 6),
) -> ShiftSchedule:
    details = tuple(
        ShiftScheduleDetail(
            detail_id=schedule_id * 10 + dow,
            day_of_week=dow,
            time_in_min=time_in[0],
            time_in_max=time_in[1],
            time_out_min=time_out[0],
            time_out_max=time_out[1],
            shift_total_time=total,
            is_day_off=dow in days_off,
        )
        for dow in range(7)
    )
    return ShiftSchedule(schedule_id=schedule_id, name=name, details=details)


REGULAR = weekly_schedule(1, "Regular", time_in=(time(9, 0), time(9, 15)), time_out=(time(17, 0), time(18, 0)))
FLEX = weekly_schedule(2, "Flexi", time_in=(time(7, 0), time(9, 15)), time_out=(time(16, 0), time(18, 0)))
GRAVEYARD = weekly_schedule(3, "Graveyard", time_in=(time(22, 0), time(22, 15)), time_out=(time(6, 0), time(7, 0)))
AFTERNOON = weekly_schedule(4, "Afternoon", time_in=(time(13, 0), time(13, 15)), time_out=(time(21, 0), time(22, 0)))


class FixedClock:
    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value


@dataclass
class InMemoryEmployees:
    employees_by_id: dict[int, Employee]

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.employees_by_id.get(employee_id)


@dataclass
class InMemoryShiftCalendar:
    base: dict[int, ShiftSchedule]
    overrides: dict[int, list[ScheduleOverride]] = field(default_factory=dict)

    def shift_schedule(self, employee: Employee, day: date) -> Optional[ShiftSchedule]:
        return self.base.get(employee.employee_id)

    def schedule_overrides(self, employee: Employee):
        return list(self.overrides.get(employee.employee_id, []))


@dataclass
class InMemoryHolidays:
    days: set[date] = field(default_factory=set)

    def is_holiday(self, branch_id: Optional[int], day: date) -> bool:
        return day in self.days


class _UnitOfWork:
    def __init__(self, store: "InMemoryTimesheets", employee_id: int):
        self._store = store
        self._employee_id = employee_id
        self.staged: dict[int, AttendanceEntry] = {}

    def _rows(self) -> list[AttendanceEntry]:
        merged = {**self._store.rows, **self.staged}
        rows = [e for e in merged.values() if e.employee_id == self._employee_id]
        rows.sort(key=lambda e: (e.time_in, e.entry_id))
        return rows

    def open_entries(self):
        return [e for e in self._rows() if e.time_out is None]

    def entries_for_shift_date(self, shift_date: date):
        return [e for e in self._rows() if e.shift_date == shift_date]

    def previous_closed_entry(self, before: datetime, *, exclude_id: Optional[int] = None):
        rows = [
            e
            for e in self._rows()
            if e.time_out is not None and e.time_in <= before and e.entry_id != exclude_id
        ]
        return rows[-1] if rows else None

    def get(self, entry_id: int):
        return next((e for e in self._rows() if e.entry_id == entry_id), None)

    def insert(self, entry: AttendanceEntry) -> AttendanceEntry:
        stored = replace(entry, entry_id=self._store.next_id())
        self.staged[stored.entry_id] = stored
        return stored

    def save_all(self, entries) -> None:
        for e in entries:
            self.staged[e.entry_id] = e


class InMemoryTimesheets:
    """Per-employee locks; staged writes are applied only when the block exits cleanly."""

    def __init__(self, rows: Optional[list[AttendanceEntry]] = None):
        self.rows: dict[int, AttendanceEntry] = {}
        self._locks: dict[int, threading.Lock] = defaultdict(threading.Lock)
        self._guard = threading.Lock()
        self._id = 0
        for row in rows or []:
            self.rows[row.entry_id] = row
            self._id = max(self._id, row.entry_id)

    def next_id(self) -> int:
        with self._guard:
            self._id += 1
            return self._id

    @contextmanager
    def transaction(self, employee_id: int):
        with self._guard:
            lock = self._locks[employee_id]
        with lock:
            uow = _UnitOfWork(self, employee_id)
            yield uow
            self.rows.update(uow.staged)

    def get_entry(self, entry_id: int):
        return self.rows.get(entry_id)

    def entries_within(self, employee_id: int, start: date, end: date):
        rows = [e for e in self.rows.values() if e.employee_id == employee_id and start <= e.shift_date <= end]
        return sorted(rows, key=lambda e: e.time_in)

    def get_recent_for_employee(self, employee_id: int, limit: int):
        rows = [e for e in self.rows.values() if e.employee_id == employee_id]
        rows.sort(key=lambda e: e.time_in, reverse=True)
        return rows[:limit]

    def for_employee(self, employee_id: int) -> list[AttendanceEntry]:
        rows = [e for e in self.rows.values() if e.employee_id == employee_id]
        return sorted(rows, key=lambda e: e.time_in)


@dataclass
class Harness:
    clock: FixedClock
    employees: InMemoryEmployees
    calendar: InMemoryShiftCalendar
    holidays: InMemoryHolidays
    timesheets: InMemoryTimesheets
    resolver: ShiftResolver
    computer: DurationComputer
    service: TimesheetService

    def punch(self, employee_id: int, time_in: datetime, time_out: Optional[datetime] = None):
        self.clock.set(time_in)
        result = self.service.clock_in(employee_id)
        if time_out is None:
            return result
        self.clock.set(time_out)
        return self.service.clock_out(employee_id)


def build_harness(
    *,
    schedule: ShiftSchedule = REGULAR,
    now: Optional[datetime] = None,
    holidays: Optional[set[date]] = None,
    overrides: Optional[list[ScheduleOverride]] = None,
    rows: Optional[list[AttendanceEntry]] = None,
    notifier=None,
) -> Harness:
    staff = Employee(employee_id=1, full_name="Ana Staff", branch_id=1, email="ana@example.com", supervisor_id=2)
    boss = Employee(employee_id=2, full_name="Ben Boss", branch_id=1, email="ben@example.com")
    employees = InMemoryEmployees({1: staff, 2: boss})
    calendar = InMemoryShiftCalendar(base={1: schedule, 2: schedule}, overrides={1: list(overrides or [])})
    holiday_calendar = InMemoryHolidays(set(holidays or set()))
    workdays = WorkDayPolicy(holiday_calendar)
    resolver = ShiftResolver(calendar, workdays)
    computer = DurationComputer(workdays)
    clock = FixedClock(now or at(MONDAY, 9))
    timesheets = InMemoryTimesheets(rows)
    service = TimesheetService(timesheets, employees, resolver, computer, clock=clock, notifier=notifier)
    return Harness(
        clock=clock,
        employees=employees,
        calendar=calendar,
        holidays=holiday_calendar,
        timesheets=timesheets,
        resolver=resolver,
        computer=computer,
        service=service,
    )


def open_entry(
    schedule: ShiftSchedule,
    shift_date: date,
    time_in: datetime,
    *,
    entry_id: int,
    employee_id: int = 1,
    time_out: Optional[datetime] = None,
) -> AttendanceEntry:
    next_date = shift_date + timedelta(days=1)
    return AttendanceEntry(
        entry_id=entry_id,
        employee_id=employee_id,
        shift_date=shift_date,
        time_in=time_in,
        time_out=time_out,
        shift_schedule=schedule,
        shift_schedule_detail=schedule.detail_for_date(shift_date),
        next_day_shift_schedule=schedule,
        next_day_shift_schedule_detail=schedule.detail_for_date(next_date),
    )
