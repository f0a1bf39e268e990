from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock, format_minutes
from ..common.validators import require_not_future, require_positive_id, require_punch_order
from ..core.constants import DEFAULT_HISTORY_LIMIT, STALE_OPEN_ENTRY_DAYS
from ..core.enums import EntryField, EntryState
from ..core.exceptions import AlreadyClockedIn, NoOpenEntry, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..notifications.notifier import Notifier
from ..shifts.windows import ShiftWindowCalculator
from .durations import Computation, DurationComputer
from .model import AttendanceEntry, ClockResult
from .repository import TimesheetRepository, TimesheetUnitOfWork
from .resolver import ShiftResolver

logger = logging.getLogger(__name__)


class TimesheetService:
    """Lifecycle of attendance entries: OPEN on clock-in, CLOSED on clock-out.

    Every transition runs resolve -> compute -> persist inside one
    per-employee transaction of the timesheet repository.
    """

    def __init__(
        self,
        timesheets: TimesheetRepository,
        employees: EmployeeRepository,
        resolver: ShiftResolver,
        computer: DurationComputer,
        *,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
    ):
        self._timesheets = timesheets
        self._employees = employees
        self._resolver = resolver
        self._computer = computer
        self._clock = clock or SystemClock()
        self._notifier = notifier

    def _get_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(require_positive_id(employee_id, "employee_id"))
        if not employee:
            raise ValidationError("Employee does not exist")
        if not employee.is_active:
            raise ValidationError("Employee is inactive")
        return employee

    # -- pipeline stages ----------------------------------------------------

    def _open(
        self, employee: Employee, uow: TimesheetUnitOfWork, time_in: datetime, *, entry_id: Optional[int] = None
    ) -> AttendanceEntry:
        resolution = self._resolver.resolve_on_clock_in(employee, time_in)
        entry = AttendanceEntry(
            employee_id=employee.employee_id,
            shift_date=resolution.shift_date,
            time_in=time_in,
            shift_schedule=resolution.shift_schedule,
            shift_schedule_detail=resolution.shift_schedule_detail,
            next_day_shift_schedule=resolution.next_day_shift_schedule,
            next_day_shift_schedule_detail=resolution.next_day_shift_schedule_detail,
            entry_id=entry_id,
        )
        siblings = uow.entries_for_shift_date(entry.shift_date)
        return replace(entry, minutes_late=self._computer.minutes_late(employee, entry, siblings))

    def _validate(self, uow: TimesheetUnitOfWork, entry: AttendanceEntry, now: datetime) -> None:
        require_punch_order(entry.time_in, entry.time_out)
        require_not_future(entry.time_in, now, "Time in")
        require_not_future(entry.time_out, now, "Time out")

        previous = uow.previous_closed_entry(entry.time_in, exclude_id=entry.entry_id)
        if previous and previous.time_out and entry.time_in < previous.time_out:
            raise ValidationError("Time in should be later than last entries.")

    def _close(
        self, employee: Employee, uow: TimesheetUnitOfWork, entry: AttendanceEntry, time_out: datetime, now: datetime
    ) -> Computation:
        candidate = replace(entry, time_out=time_out)
        self._validate(uow, candidate, now)

        resolved = self._resolver.resolve_on_clock_out(employee, candidate)
        siblings = uow.entries_for_shift_date(resolved.shift_date)
        result = self._computer.compute(employee, resolved, siblings)
        uow.save_all([result.entry, *result.superseded])
        return result

    def _auto_close_time(self, entry: AttendanceEntry, now: datetime) -> datetime:
        _, latest_out = ShiftWindowCalculator(entry.shift_schedule_detail).valid_clock_out_window(entry.shift_date)
        return min(now, max(entry.time_in, latest_out))

    # -- notifications ------------------------------------------------------

    def _notify(self, employee: Employee, entry: AttendanceEntry, field: EntryField) -> list[str]:
        if self._notifier is None:
            return []

        recipients = [employee]
        if employee.supervisor_id and employee.supervisor_id != employee.employee_id:
            supervisor = self._employees.get_by_id(employee.supervisor_id)
            if supervisor:
                recipients.append(supervisor)

        warnings: list[str] = []
        for recipient in recipients:
            try:
                self._notifier.invalid_entry(employee=employee, recipient=recipient, entry=entry, field=field)
            except Exception as e:
                message = (
                    "Time entry was updated however there was problem with notification to "
                    f"{recipient.email or recipient.employee_id}: {e}"
                )
                logger.warning(message)
                warnings.append(message)
        return warnings

    # -- lifecycle ----------------------------------------------------------

    def clock_in(self, employee_id: int, *, force: bool = False) -> ClockResult:
        employee = self._get_employee(employee_id)
        now = self._clock.now()
        carried_over: list[AttendanceEntry] = []

        with self._timesheets.transaction(employee.employee_id) as uow:
            open_entries = uow.open_entries()
            cutoff = now.date() - timedelta(days=STALE_OPEN_ENTRY_DAYS)
            if any(e.shift_date >= cutoff for e in open_entries):
                raise AlreadyClockedIn("You are still clocked in; clock out first")
            if open_entries and not force:
                raise AlreadyClockedIn("A previous entry has no time out; clock out or force clock-in")

            for stale in open_entries:
                result = self._close(employee, uow, stale, self._auto_close_time(stale, now), now)
                carried_over.append(result.entry)

            entry = uow.insert(self._open(employee, uow, now))

        logger.info(
            "clock_in employee=%s entry=%s shift_date=%s late=%s",
            employee.employee_id,
            entry.entry_id,
            entry.shift_date,
            entry.minutes_late,
        )

        warnings: list[str] = []
        for closed in carried_over:
            logger.info("auto-closed stale entry=%s at %s", closed.entry_id, closed.time_out)
            warnings.extend(self._notify(employee, closed, EntryField.TIME_OUT))
        return ClockResult(entry=entry, warnings=tuple(warnings))

    def clock_out(self, employee_id: int) -> ClockResult:
        employee = self._get_employee(employee_id)
        now = self._clock.now()

        with self._timesheets.transaction(employee.employee_id) as uow:
            open_entries = uow.open_entries()
            if not open_entries:
                raise NoOpenEntry("You have not clocked in")
            result = self._close(employee, uow, open_entries[0], now, now)

        logger.info(
            "clock_out employee=%s entry=%s shift_date=%s duration=%s undertime=%s excess=%s superseded=%s",
            employee.employee_id,
            result.entry.entry_id,
            result.entry.shift_date,
            result.entry.duration,
            result.entry.minutes_undertime,
            result.entry.minutes_excess,
            len(result.superseded),
        )
        return ClockResult(entry=result.entry, superseded=result.superseded)

    def manual_correct(self, entry_id: int, new_time: datetime, field: EntryField | str) -> ClockResult:
        """Amend time_in or time_out of an entry and re-run the full pipeline.

        Correcting time_out of an open entry closes it.
        """

        try:
            field = EntryField(field)
        except ValueError:
            raise ValidationError(f"Unknown entry field: {field!r}")

        existing = self._timesheets.get_entry(require_positive_id(entry_id, "entry_id"))
        if not existing:
            raise ValidationError("Time entry does not exist")
        employee = self._get_employee(existing.employee_id)
        now = self._clock.now()

        with self._timesheets.transaction(employee.employee_id) as uow:
            entry = uow.get(int(entry_id))
            if not entry:
                raise ValidationError("Time entry does not exist")

            if field is EntryField.TIME_OUT:
                result = self._close(employee, uow, entry, new_time, now)
            else:
                moved = self._open(employee, uow, new_time, entry_id=entry.entry_id)
                moved = replace(moved, time_out=entry.time_out)
                if moved.time_out is None:
                    self._validate(uow, moved, now)
                    uow.save_all([moved])
                    result = Computation(entry=moved)
                else:
                    result = self._close(employee, uow, moved, moved.time_out, now)

        logger.info(
            "manual_correct entry=%s field=%s new_time=%s shift_date=%s",
            result.entry.entry_id,
            field.value,
            new_time,
            result.entry.shift_date,
        )
        warnings = self._notify(employee, result.entry, field)
        return ClockResult(entry=result.entry, superseded=result.superseded, warnings=tuple(warnings))

    # -- queries ------------------------------------------------------------

    def today(self) -> date:
        """Current local date according to the injected clock."""
        return self._clock.now().date()

    def entries_within(self, employee_id: int, date_range: tuple[date, date]) -> Sequence[AttendanceEntry]:
        start, end = date_range
        if start > end:
            raise ValidationError("Start date must not be after end date")
        rows = self._timesheets.entries_within(require_positive_id(employee_id, "employee_id"), start, end)
        return sorted(rows, key=lambda e: e.time_in)

    def get_open_entry(self, employee_id: int) -> Optional[AttendanceEntry]:
        rows = self._timesheets.get_recent_for_employee(require_positive_id(employee_id, "employee_id"), 1)
        if rows and rows[0].is_open:
            return rows[0]
        return None

    def get_history_ui(self, employee_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        rows = self._timesheets.get_recent_for_employee(require_positive_id(employee_id, "employee_id"), limit)
        return [self._to_ui(r) for r in rows]

    def _to_ui(self, e: AttendanceEntry) -> dict:
        css = {
            EntryState.OPEN: "bg-warning text-dark",
            EntryState.CLOSED: "bg-success",
        }[e.state]
        if e.state is EntryState.CLOSED and e.minutes_undertime:
            css = "bg-danger"

        return {
            "entry_id": e.entry_id,
            "date": e.shift_date.strftime("%Y-%m-%d"),
            "time_in": e.time_in.strftime("%H:%M:%S"),
            "time_out": e.time_out.strftime("%H:%M:%S") if e.time_out else "-",
            "state": e.state.value,
            "worked": format_minutes(e.duration),
            "late": format_minutes(e.minutes_late),
            "undertime": format_minutes(e.minutes_undertime),
            "excess": format_minutes(e.minutes_excess),
            "css_class": css,
        }
