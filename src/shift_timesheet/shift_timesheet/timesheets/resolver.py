from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Sequence

from ..core.exceptions import ConfigurationError
from ..employees.model import Employee
from ..shifts.model import ScheduleOverride, ShiftSchedule, ShiftScheduleDetail
from ..shifts.repository import ShiftCalendar
from ..shifts.windows import ShiftWindowCalculator
from .model import AttendanceEntry
from .workdays import WorkDayPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    shift_date: date
    shift_schedule: ShiftSchedule
    shift_schedule_detail: ShiftScheduleDetail
    next_day_shift_schedule: ShiftSchedule
    next_day_shift_schedule_detail: ShiftScheduleDetail


class ShiftResolver:
    """Attributes punches to a shift day and the schedule detail that governs it."""

    def __init__(self, calendar: ShiftCalendar, workdays: WorkDayPolicy):
        self._calendar = calendar
        self._workdays = workdays

    def _overrides(self, employee: Employee) -> Sequence[ScheduleOverride]:
        overrides = sorted(self._calendar.schedule_overrides(employee), key=lambda o: o.start_date)
        previous = None
        for override in overrides:
            if override.start_date > override.end_date:
                raise ConfigurationError(
                    f"Schedule override {override.start_date}..{override.end_date} for employee "
                    f"{employee.employee_id} ends before it starts"
                )
            if previous is not None and override.start_date <= previous.end_date:
                raise ConfigurationError(
                    f"Schedule overrides for employee {employee.employee_id} overlap on {override.start_date}"
                )
            previous = override
        return overrides

    def effective_schedule(self, employee: Employee, day: date) -> ShiftSchedule:
        """Override covering ``day`` if any, otherwise the base assignment."""

        for override in self._overrides(employee):
            if override.covers(day):
                return override.schedule

        schedule = self._calendar.shift_schedule(employee, day)
        if schedule is None:
            raise ConfigurationError(f"No shift schedule for employee {employee.employee_id} on {day}")
        return schedule

    def _resolution(
        self, employee: Employee, shift_date: date, schedule: ShiftSchedule, detail: ShiftScheduleDetail
    ) -> Resolution:
        next_date = shift_date + timedelta(days=1)
        next_schedule = self.effective_schedule(employee, next_date)
        return Resolution(
            shift_date=shift_date,
            shift_schedule=schedule,
            shift_schedule_detail=detail,
            next_day_shift_schedule=next_schedule,
            next_day_shift_schedule_detail=next_schedule.detail_for_date(next_date),
        )

    def resolve_on_clock_in(self, employee: Employee, time_in: datetime) -> Resolution:
        naive_date = time_in.date()
        schedule = self.effective_schedule(employee, naive_date)
        detail = schedule.detail_for_date(naive_date)
        shift_date = detail.shift_date_for(naive_date, time_in.time())

        if shift_date != naive_date:
            # The punch belongs to yesterday's shift; yesterday may be on another schedule.
            active = self.effective_schedule(employee, shift_date)
            if active.schedule_id != schedule.schedule_id:
                logger.debug(
                    "employee=%s time_in=%s re-resolved schedule %s -> %s",
                    employee.employee_id,
                    time_in,
                    schedule.schedule_id,
                    active.schedule_id,
                )
            schedule = active
            detail = schedule.detail_for_date(shift_date)

        return self._resolution(employee, shift_date, schedule, detail)

    @staticmethod
    def _day_shift(
        *,
        covered: bool,
        work_day: bool,
        time_in: datetime,
        time_out: datetime,
        shift_start: datetime,
        max_end: datetime,
    ) -> int:
        if covered:
            if time_in < shift_start and time_out < shift_start and not work_day:
                return -1
            return 0
        if time_in > shift_start and time_out > max_end:
            return 1
        if time_in < shift_start and time_out < shift_start:
            return -1
        return 0

    def resolve_on_clock_out(self, employee: Employee, entry: AttendanceEntry) -> AttendanceEntry:
        """Move a closed entry to the neighbouring shift day when its punches say so.

        Returns the entry unchanged when no correction applies, so calling it
        again on its own output is a no-op.
        """

        if entry.time_out is None:
            return entry

        day = entry.shift_date
        detail = entry.shift_schedule_detail
        calc = ShiftWindowCalculator(detail)
        shift_start, _ = calc.shift_range(day)
        covered = calc.covers(day, entry.time_in)
        work_day = self._workdays.is_work_day(employee, detail, day)
        if covered and work_day:
            return entry

        active = self.effective_schedule(employee, day)
        if active.schedule_id != entry.shift_schedule.schedule_id:
            active_detail = active.detail_for(detail.day_of_week)
            shift_start, _ = ShiftWindowCalculator(active_detail).valid_clock_in_window(day)

        next_day = day + timedelta(days=1)
        max_end, _ = ShiftWindowCalculator(entry.next_day_shift_schedule_detail).valid_clock_in_window(next_day)

        diff = self._day_shift(
            covered=covered,
            work_day=work_day,
            time_in=entry.time_in,
            time_out=entry.time_out,
            shift_start=shift_start,
            max_end=max_end,
        )
        if diff == 0:
            return entry

        new_date = day + timedelta(days=diff)
        schedule = self.effective_schedule(employee, new_date)
        resolution = self._resolution(employee, new_date, schedule, schedule.detail_for_date(new_date))
        logger.debug(
            "employee=%s entry=%s shift date %s -> %s",
            employee.employee_id,
            entry.entry_id,
            day,
            new_date,
        )
        return replace(
            entry,
            shift_date=resolution.shift_date,
            shift_schedule=resolution.shift_schedule,
            shift_schedule_detail=resolution.shift_schedule_detail,
            next_day_shift_schedule=resolution.next_day_shift_schedule,
            next_day_shift_schedule_detail=resolution.next_day_shift_schedule_detail,
        )
