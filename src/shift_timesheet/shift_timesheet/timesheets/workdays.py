from __future__ import annotations

from datetime import date

from ..employees.model import Employee
from ..holidays.repository import HolidayCalendar
from ..shifts.model import ShiftScheduleDetail


class WorkDayPolicy:
    """A work day is neither the schedule's day off nor a branch holiday."""

    def __init__(self, holidays: HolidayCalendar):
        self._holidays = holidays

    def is_holiday(self, employee: Employee, day: date) -> bool:
        return bool(self._holidays.is_holiday(employee.branch_id, day))

    def is_work_day(self, employee: Employee, detail: ShiftScheduleDetail, day: date) -> bool:
        if detail.is_day_off:
            return False
        return not self.is_holiday(employee, day)
