from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import Optional

from ..core.exceptions import ConfigurationError


@dataclass(frozen=True)
class ShiftScheduleDetail:
    """Domain entity: the shift rules of one weekday inside a schedule.

    ``day_of_week`` follows ``date.weekday()`` (Monday=0). The clock-in window
    is ``[time_in_min, time_in_max]`` and the clock-out window
    ``[time_out_min, time_out_max]``; a clock-out bound earlier in the day than
    ``time_in_min`` falls on the next calendar day.
    """

    day_of_week: int
    time_in_min: time
    time_in_max: time
    time_out_min: time
    time_out_max: time
    shift_total_time: int
    is_day_off: bool = False
    detail_id: Optional[int] = None

    @property
    def crosses_midnight(self) -> bool:
        return self.time_out_max < self.time_in_min

    def shift_date_for(self, naive_date: date, at: time) -> date:
        """Return the shift day a punch at ``naive_date`` ``at`` belongs to.

        For an overnight shift (e.g. 22:00-06:00) a punch in the small hours,
        before the clock-in window opens, still belongs to yesterday's shift.
        """

        if self.crosses_midnight and at <= self.time_out_max and at < self.time_in_min:
            return naive_date - timedelta(days=1)
        return naive_date


@dataclass(frozen=True)
class ShiftSchedule:
    """Domain entity: a named weekly shift pattern."""

    schedule_id: int
    name: str
    details: tuple[ShiftScheduleDetail, ...] = field(default_factory=tuple)

    def detail_for(self, day_of_week: int) -> ShiftScheduleDetail:
        for detail in self.details:
            if detail.day_of_week == day_of_week:
                return detail
        raise ConfigurationError(f"Schedule {self.name!r} has no detail for day_of_week={day_of_week}")

    def detail_for_date(self, day: date) -> ShiftScheduleDetail:
        return self.detail_for(day.weekday())


@dataclass(frozen=True)
class ScheduleAssignment:
    """Effective-dated base assignment of an employee to a schedule."""

    employee_id: int
    schedule_id: int
    effective_from: date
    effective_to: Optional[date] = None

    def covers(self, day: date) -> bool:
        if day < self.effective_from:
            return False
        return self.effective_to is None or day <= self.effective_to


@dataclass(frozen=True)
class ScheduleOverride:
    """Date-ranged schedule that replaces the base assignment (roster change)."""

    start_date: date
    end_date: date
    schedule: ShiftSchedule
    note: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
