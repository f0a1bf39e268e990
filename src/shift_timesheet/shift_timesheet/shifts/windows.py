from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from .model import ShiftScheduleDetail

Window = tuple[datetime, datetime]


@dataclass(frozen=True)
class ShiftWindowCalculator:
    """Absolute clock-in/clock-out windows of a detail on a given shift date.

    Pure value object: every method is derived from the detail and the date.
    """

    detail: ShiftScheduleDetail

    def _at(self, day: date, moment: time) -> datetime:
        # Anything earlier in the day than the opening of the clock-in window
        # belongs to the following calendar day.
        value = datetime.combine(day, moment)
        if moment < self.detail.time_in_min:
            value += timedelta(days=1)
        return value

    def valid_clock_in_window(self, day: date) -> Window:
        return datetime.combine(day, self.detail.time_in_min), self._at(day, self.detail.time_in_max)

    def valid_clock_out_window(self, day: date) -> Window:
        earliest = self._at(day, self.detail.time_out_min)
        latest = self._at(day, self.detail.time_out_max)
        if latest < earliest:
            latest += timedelta(days=1)
        return earliest, latest

    def shift_range(self, day: date) -> Window:
        start, _ = self.valid_clock_in_window(day)
        _, end = self.valid_clock_out_window(day)
        return start, end

    def covers(self, day: date, moment: datetime) -> bool:
        start, end = self.shift_range(day)
        return start <= moment <= end

    def nominal_minutes(self) -> int:
        return int(self.detail.shift_total_time)

    def is_day_off(self) -> bool:
        return bool(self.detail.is_day_off)
