from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from ..common.datetime_utils import ceil_minutes, floor_minutes
from ..employees.model import Employee
from ..shifts.windows import ShiftWindowCalculator
from .model import AttendanceEntry
from .workdays import WorkDayPolicy


@dataclass(frozen=True)
class Computation:
    entry: AttendanceEntry
    superseded: tuple[AttendanceEntry, ...] = ()


class DurationComputer:
    """Duration, lateness, undertime and excess of a punch within its shift day.

    Merge policy: when several punches of one shift day form a contiguous
    block inside the shift, only the entry closing the block carries the
    totals; the earlier ones are returned zeroed in ``Computation.superseded``.
    Minutes are floored, except undertime which is rounded up.
    """

    def __init__(self, workdays: WorkDayPolicy):
        self._workdays = workdays

    @staticmethod
    def prior_entries(entry: AttendanceEntry, siblings: Iterable[AttendanceEntry]) -> list[AttendanceEntry]:
        priors = [
            s
            for s in siblings
            if s.time_in <= entry.time_in and (entry.entry_id is None or s.entry_id != entry.entry_id)
        ]
        priors.sort(key=lambda s: (s.time_in, s.entry_id or 0))
        return priors

    def effective_time_in(self, employee: Employee, entry: AttendanceEntry) -> datetime:
        """Time in clamped to the opening of the clock-in window, except on holidays."""

        if self._workdays.is_holiday(employee, entry.shift_date):
            return entry.time_in
        earliest, _ = ShiftWindowCalculator(entry.shift_schedule_detail).valid_clock_in_window(entry.shift_date)
        return max(entry.time_in, earliest)

    def is_work_day(self, employee: Employee, entry: AttendanceEntry) -> bool:
        return self._workdays.is_work_day(employee, entry.shift_schedule_detail, entry.shift_date)

    def is_within_shift(
        self, employee: Employee, entry: AttendanceEntry, siblings: Sequence[AttendanceEntry]
    ) -> bool:
        if not self.is_work_day(employee, entry):
            return False

        calc = ShiftWindowCalculator(entry.shift_schedule_detail)
        priors = self.prior_entries(entry, siblings)
        if sum(p.duration for p in priors) >= calc.nominal_minutes():
            return False

        first = priors[0] if priors else entry
        _, latest_in = calc.valid_clock_in_window(first.shift_date)
        start = min(self.effective_time_in(employee, first), latest_in)
        end = start + timedelta(minutes=calc.nominal_minutes())
        return start <= self.effective_time_in(employee, entry) <= end

    def minutes_late(self, employee: Employee, entry: AttendanceEntry, siblings: Sequence[AttendanceEntry]) -> int:
        if self.prior_entries(entry, siblings):
            return 0
        if not self.is_within_shift(employee, entry, siblings):
            return 0
        _, latest_in = ShiftWindowCalculator(entry.shift_schedule_detail).valid_clock_in_window(entry.shift_date)
        return max(0, floor_minutes(self.effective_time_in(employee, entry) - latest_in))

    def valid_time_out(self, employee: Employee, entry: AttendanceEntry) -> datetime:
        """Theoretical clock-out that completes the shift for a block starting at ``entry``."""

        calc = ShiftWindowCalculator(entry.shift_schedule_detail)
        if entry.minutes_late > 0:
            _, latest_out = calc.valid_clock_out_window(entry.shift_date)
            return latest_out
        return self.effective_time_in(employee, entry) + timedelta(minutes=calc.nominal_minutes())

    def compute(self, employee: Employee, entry: AttendanceEntry, siblings: Sequence[AttendanceEntry]) -> Computation:
        if entry.time_out is None:
            return Computation(entry=entry)

        others = [s for s in siblings if entry.entry_id is None or s.entry_id != entry.entry_id]
        priors = self.prior_entries(entry, others)
        time_out = entry.time_out

        if self.is_within_shift(employee, entry, others):
            first = priors[0] if priors else entry
            valid_out = self.valid_time_out(employee, first)
            duration = max(0, floor_minutes(time_out - self.effective_time_in(employee, first)))
            undertime = max(0, ceil_minutes(valid_out - time_out))
            excess = 0 if undertime > 0 else max(0, floor_minutes(time_out - valid_out))
            superseded = tuple(
                replace(p, duration=0, minutes_excess=0, minutes_undertime=0) for p in priors
            )
            closed = replace(entry, duration=duration, minutes_undertime=undertime, minutes_excess=excess)
            return Computation(entry=closed, superseded=superseded)

        counted = not self.is_work_day(employee, entry) or any(
            self.is_within_shift(employee, p, others) for p in priors
        )
        if not counted:
            # Logged but not counted until a later punch qualifies.
            return Computation(entry=replace(entry, duration=0, minutes_undertime=0, minutes_excess=0))

        duration = max(0, floor_minutes(time_out - self.effective_time_in(employee, entry)))
        outstanding = sum(p.minutes_undertime for p in priors)
        excess = duration if outstanding == 0 else 0
        return Computation(entry=replace(entry, duration=duration, minutes_undertime=0, minutes_excess=excess))
