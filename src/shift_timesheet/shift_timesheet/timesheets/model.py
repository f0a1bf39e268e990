from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import EntryState
from ..shifts.model import ShiftSchedule, ShiftScheduleDetail


@dataclass(frozen=True)
class AttendanceEntry:
    """Domain entity: one clock-in/clock-out punch pair.

    ``shift_date`` is the logical work day, which for overnight shifts can be
    the calendar day before ``time_in``. Totals stay at zero while the entry
    is open.
    """

    employee_id: int
    shift_date: date
    time_in: datetime
    shift_schedule: ShiftSchedule
    shift_schedule_detail: ShiftScheduleDetail
    next_day_shift_schedule: ShiftSchedule
    next_day_shift_schedule_detail: ShiftScheduleDetail
    time_out: Optional[datetime] = None
    duration: int = 0
    minutes_late: int = 0
    minutes_undertime: int = 0
    minutes_excess: int = 0
    entry_id: Optional[int] = None

    @property
    def state(self) -> EntryState:
        return EntryState.OPEN if self.time_out is None else EntryState.CLOSED

    @property
    def is_open(self) -> bool:
        return self.time_out is None


@dataclass(frozen=True)
class ClockResult:
    """Outcome of a lifecycle operation.

    ``superseded`` holds earlier same-day entries whose totals were zeroed in
    the same transaction; ``warnings`` carries non-fatal notification failures.
    """

    entry: AttendanceEntry
    superseded: tuple[AttendanceEntry, ...] = ()
    warnings: tuple[str, ...] = ()
