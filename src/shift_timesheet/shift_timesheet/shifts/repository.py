from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..employees.model import Employee
from .model import ShiftSchedule, ScheduleOverride


class ShiftCalendar(Protocol):
    """Read-only view of the employees' shift calendar."""

    def shift_schedule(self, employee: Employee, day: date) -> Optional[ShiftSchedule]:
        """Schedule from the base assignment effective on ``day``."""

        raise NotImplementedError

    def schedule_overrides(self, employee: Employee) -> Sequence[ScheduleOverride]:
        """Date-ranged overrides, ordered by start date."""

        raise NotImplementedError
