from __future__ import annotations

from datetime import date
from typing import Optional, Protocol


class HolidayCalendar(Protocol):
    def is_holiday(self, branch_id: Optional[int], day: date) -> bool:
        raise NotImplementedError
