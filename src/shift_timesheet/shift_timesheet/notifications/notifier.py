from __future__ import annotations

import logging
from typing import Protocol

from ..core.enums import EntryField
from ..employees.model import Employee
from ..timesheets.model import AttendanceEntry

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivers "time entry was amended" notices. Delivery is best effort."""

    def invalid_entry(self, *, employee: Employee, recipient: Employee, entry: AttendanceEntry, field: EntryField) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default notifier: records the notice in the application log."""

    def invalid_entry(self, *, employee: Employee, recipient: Employee, entry: AttendanceEntry, field: EntryField) -> None:
        logger.info(
            "Invalid timesheet notice to=%s employee=%s entry=%s field=%s shift_date=%s",
            recipient.email or recipient.employee_id,
            employee.employee_id,
            entry.entry_id,
            field.value,
            entry.shift_date,
        )
