from __future__ import annotations

from datetime import date, datetime
from typing import ContextManager, Optional, Protocol, Sequence

from .model import AttendanceEntry


class TimesheetUnitOfWork(Protocol):
    """Reads and writes of one employee's entries inside a single transaction.

    Implementations must hold the employee's lock for the whole unit of work
    so the open-entry check, sibling reads and batch writes are atomic.
    """

    def open_entries(self) -> Sequence[AttendanceEntry]:
        """Entries without time_out, ascending by time_in."""

        raise NotImplementedError

    def entries_for_shift_date(self, shift_date: date) -> Sequence[AttendanceEntry]:
        """All entries of the shift day, ascending by time_in."""

        raise NotImplementedError

    def previous_closed_entry(self, before: datetime, *, exclude_id: Optional[int] = None) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def get(self, entry_id: int) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def insert(self, entry: AttendanceEntry) -> AttendanceEntry:
        """Persist a new entry and return it with its entry_id."""

        raise NotImplementedError

    def save_all(self, entries: Sequence[AttendanceEntry]) -> None:
        raise NotImplementedError


class TimesheetRepository(Protocol):
    def transaction(self, employee_id: int) -> ContextManager[TimesheetUnitOfWork]:
        raise NotImplementedError

    def get_entry(self, entry_id: int) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def entries_within(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceEntry]:
        """Entries whose shift date is within [start, end], ascending by time_in."""

        raise NotImplementedError

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceEntry]:
        raise NotImplementedError
