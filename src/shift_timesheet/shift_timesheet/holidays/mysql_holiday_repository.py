from __future__ import annotations

from datetime import date
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import HolidayCalendar


class MySQLHolidayCalendar(HolidayCalendar):
    """Holidays are either branch specific or company wide (branch_id NULL)."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def is_holiday(self, branch_id: Optional[int], day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_id
                FROM holidays
                WHERE holiday_date=%s AND (branch_id IS NULL OR branch_id=%s)
                LIMIT 1
                """,
                (day, branch_id),
            )
            return fetchone(cur) is not None
