from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from ..core.exceptions import ConfigurationError
from ..employees.model import Employee
from .model import ScheduleAssignment, ScheduleOverride, ShiftSchedule, ShiftScheduleDetail
from .repository import ShiftCalendar


class MySQLShiftCalendar(ShiftCalendar):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load_schedule(self, cur, schedule_id: int) -> Optional[ShiftSchedule]:
        cur.execute(
            "SELECT schedule_id, name FROM shift_schedules WHERE schedule_id=%s",
            (int(schedule_id),),
        )
        head = fetchone(cur)
        if not head:
            return None

        cur.execute(
            """
            SELECT detail_id, day_of_week, time_in_min, time_in_max,
                   time_out_min, time_out_max, shift_total_time, is_day_off
            FROM shift_schedule_details
            WHERE schedule_id=%s
            ORDER BY day_of_week
            """,
            (int(schedule_id),),
        )
        details = tuple(
            ShiftScheduleDetail(
                detail_id=int(r["detail_id"]),
                day_of_week=int(r["day_of_week"]),
                time_in_min=normalize_mysql_time(r["time_in_min"]),
                time_in_max=normalize_mysql_time(r["time_in_max"]),
                time_out_min=normalize_mysql_time(r["time_out_min"]),
                time_out_max=normalize_mysql_time(r["time_out_max"]),
                shift_total_time=int(r["shift_total_time"]),
                is_day_off=bool(r["is_day_off"]),
            )
            for r in fetchall(cur)
        )
        return ShiftSchedule(schedule_id=int(head["schedule_id"]), name=head["name"], details=details)

    def assignments(self, cur, employee_id: int) -> list[ScheduleAssignment]:
        cur.execute(
            """
            SELECT employee_id, schedule_id, effective_from, effective_to
            FROM schedule_assignments
            WHERE employee_id=%s
            ORDER BY effective_from DESC
            """,
            (int(employee_id),),
        )
        return [
            ScheduleAssignment(
                employee_id=int(r["employee_id"]),
                schedule_id=int(r["schedule_id"]),
                effective_from=r["effective_from"],
                effective_to=r.get("effective_to"),
            )
            for r in fetchall(cur)
        ]

    def shift_schedule(self, employee: Employee, day: date) -> Optional[ShiftSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Latest effective_from wins when assignments overlap.
            current = next((a for a in self.assignments(cur, employee.employee_id) if a.covers(day)), None)
            if current is None:
                return None
            schedule = self.load_schedule(cur, current.schedule_id)
            if schedule is None:
                raise ConfigurationError(f"Assignment references unknown schedule {current.schedule_id}")
            return schedule

    def schedule_overrides(self, employee: Employee) -> Sequence[ScheduleOverride]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT schedule_id, start_date, end_date, note
                FROM schedule_overrides
                WHERE employee_id=%s
                ORDER BY start_date ASC
                """,
                (employee.employee_id,),
            )
            rows = fetchall(cur)
            out: list[ScheduleOverride] = []
            for r in rows:
                schedule = self.load_schedule(cur, int(r["schedule_id"]))
                if schedule is None:
                    raise ConfigurationError(f"Override references unknown schedule {r['schedule_id']}")
                out.append(
                    ScheduleOverride(
                        start_date=r["start_date"],
                        end_date=r["end_date"],
                        schedule=schedule,
                        note=r.get("note"),
                    )
                )
            return out
