from __future__ import annotations

from dataclasses import dataclass

from .common.datetime_utils import SystemClock
from .core.constants import DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .holidays.mysql_holiday_repository import MySQLHolidayCalendar
from .notifications.notifier import LoggingNotifier
from .shifts.mysql_shift_repository import MySQLShiftCalendar
from .timesheets.durations import DurationComputer
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.resolver import ShiftResolver
from .timesheets.service import TimesheetService
from .timesheets.workdays import WorkDayPolicy


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    employees_repo: MySQLEmployeeRepository
    shift_calendar: MySQLShiftCalendar
    holiday_calendar: MySQLHolidayCalendar
    timesheets_repo: MySQLTimesheetRepository

    resolver: ShiftResolver
    duration_computer: DurationComputer
    timesheet_service: TimesheetService


def build_container(*, db_config: dict, timezone: str = DEFAULT_TIMEZONE, notify_invalid_entries: bool = True) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    employees_repo = MySQLEmployeeRepository(conn)
    shift_calendar = MySQLShiftCalendar(conn)
    holiday_calendar = MySQLHolidayCalendar(conn)
    timesheets_repo = MySQLTimesheetRepository(conn, shift_calendar)

    workdays = WorkDayPolicy(holiday_calendar)
    resolver = ShiftResolver(shift_calendar, workdays)
    duration_computer = DurationComputer(workdays)
    timesheet_service = TimesheetService(
        timesheets_repo,
        employees_repo,
        resolver,
        duration_computer,
        clock=SystemClock(timezone),
        notifier=LoggingNotifier() if notify_invalid_entries else None,
    )

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        shift_calendar=shift_calendar,
        holiday_calendar=holiday_calendar,
        timesheets_repo=timesheets_repo,
        resolver=resolver,
        duration_computer=duration_computer,
        timesheet_service=timesheet_service,
    )
