from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.clock import CivilClock, Clock
from .core.constants import DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .leave.mysql_leave_repository import MySQLLeaveBalanceRepository, MySQLLeaveRequestRepository
from .leave.service import LeaveService
from .overtime.mysql_overtime_repository import MySQLOvertimeRequestRepository
from .overtime.service import OvertimeService
from .overtime.validator import OvertimeValidator
from .payroll.service import PayrollReportService
from .tardiness.mysql_tardiness_repository import MySQLTardinessRepository
from .tardiness.service import TardinessService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    clock: Clock

    employees_repo: MySQLEmployeeRepository
    attendance_repo: MySQLAttendanceRepository
    tardiness_repo: MySQLTardinessRepository
    leave_requests_repo: MySQLLeaveRequestRepository
    leave_balances_repo: MySQLLeaveBalanceRepository
    overtime_repo: MySQLOvertimeRequestRepository

    tardiness_service: TardinessService
    attendance_service: AttendanceService
    payroll_report_service: PayrollReportService
    leave_service: LeaveService
    overtime_service: OvertimeService


def build_container(*, db_config: dict, timezone: str = DEFAULT_TIMEZONE, clock: Optional[Clock] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    clock = clock or CivilClock(timezone)

    employees_repo = MySQLEmployeeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    tardiness_repo = MySQLTardinessRepository(conn)
    leave_requests_repo = MySQLLeaveRequestRepository(conn)
    leave_balances_repo = MySQLLeaveBalanceRepository(conn)
    overtime_repo = MySQLOvertimeRequestRepository(conn)

    tardiness_service = TardinessService(tardiness_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        tardiness_service,
        clock,
        strategy_factory=AttendanceStrategyFactory(),
    )
    payroll_report_service = PayrollReportService(attendance_repo, employees_repo)
    leave_service = LeaveService(leave_requests_repo, leave_balances_repo, attendance_repo, clock)
    overtime_service = OvertimeService(
        overtime_repo,
        employees_repo,
        OvertimeValidator(employees_repo, attendance_repo, overtime_repo, clock),
        clock,
    )

    return Container(
        conn=conn,
        clock=clock,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        tardiness_repo=tardiness_repo,
        leave_requests_repo=leave_requests_repo,
        leave_balances_repo=leave_balances_repo,
        overtime_repo=overtime_repo,
        tardiness_service=tardiness_service,
        attendance_service=attendance_service,
        payroll_report_service=payroll_report_service,
        leave_service=leave_service,
        overtime_service=overtime_service,
    )
