from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import count_working_days, month_bounds, round_half_up
from ..core.constants import MONEY_SCALE
from ..core.enums import DailyAttendanceState
from ..core.exceptions import StateError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .calculator.base import PayrollCalculator
from .calculator.flat_day_calculator import FlatDayCalculator
from .calculator.overtime_eligible_calculator import OvertimeEligibleCalculator

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


@dataclass(frozen=True)
class MonthlyAttendanceSummary:
    employee_id: int
    year: int
    month: int
    is_overtime_eligible: bool
    total_days: int
    complete_days: int
    late_days: int
    within_grace_period_days: int
    total_hours: Decimal
    total_effective_hours: Decimal
    total_overtime_hours: Decimal
    total_late_hours: Decimal
    attendance_rate: Decimal
    punctuality_rate: Decimal
    working_days_in_month: int


@dataclass(frozen=True)
class DailyAttendanceRow:
    employee_id: int
    work_date: date
    time_in: Optional[str]
    time_out: Optional[str]
    state: DailyAttendanceState
    regular_hours: Decimal
    late_hours: Decimal
    overtime_hours: Decimal


def _rate(part: int, whole: int) -> Decimal:
    if whole <= 0:
        return Decimal("0")
    return round_half_up(Decimal(part) / Decimal(whole) * _HUNDRED, MONEY_SCALE)


class PayrollReportService:
    """Pay-relevant attendance projections.

    Which hours formula applies is decided per employee by classification.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        overtime_eligible_calculator: Optional[PayrollCalculator] = None,
        flat_day_calculator: Optional[PayrollCalculator] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._eligible_calculator = overtime_eligible_calculator or OvertimeEligibleCalculator()
        self._flat_calculator = flat_day_calculator or FlatDayCalculator()

    def calculator_for(self, employee: Employee) -> PayrollCalculator:
        return self._eligible_calculator if employee.is_overtime_eligible else self._flat_calculator

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise StateError("Employee not found")
        return employee

    def get_monthly_attendance_summary(self, *, employee_id: int, year: int, month: int) -> MonthlyAttendanceSummary:
        if not 1 <= int(month) <= 12:
            raise ValidationError("Month must be between 1 and 12")
        employee = self._employee(employee_id)
        calculator = self.calculator_for(employee)
        start, end = month_bounds(int(year), int(month))
        records = self._attendance.list_for_employee(employee_id=employee.employee_id, start_date=start, end_date=end)

        complete_days = late_days = grace_days = 0
        total_hours = total_effective = total_overtime = total_late = Decimal("0")
        for record in records:
            hours = calculator.day_hours(record)
            if record.is_complete_attendance():
                complete_days += 1
                total_hours += hours.regular_hours
                total_effective += hours.effective_hours
                total_overtime += hours.overtime_hours
            if record.is_late_attendance():
                late_days += 1
                total_late += hours.late_hours
            elif record.is_within_grace_period():
                grace_days += 1

        total_days = len(records)
        return MonthlyAttendanceSummary(
            employee_id=employee.employee_id,
            year=int(year),
            month=int(month),
            is_overtime_eligible=employee.is_overtime_eligible,
            total_days=total_days,
            complete_days=complete_days,
            late_days=late_days,
            within_grace_period_days=grace_days,
            total_hours=round_half_up(total_hours, MONEY_SCALE),
            total_effective_hours=round_half_up(total_effective, MONEY_SCALE),
            total_overtime_hours=round_half_up(total_overtime, MONEY_SCALE),
            total_late_hours=round_half_up(total_late, MONEY_SCALE),
            attendance_rate=_rate(total_days - late_days, total_days),
            punctuality_rate=_rate(total_days - late_days + grace_days, total_days),
            working_days_in_month=count_working_days(start, end),
        )

    def get_daily_attendance_report(self, work_date: date) -> List[DailyAttendanceRow]:
        rows: List[DailyAttendanceRow] = []
        for record in self._attendance.list_for_date(work_date):
            employee = self._employees.get_by_id(record.employee_id)
            calculator = self.calculator_for(employee) if employee else self._eligible_calculator
            hours = calculator.day_hours(record)
            rows.append(
                DailyAttendanceRow(
                    employee_id=record.employee_id,
                    work_date=record.work_date,
                    time_in=record.time_in.strftime("%H:%M") if record.time_in else None,
                    time_out=record.time_out.strftime("%H:%M") if record.time_out else None,
                    state=record.daily_state,
                    regular_hours=round_half_up(hours.regular_hours, MONEY_SCALE),
                    late_hours=round_half_up(hours.late_hours, MONEY_SCALE),
                    overtime_hours=round_half_up(hours.overtime_hours, MONEY_SCALE),
                )
            )
        return rows

    def calculate_compliance_rate(self, *, employee_id: int, start_date: date, end_date: date) -> Decimal:
        """Share of working days with a complete, non-late record. 100 when the range has no working days."""

        if end_date < start_date:
            raise ValidationError("End date must not be before start date")
        working_days = count_working_days(start_date, end_date)
        if working_days == 0:
            return _HUNDRED
        records = self._attendance.list_for_employee(employee_id=int(employee_id), start_date=start_date, end_date=end_date)
        compliant = sum(1 for r in records if r.is_complete_attendance() and not r.is_late_attendance())
        return _rate(compliant, working_days)

    def build_attendance_report(self, *, start: date, end: date, employee_id: int) -> ReportData:
        employee = self._employee(employee_id)
        calculator = self.calculator_for(employee)
        records = self._attendance.list_for_employee(employee_id=employee.employee_id, start_date=start, end_date=end)

        out_rows: list[dict] = []
        total = Decimal("0")
        for r in records:
            hours = calculator.day_hours(r)
            total += hours.effective_hours
            out_rows.append(
                {
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "time_in": r.time_in.strftime("%H:%M") if r.time_in else "-",
                    "time_out": r.time_out.strftime("%H:%M") if r.time_out else "-",
                    "state": r.daily_state.value,
                    "effective_hours": str(round_half_up(hours.effective_hours, MONEY_SCALE)),
                }
            )

        summary = [
            {
                "employee_id": employee.employee_id,
                "full_name": employee.full_name,
                "total_effective_hours": str(round_half_up(total, MONEY_SCALE)),
            }
        ]
        return ReportData(rows=out_rows, summary=summary)
