from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional

from ..attendance.repository import AttendanceRepository
from ..common.clock import Clock
from ..common.datetime_utils import iso_week_bounds
from ..core.constants import MAX_DAILY_OVERTIME_HOURS, MAX_WEEKLY_OVERTIME_HOURS, MIN_OVERTIME_MINUTES
from ..core.enums import ApprovalStatus
from ..core.exceptions import PolicyViolation, ValidationError
from ..employees.repository import EmployeeRepository
from .model import OvertimeRequest
from .repository import OvertimeRequestRepository

ACTIVE_STATUSES = (ApprovalStatus.PENDING, ApprovalStatus.APPROVED)


class OvertimeValidator:
    """Ordered submission rules for overtime; the first failing rule raises."""

    def __init__(
        self,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        requests: OvertimeRequestRepository,
        clock: Clock,
        *,
        min_minutes: int = MIN_OVERTIME_MINUTES,
        max_daily_hours: Decimal = MAX_DAILY_OVERTIME_HOURS,
        max_weekly_hours: Decimal = MAX_WEEKLY_OVERTIME_HOURS,
    ):
        self._employees = employees
        self._attendance = attendance
        self._requests = requests
        self._clock = clock
        self._min_minutes = int(min_minutes)
        self._max_daily_hours = Decimal(max_daily_hours)
        self._max_weekly_hours = Decimal(max_weekly_hours)
        self._rules: List[Callable[[OvertimeRequest], None]] = [
            self.check_eligibility,
            self._check_interval,
            self._check_not_past,
            self._check_minimum,
            self._check_daily_cap,
            self._check_attendance,
            self._check_weekly_cap,
            self._check_overlap,
        ]

    def validate(self, request: OvertimeRequest) -> None:
        for rule in self._rules:
            rule(request)

    def check_eligibility(self, request: OvertimeRequest) -> None:
        if not self._employees.is_overtime_eligible(request.employee_id):
            raise PolicyViolation("Employee is not eligible for overtime")

    def _check_interval(self, request: OvertimeRequest) -> None:
        if request.overtime_end <= request.overtime_start:
            raise ValidationError("Overtime end must be after overtime start")

    def _check_not_past(self, request: OvertimeRequest) -> None:
        if request.overtime_date < self._clock.today():
            raise ValidationError("Cannot request overtime for a past date")

    def _check_minimum(self, request: OvertimeRequest) -> None:
        if request.duration_minutes < self._min_minutes:
            raise PolicyViolation(f"Overtime must be at least {self._min_minutes} minutes")

    def _check_daily_cap(self, request: OvertimeRequest) -> None:
        if Decimal(request.duration_minutes) / Decimal(60) > self._max_daily_hours:
            raise PolicyViolation(f"Overtime cannot exceed {self._max_daily_hours} hours per request")

    def _check_attendance(self, request: OvertimeRequest) -> None:
        record = self._attendance.get_for_employee_and_date(request.employee_id, request.overtime_date)
        if not record or not record.is_complete_attendance():
            raise PolicyViolation("Complete attendance is required on the overtime date")

    def weekly_hours(self, employee_id: int, when: datetime, *, exclude_id: Optional[int] = None) -> Decimal:
        """Approved plus pending overtime hours starting in the ISO week of ``when``."""

        monday, sunday = iso_week_bounds(when.date())
        start = datetime.combine(monday, datetime.min.time())
        end = datetime.combine(sunday + timedelta(days=1), datetime.min.time())
        requests = self._requests.list_for_employee(
            employee_id=employee_id, start=start, end=end, statuses=ACTIVE_STATUSES
        )
        return sum(
            (r.hours for r in requests if start <= r.overtime_start < end and r.request_id != exclude_id),
            Decimal("0"),
        )

    def _check_weekly_cap(self, request: OvertimeRequest) -> None:
        used = self.weekly_hours(request.employee_id, request.overtime_start, exclude_id=request.request_id)
        if used + request.hours > self._max_weekly_hours:
            raise PolicyViolation(
                f"Weekly overtime limit of {self._max_weekly_hours} hours exceeded ({used} already requested)"
            )

    def _check_overlap(self, request: OvertimeRequest) -> None:
        existing = self._requests.list_for_employee(
            employee_id=request.employee_id,
            start=request.overtime_start,
            end=request.overtime_end,
            statuses=ACTIVE_STATUSES,
        )
        for other in existing:
            if other.request_id != request.request_id and other.overlaps(request.overtime_start, request.overtime_end):
                raise PolicyViolation(f"Overtime overlaps existing request {other.request_id}")
