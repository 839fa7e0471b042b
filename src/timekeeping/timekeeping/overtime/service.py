from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from ..common.clock import Clock
from ..common.datetime_utils import month_bounds
from ..common.validators import require_non_empty, require_positive_id
from ..core.constants import DEFAULT_RANKING_LIMIT
from ..core.enums import ApprovalStatus
from ..core.exceptions import PolicyViolation, StateError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .calculator import OvertimePayCalculator
from .model import OvertimeDecision, OvertimeRanking, OvertimeRequest
from .repository import OvertimeRequestRepository
from .validator import OvertimeValidator

logger = logging.getLogger(__name__)


def _day_start(day: date) -> datetime:
    return datetime.combine(day, datetime.min.time())


class OvertimeService:
    def __init__(
        self,
        requests: OvertimeRequestRepository,
        employees: EmployeeRepository,
        validator: OvertimeValidator,
        clock: Clock,
        *,
        calculator: Optional[OvertimePayCalculator] = None,
    ):
        self._requests = requests
        self._employees = employees
        self._validator = validator
        self._clock = clock
        self._calculator = calculator or OvertimePayCalculator()

    def _require_request(self, request_id: int) -> OvertimeRequest:
        request = self._requests.get_by_id(require_positive_id(request_id, "Request id"))
        if not request:
            raise StateError("Overtime request not found")
        return request

    def _require_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise StateError("Employee not found")
        return employee

    def submit_overtime_request(
        self,
        *,
        employee_id: int,
        overtime_start: datetime,
        overtime_end: datetime,
        reason: str,
    ) -> OvertimeDecision:
        """Validate and store a PENDING request. The returned pay is an estimate."""

        employee_id = require_positive_id(employee_id, "Employee id")
        if overtime_start is None or overtime_end is None:
            raise ValidationError("Overtime start and end are required")

        draft = OvertimeRequest(
            request_id=None,
            employee_id=employee_id,
            overtime_start=overtime_start,
            overtime_end=overtime_end,
            reason=(reason or "").strip(),
            created_at=self._clock.now(),
        )
        try:
            self._validator.validate(draft)
        except PolicyViolation as exc:
            logger.info("Overtime request rejected for employee %s: %s", employee_id, exc)
            raise
        require_non_empty(draft.reason, "Overtime reason")

        request_id = self._requests.create(draft)
        request = self._require_request(request_id)
        employee = self._require_employee(employee_id)
        logger.info(
            "Overtime request %s submitted by employee %s (%s hours on %s)",
            request_id, employee_id, request.hours, request.overtime_date,
        )
        return OvertimeDecision(
            request=request,
            premium_pay=self._calculator.premium_pay(request, employee.hourly_rate),
            multiplier=self._calculator.multiplier(request),
        )

    def approve_overtime_request(self, request_id: int, *, supervisor_notes: Optional[str] = None) -> OvertimeDecision:
        request = self._require_request(request_id)
        if not request.status.can_transition_to(ApprovalStatus.APPROVED):
            raise StateError(f"Overtime request is already {request.status.value}")
        self._validator.check_eligibility(request)

        if not self._requests.decide(
            request_id=request.request_id,
            status=ApprovalStatus.APPROVED,
            decided_at=self._clock.now(),
            supervisor_notes=(supervisor_notes or "").strip() or None,
        ):
            raise StateError("Overtime request was decided concurrently")

        approved = self._require_request(request.request_id)
        employee = self._require_employee(approved.employee_id)
        pay = self._calculator.premium_pay(approved, employee.hourly_rate)
        logger.info("Overtime request %s approved: %s hours, premium pay %s", approved.request_id, approved.hours, pay)
        return OvertimeDecision(request=approved, premium_pay=pay, multiplier=self._calculator.multiplier(approved))

    def reject_overtime_request(self, request_id: int, *, supervisor_notes: str) -> OvertimeRequest:
        notes = require_non_empty(supervisor_notes, "Rejection notes")
        request = self._require_request(request_id)
        if not request.status.can_transition_to(ApprovalStatus.REJECTED):
            raise StateError(f"Overtime request is already {request.status.value}")

        if not self._requests.decide(
            request_id=request.request_id,
            status=ApprovalStatus.REJECTED,
            decided_at=self._clock.now(),
            supervisor_notes=notes,
        ):
            raise StateError("Overtime request was decided concurrently")
        logger.info("Overtime request %s rejected", request.request_id)
        return self._require_request(request.request_id)

    def _approved_between(self, employee_id: int, start_date: date, end_date: date) -> Sequence[OvertimeRequest]:
        start, end = _day_start(start_date), _day_start(end_date + timedelta(days=1))
        return [
            r
            for r in self._requests.list_for_employee(
                employee_id=int(employee_id), start=start, end=end, statuses=(ApprovalStatus.APPROVED,)
            )
            if start <= r.overtime_start < end
        ]

    def get_total_approved_hours(self, *, employee_id: int, start_date: date, end_date: date) -> Decimal:
        return sum((r.hours for r in self._approved_between(employee_id, start_date, end_date)), Decimal("0"))

    def calculate_monthly_overtime_pay(self, *, employee_id: int, year: int, month: int) -> Decimal:
        employee = self._require_employee(employee_id)
        start, end = month_bounds(int(year), int(month))
        return sum(
            (self._calculator.premium_pay(r, employee.hourly_rate) for r in self._approved_between(employee.employee_id, start, end)),
            Decimal("0"),
        )

    def get_employee_overtime_summary(self, *, employee_id: int, year: int, month: int) -> Dict[str, object]:
        employee = self._require_employee(employee_id)
        first, last = month_bounds(int(year), int(month))
        start, end = _day_start(first), _day_start(last + timedelta(days=1))
        requests = [
            r
            for r in self._requests.list_for_employee(employee_id=employee.employee_id, start=start, end=end)
            if start <= r.overtime_start < end
        ]
        by_status: Dict[ApprovalStatus, List[OvertimeRequest]] = defaultdict(list)
        for r in requests:
            by_status[r.status].append(r)

        approved = by_status[ApprovalStatus.APPROVED]
        return {
            "employee_id": employee.employee_id,
            "year": int(year),
            "month": int(month),
            "is_overtime_eligible": employee.is_overtime_eligible,
            "total_requests": len(requests),
            "approved_requests": len(approved),
            "pending_requests": len(by_status[ApprovalStatus.PENDING]),
            "rejected_requests": len(by_status[ApprovalStatus.REJECTED]),
            "approved_hours": sum((r.hours for r in approved), Decimal("0")),
            "pending_hours": sum((r.hours for r in by_status[ApprovalStatus.PENDING]), Decimal("0")),
            "total_pay": sum((self._calculator.premium_pay(r, employee.hourly_rate) for r in approved), Decimal("0")),
        }

    def get_top_overtime_employees(
        self, *, start_date: date, end_date: date, limit: int = DEFAULT_RANKING_LIMIT
    ) -> List[OvertimeRanking]:
        """Eligible employees ranked by approved hours; pay estimated at the base multiplier."""

        if end_date < start_date:
            raise ValidationError("End date must not be before start date")
        ranking = []
        for employee in self._employees.list_overtime_eligible():
            hours = self.get_total_approved_hours(
                employee_id=employee.employee_id, start_date=start_date, end_date=end_date
            )
            if hours <= 0:
                continue
            ranking.append(
                OvertimeRanking(
                    employee_id=employee.employee_id,
                    full_name=employee.full_name,
                    total_hours=hours,
                    estimated_pay=self._calculator.base_pay(hours, employee.hourly_rate),
                )
            )
        ranking.sort(key=lambda r: (-r.total_hours, r.employee_id))
        return ranking[: max(0, int(limit))]

    def get_pending_requests(self) -> List[OvertimeRequest]:
        """Pending requests of employees who are still overtime-eligible."""

        eligible = {e.employee_id for e in self._employees.list_overtime_eligible()}
        return [r for r in self._requests.list_by_status(ApprovalStatus.PENDING) if r.employee_id in eligible]

    def get_eligibility_message(self, employee_id: int) -> str:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            return "Employee not found"
        if employee.is_overtime_eligible:
            return "Eligible for overtime with premium pay"
        return "Not eligible for overtime: salaried employees are paid a fixed day"
