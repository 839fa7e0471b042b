from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.clock import Clock
from ..common.datetime_utils import add_months, month_bounds, round_half_up
from ..common.validators import require_date, require_non_empty, require_positive_id
from ..core.constants import DEFAULT_LEAVE_ALLOCATIONS, DEFAULT_MAX_CARRY_OVER_DAYS, MONEY_SCALE, UPCOMING_LEAVE_MONTHS
from ..core.enums import ApprovalStatus
from ..core.exceptions import ConcurrencyError, DomainError, PolicyViolation, StateError, ValidationError
from .conflicts import LeaveConflictResolver
from .model import ConflictAnalysis, LeaveBalance, LeaveEligibility, LeaveRequest
from .repository import LeaveBalanceRepository, LeaveRequestRepository

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (ApprovalStatus.PENDING, ApprovalStatus.APPROVED)
CONFLICT_POLICY = "Attendance takes precedence: a worked day inside a leave range is not charged as leave"
_HUNDRED = Decimal("100")
_BALANCE_WRITE_ATTEMPTS = 3
_CANCEL_ATTEMPTS = 3


def _percent(part, whole) -> Decimal:
    if not whole:
        return Decimal("0")
    return round_half_up(Decimal(part) / Decimal(whole) * _HUNDRED, MONEY_SCALE)


class LeaveService:
    def __init__(
        self,
        requests: LeaveRequestRepository,
        balances: LeaveBalanceRepository,
        attendance: AttendanceRepository,
        clock: Clock,
        *,
        conflict_resolver: Optional[LeaveConflictResolver] = None,
        balance_write_attempts: int = _BALANCE_WRITE_ATTEMPTS,
    ):
        self._requests = requests
        self._balances = balances
        self._clock = clock
        self._resolver = conflict_resolver or LeaveConflictResolver(attendance)
        self._balance_write_attempts = max(1, int(balance_write_attempts))

    # ----- helpers -----

    def _validate_range(self, *, employee_id: int, leave_type_id: int, start_date: date, end_date: date) -> None:
        require_positive_id(employee_id, "Employee id")
        require_positive_id(leave_type_id, "Leave type id")
        require_date(start_date, "Start date")
        require_date(end_date, "End date")
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")
        if start_date < self._clock.today():
            raise ValidationError("Cannot request leave for past dates")

    def _require_request(self, request_id: int) -> LeaveRequest:
        request = self._requests.get_by_id(require_positive_id(request_id, "Request id"))
        if not request:
            raise StateError("Leave request not found")
        return request

    def _require_balance(self, *, employee_id: int, leave_type_id: int, year: int) -> LeaveBalance:
        balance = self._balances.get(employee_id=employee_id, leave_type_id=leave_type_id, year=year)
        if not balance:
            raise PolicyViolation(f"No leave balance for leave type {leave_type_id} in {year}")
        return balance

    def _change_balance(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        year: int,
        change: Callable[[LeaveBalance], LeaveBalance],
    ) -> LeaveBalance:
        """Read-modify-write under the balance version; re-reads on a lost race."""

        for _ in range(self._balance_write_attempts):
            current = self._require_balance(employee_id=employee_id, leave_type_id=leave_type_id, year=year)
            updated = change(current)
            if self._balances.save(updated):
                return updated
            logger.info("Leave balance %s changed concurrently; retrying", current.balance_id)
        raise ConcurrencyError("Leave balance was modified concurrently; retry the operation")

    def analyze_attendance_conflicts(self, request: LeaveRequest) -> ConflictAnalysis:
        return self._resolver.analyze(
            employee_id=request.employee_id, start_date=request.start_date, end_date=request.end_date
        )

    # ----- lifecycle -----

    def submit_leave_request(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        reason: str,
        pre_approved: bool = False,
        supervisor_notes: Optional[str] = None,
    ) -> LeaveRequest:
        self._validate_range(employee_id=employee_id, leave_type_id=leave_type_id, start_date=start_date, end_date=end_date)
        reason = require_non_empty(reason, "Leave reason")

        draft = LeaveRequest(
            request_id=None,
            employee_id=int(employee_id),
            leave_type_id=int(leave_type_id),
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            created_at=self._clock.now(),
        )
        if draft.working_days == 0:
            raise ValidationError("Leave range contains no working days")

        balance = self._require_balance(
            employee_id=draft.employee_id, leave_type_id=draft.leave_type_id, year=start_date.year
        )
        if not balance.can_take_leave(Decimal(draft.working_days)):
            raise PolicyViolation(
                f"Insufficient leave balance: requested {draft.working_days}, remaining {balance.remaining_days}"
            )

        analysis = self.analyze_attendance_conflicts(draft)

        overlapping = self._requests.list_for_employee(
            employee_id=draft.employee_id, start_date=start_date, end_date=end_date, statuses=ACTIVE_STATUSES
        )
        if overlapping:
            raise PolicyViolation(f"Leave overlaps existing request {overlapping[0].request_id}")

        request_id = self._requests.create(
            LeaveRequest(
                request_id=None,
                employee_id=draft.employee_id,
                leave_type_id=draft.leave_type_id,
                start_date=start_date,
                end_date=end_date,
                reason=reason,
                has_attendance_conflict=analysis.has_conflicts,
                created_at=draft.created_at,
            )
        )
        logger.info(
            "Leave request %s submitted by employee %s (%s to %s, %s working days, conflicts=%s)",
            request_id, draft.employee_id, start_date, end_date, draft.working_days, analysis.conflict_count,
        )
        if pre_approved:
            return self.approve_leave_request(request_id, supervisor_notes=supervisor_notes)
        return self._require_request(request_id)

    def approve_leave_request(self, request_id: int, *, supervisor_notes: Optional[str] = None) -> LeaveRequest:
        request = self._require_request(request_id)
        if not request.status.can_transition_to(ApprovalStatus.APPROVED):
            raise StateError(f"Leave request is already {request.status.value}")

        analysis = self.analyze_attendance_conflicts(request)
        effective = Decimal(analysis.effective_leave_days)
        year = request.start_date.year

        if effective > 0:
            self._change_balance(
                employee_id=request.employee_id,
                leave_type_id=request.leave_type_id,
                year=year,
                change=lambda b: b.deduct(effective),
            )
        else:
            self._require_balance(employee_id=request.employee_id, leave_type_id=request.leave_type_id, year=year)

        decided = self._requests.decide(
            request_id=request.request_id,
            status=ApprovalStatus.APPROVED,
            decided_at=self._clock.now(),
            supervisor_notes=(supervisor_notes or "").strip() or None,
            has_attendance_conflict=analysis.has_conflicts,
            deducted_days=effective,
        )
        if not decided:
            if effective > 0:
                self._change_balance(
                    employee_id=request.employee_id,
                    leave_type_id=request.leave_type_id,
                    year=year,
                    change=lambda b: b.restore(effective),
                )
            raise StateError("Leave request was decided concurrently")

        logger.info(
            "Leave request %s approved: %s of %s working days deducted",
            request.request_id, effective, analysis.original_leave_days,
        )
        return self._require_request(request.request_id)

    def reject_leave_request(self, request_id: int, *, supervisor_notes: str) -> LeaveRequest:
        notes = require_non_empty(supervisor_notes, "Rejection notes")
        request = self._require_request(request_id)
        if not request.status.can_transition_to(ApprovalStatus.REJECTED):
            raise StateError(f"Leave request is already {request.status.value}")

        if not self._requests.decide(
            request_id=request.request_id,
            status=ApprovalStatus.REJECTED,
            decided_at=self._clock.now(),
            supervisor_notes=notes,
        ):
            raise StateError("Leave request was decided concurrently")
        logger.info("Leave request %s rejected", request.request_id)
        return self._require_request(request.request_id)

    def cancel_leave_request(self, request_id: int, *, employee_id: int) -> Decimal:
        """Delete the request; returns the leave days given back to the balance.

        The delete only matches the status that was read; a request decided in
        between is read again before anything is restored.
        """

        for _ in range(_CANCEL_ATTEMPTS):
            request = self._require_request(request_id)
            if request.employee_id != int(employee_id):
                raise PolicyViolation("Only the requesting employee can cancel a leave request")
            if not request.can_be_cancelled(self._clock.today()):
                raise StateError("Leave request can no longer be cancelled")
            if self._requests.delete(request.request_id, expected_status=request.status):
                break
            logger.info("Leave request %s changed while cancelling; retrying", request.request_id)
        else:
            raise ConcurrencyError("Leave request was modified concurrently; retry the operation")

        restored = Decimal("0")
        if request.status == ApprovalStatus.APPROVED and request.deducted_days:
            restored = request.deducted_days
            self._change_balance(
                employee_id=request.employee_id,
                leave_type_id=request.leave_type_id,
                year=request.start_date.year,
                change=lambda b: b.restore(restored),
            )
        logger.info("Leave request %s cancelled (%s days restored)", request.request_id, restored)
        return restored

    # ----- balances -----

    def get_leave_balance(self, *, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveBalance]:
        return self._balances.get(employee_id=int(employee_id), leave_type_id=int(leave_type_id), year=int(year))

    def initialize_leave_balances(self, *, employee_id: int, year: Optional[int] = None) -> List[LeaveBalance]:
        """Create the default allocations an onboarded employee starts with. Existing rows are kept."""

        employee_id = require_positive_id(employee_id, "Employee id")
        year = int(year or self._clock.today().year)
        created: List[LeaveBalance] = []
        for leave_type_id, days in DEFAULT_LEAVE_ALLOCATIONS.items():
            if self._balances.get(employee_id=employee_id, leave_type_id=leave_type_id, year=year):
                continue
            balance = LeaveBalance(
                balance_id=None, employee_id=employee_id, leave_type_id=leave_type_id, year=year, total_days=days
            )
            balance_id = self._balances.create(balance)
            created.append(
                LeaveBalance(
                    balance_id=balance_id,
                    employee_id=employee_id,
                    leave_type_id=leave_type_id,
                    year=year,
                    total_days=days,
                )
            )
        logger.info("Initialized %s leave balances for employee %s (%s)", len(created), employee_id, year)
        return created

    def roll_over_balances(
        self,
        *,
        employee_id: int,
        from_year: int,
        max_carry_over: Decimal = DEFAULT_MAX_CARRY_OVER_DAYS,
    ) -> List[LeaveBalance]:
        created: List[LeaveBalance] = []
        for balance in self._balances.list_for_employee(employee_id=int(employee_id), year=int(from_year)):
            if self._balances.get(employee_id=balance.employee_id, leave_type_id=balance.leave_type_id, year=balance.year + 1):
                continue
            nxt = balance.next_year_balance(max_carry_over=Decimal(max_carry_over))
            self._balances.create(nxt)
            created.append(nxt)
        return created

    # ----- queries -----

    def can_request_leave(self, *, employee_id: int, leave_type_id: int, start_date: date, end_date: date) -> LeaveEligibility:
        try:
            self._validate_range(
                employee_id=employee_id, leave_type_id=leave_type_id, start_date=start_date, end_date=end_date
            )
        except ValidationError as exc:
            return LeaveEligibility(False, str(exc))

        probe = LeaveRequest(
            request_id=None,
            employee_id=int(employee_id),
            leave_type_id=int(leave_type_id),
            start_date=start_date,
            end_date=end_date,
            reason="",
        )
        if probe.working_days == 0:
            return LeaveEligibility(False, "Leave range contains no working days")

        balance = self.get_leave_balance(employee_id=employee_id, leave_type_id=leave_type_id, year=start_date.year)
        if not balance or not balance.can_take_leave(Decimal(probe.working_days)):
            return LeaveEligibility(False, "Insufficient leave balance for the requested period")
        return LeaveEligibility(True, "Eligible")

    def get_conflict_resolution_summary(self, request_id: int) -> Dict[str, object]:
        request = self._require_request(request_id)
        summary = self.analyze_attendance_conflicts(request).to_dict()
        summary.update(
            {
                "request_id": request.request_id,
                "status": request.status.value,
                "deducted_days": None if request.deducted_days is None else str(request.deducted_days),
                "policy": CONFLICT_POLICY,
            }
        )
        return summary

    def check_date_conflict(self, *, employee_id: int, day: date) -> Dict[str, object]:
        analysis = self._resolver.analyze(employee_id=int(employee_id), start_date=day, end_date=day)
        approved = self._requests.list_for_employee(
            employee_id=int(employee_id), start_date=day, end_date=day, statuses=(ApprovalStatus.APPROVED,)
        )
        worked = analysis.has_conflicts
        info: Dict[str, object] = {
            "date": day.isoformat(),
            "has_attendance": worked,
            "has_approved_leave": bool(approved),
            "has_conflict": worked and bool(approved),
        }
        if info["has_conflict"]:
            info["resolution"] = "Day counts as worked; leave balance is not charged for it"
        return info

    def get_employee_leave_summary(self, *, employee_id: int, year: int) -> Dict[str, object]:
        balances = self._balances.list_for_employee(employee_id=int(employee_id), year=int(year))
        allocated = sum((b.available_days for b in balances), Decimal("0"))
        used = sum((b.used_days for b in balances), Decimal("0"))
        return {
            "employee_id": int(employee_id),
            "year": int(year),
            "total_allocated_days": allocated,
            "total_used_days": used,
            "total_remaining_days": allocated - used,
            "usage_percentage": _percent(used, allocated),
        }

    def get_leave_utilization_report(self, *, employee_id: int, year: int) -> Dict[str, object]:
        balances = self._balances.list_for_employee(employee_id=int(employee_id), year=int(year))
        conflicted = [
            r
            for r in self._requests.list_with_conflicts(employee_id=int(employee_id))
            if r.start_date.year == int(year) or r.end_date.year == int(year)
        ]
        return {
            "employee_id": int(employee_id),
            "year": int(year),
            "balances": [
                {
                    "leave_type_id": b.leave_type_id,
                    "total_days": b.total_days,
                    "used_days": b.used_days,
                    "carry_over_days": b.carry_over_days,
                    "remaining_days": b.remaining_days,
                    "utilization_rate": b.utilization_rate,
                    "status": b.balance_status,
                }
                for b in balances
            ],
            "conflicting_requests": len(conflicted),
            "policy": CONFLICT_POLICY,
        }

    def _approved_analyses(self, requests: Sequence[LeaveRequest]) -> List[ConflictAnalysis]:
        return [self.analyze_attendance_conflicts(r) for r in requests if r.status == ApprovalStatus.APPROVED]

    def get_monthly_leave_summary(self, *, employee_id: int, year: int, month: int) -> Dict[str, object]:
        start, end = month_bounds(int(year), int(month))
        requests = self._requests.list_for_employee(employee_id=int(employee_id), start_date=start, end_date=end)
        analyses = self._approved_analyses(requests)

        approved = len(analyses)
        conflicting = sum(1 for a in analyses if a.has_conflicts)
        return {
            "employee_id": int(employee_id),
            "year": int(year),
            "month": int(month),
            "total_requests": len(requests),
            "approved_requests": approved,
            "rejected_requests": sum(1 for r in requests if r.status == ApprovalStatus.REJECTED),
            "pending_requests": sum(1 for r in requests if r.status == ApprovalStatus.PENDING),
            "total_leave_days": sum(a.original_leave_days for a in analyses),
            "effective_leave_days": sum(a.effective_leave_days for a in analyses),
            "conflicting_requests": conflicting,
            "total_conflict_days": sum(a.conflict_count for a in analyses),
            "approval_rate": _percent(approved, len(requests)),
            "conflict_rate": _percent(conflicting, approved),
        }

    def get_leave_audit_report(self, *, employee_id: int, year: int) -> Dict[str, object]:
        start, end = date(int(year), 1, 1), date(int(year), 12, 31)
        requests = self._requests.list_for_employee(employee_id=int(employee_id), start_date=start, end_date=end)
        approved = [r for r in requests if r.status == ApprovalStatus.APPROVED]

        entries = []
        for request in approved:
            entry = self.analyze_attendance_conflicts(request).to_dict()
            entry.update({"request_id": request.request_id, "leave_type_id": request.leave_type_id})
            entries.append(entry)

        original = sum(e["original_leave_days"] for e in entries)
        conflicts = sum(e["conflicting_days"] for e in entries)
        return {
            "employee_id": int(employee_id),
            "audit_year": int(year),
            "total_requests": len(requests),
            "approved_requests": len(approved),
            "total_original_leave_days": original,
            "total_effective_leave_days": sum(e["effective_leave_days"] for e in entries),
            "total_conflict_days": conflicts,
            "conflict_rate": _percent(conflicts, original),
            "conflict_analyses": entries,
            "leave_balances": list(self._balances.list_for_employee(employee_id=int(employee_id), year=int(year))),
            "audit_timestamp": self._clock.now(),
            "policy": CONFLICT_POLICY,
        }

    def get_leave_effectiveness(self, *, employee_id: int, start_date: date, end_date: date) -> Dict[str, object]:
        requests = self._requests.list_for_employee(
            employee_id=int(employee_id), start_date=start_date, end_date=end_date, statuses=(ApprovalStatus.APPROVED,)
        )
        analyses = self._approved_analyses(requests)
        approved_days = sum(a.original_leave_days for a in analyses)
        effective_days = sum(a.effective_leave_days for a in analyses)
        rate = _percent(effective_days, approved_days) if approved_days else _HUNDRED
        if rate >= 90:
            interpretation = "High effectiveness"
        elif rate >= 70:
            interpretation = "Moderate effectiveness"
        else:
            interpretation = "Low effectiveness"
        return {
            "total_approved_days": approved_days,
            "total_effective_leave_days": effective_days,
            "total_worked_instead_days": approved_days - effective_days,
            "effectiveness_rate": rate,
            "interpretation": interpretation,
        }

    def get_upcoming_leaves(self, employee_id: int) -> Sequence[LeaveRequest]:
        today = self._clock.today()
        return self._requests.list_for_employee(
            employee_id=int(employee_id),
            start_date=today,
            end_date=add_months(today, UPCOMING_LEAVE_MONTHS),
            statuses=ACTIVE_STATUSES,
        )

    def get_requests_with_conflicts(self, *, employee_id: Optional[int] = None) -> Sequence[LeaveRequest]:
        return self._requests.list_with_conflicts(employee_id=employee_id)

    def refresh_conflict_flags(self, *, employee_id: int, start_date: date, end_date: date) -> Dict[str, object]:
        """Re-run conflict analysis for active requests in a range and store the current flag.

        Frozen ``deducted_days`` of approved requests are left untouched.
        """

        requests = self._requests.list_for_employee(
            employee_id=int(employee_id), start_date=start_date, end_date=end_date, statuses=ACTIVE_STATUSES
        )
        updated: List[int] = []
        failed: Dict[int, str] = {}
        conflicts = 0
        for request in requests:
            analysis = self.analyze_attendance_conflicts(request)
            conflicts += int(analysis.has_conflicts)
            if analysis.has_conflicts == request.has_attendance_conflict:
                continue
            try:
                self._requests.update_conflict_flag(
                    request_id=request.request_id, has_attendance_conflict=analysis.has_conflicts
                )
            except DomainError as exc:
                logger.error("Could not refresh conflict flag for leave request %s: %s", request.request_id, exc)
                failed[request.request_id] = str(exc)
                continue
            updated.append(request.request_id)
        return {
            "total_processed": len(requests),
            "requests_with_conflicts": conflicts,
            "updated_requests": updated,
            "errors": failed,
            "success": not failed,
        }
