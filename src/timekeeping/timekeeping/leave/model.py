from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from ..common.datetime_utils import count_working_days, round_half_up
from ..core.constants import MONEY_SCALE
from ..core.enums import ApprovalStatus
from ..core.exceptions import PolicyViolation, ValidationError

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LeaveRequest:
    request_id: Optional[int]
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    reason: str
    status: ApprovalStatus = ApprovalStatus.PENDING
    has_attendance_conflict: bool = False
    deducted_days: Optional[Decimal] = None
    supervisor_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    @property
    def working_days(self) -> int:
        """Monday-Friday days in the closed range; 0 for an inverted range."""
        if self.end_date < self.start_date:
            return 0
        return count_working_days(self.start_date, self.end_date)

    @property
    def total_days(self) -> int:
        if self.end_date < self.start_date:
            return 0
        return (self.end_date - self.start_date).days + 1

    def can_be_cancelled(self, today: date) -> bool:
        if self.status == ApprovalStatus.PENDING:
            return True
        return self.status == ApprovalStatus.APPROVED and self.start_date > today

    def overlaps(self, start_date: date, end_date: date) -> bool:
        return self.start_date <= end_date and start_date <= self.end_date


@dataclass(frozen=True)
class LeaveBalance:
    """Leave allocation for one (employee, leave type, year).

    ``used_days <= total_days + carry_over_days`` holds for every instance
    produced by ``deduct`` and ``restore``.
    """

    balance_id: Optional[int]
    employee_id: int
    leave_type_id: int
    year: int
    total_days: Decimal
    used_days: Decimal = _ZERO
    carry_over_days: Decimal = _ZERO
    version: int = 0

    @property
    def available_days(self) -> Decimal:
        return self.total_days + self.carry_over_days

    @property
    def remaining_days(self) -> Decimal:
        return self.available_days - self.used_days

    def can_take_leave(self, days: Decimal) -> bool:
        return days > 0 and self.remaining_days >= days

    def deduct(self, days: Decimal) -> "LeaveBalance":
        days = Decimal(days)
        if days <= 0:
            raise ValidationError("Days to deduct must be positive")
        if not self.can_take_leave(days):
            raise PolicyViolation(
                f"Insufficient leave balance: requested {days}, remaining {self.remaining_days}"
            )
        return replace(self, used_days=self.used_days + days)

    def restore(self, days: Decimal) -> "LeaveBalance":
        days = Decimal(days)
        if days <= 0:
            raise ValidationError("Days to restore must be positive")
        return replace(self, used_days=max(_ZERO, self.used_days - days))

    @property
    def utilization_rate(self) -> Decimal:
        if self.available_days <= 0:
            return _ZERO
        return round_half_up(self.used_days / self.available_days * Decimal("100"), MONEY_SCALE)

    @property
    def balance_status(self) -> str:
        if self.remaining_days < 0:
            return "Over-utilized"
        if self.remaining_days == 0:
            return "Fully utilized"
        rate = self.utilization_rate
        if rate > 80:
            return "High utilization"
        if rate > 50:
            return "Medium utilization"
        return "Low utilization"

    def next_year_balance(self, *, max_carry_over: Decimal, total_days: Optional[Decimal] = None) -> "LeaveBalance":
        carry = min(max(self.remaining_days, _ZERO), Decimal(max_carry_over))
        return LeaveBalance(
            balance_id=None,
            employee_id=self.employee_id,
            leave_type_id=self.leave_type_id,
            year=self.year + 1,
            total_days=self.total_days if total_days is None else Decimal(total_days),
            used_days=_ZERO,
            carry_over_days=carry,
        )


@dataclass(frozen=True)
class ConflictAnalysis:
    """Working days of a leave range split into leave days and worked days.

    A working day with complete attendance counts as worked; attendance wins.
    """

    employee_id: int
    start_date: date
    end_date: date
    working_days: Tuple[date, ...] = field(default_factory=tuple)
    conflicting_days: Tuple[date, ...] = field(default_factory=tuple)

    @property
    def original_leave_days(self) -> int:
        return len(self.working_days)

    @property
    def conflict_count(self) -> int:
        return len(self.conflicting_days)

    @property
    def effective_leave_days(self) -> int:
        return self.original_leave_days - self.conflict_count

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicting_days)

    @property
    def effective_days(self) -> List[date]:
        conflicts = set(self.conflicting_days)
        return [d for d in self.working_days if d not in conflicts]

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "original_leave_days": self.original_leave_days,
            "conflicting_days": self.conflict_count,
            "effective_leave_days": self.effective_leave_days,
            "has_conflicts": self.has_conflicts,
            "conflict_dates": [d.isoformat() for d in self.conflicting_days],
        }


@dataclass(frozen=True)
class LeaveEligibility:
    allowed: bool
    reason: str
