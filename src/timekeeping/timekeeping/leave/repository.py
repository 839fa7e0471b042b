from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus
from .model import LeaveBalance, LeaveRequest


class LeaveRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def create(self, request: LeaveRequest) -> int:
        raise NotImplementedError

    def list_for_employee(
        self,
        *,
        employee_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        statuses: Optional[Iterable[ApprovalStatus]] = None,
    ) -> Sequence[LeaveRequest]:
        """Requests whose range intersects [start_date, end_date] when a range is given."""

        raise NotImplementedError

    def list_with_conflicts(self, *, employee_id: Optional[int] = None) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: ApprovalStatus,
        decided_at: datetime,
        supervisor_notes: Optional[str] = None,
        has_attendance_conflict: Optional[bool] = None,
        deducted_days: Optional[Decimal] = None,
    ) -> bool:
        """Move a PENDING request to ``status``. False when it is no longer PENDING."""

        raise NotImplementedError

    def update_conflict_flag(self, *, request_id: int, has_attendance_conflict: bool) -> bool:
        raise NotImplementedError

    def delete(self, request_id: int, *, expected_status: ApprovalStatus) -> bool:
        """Remove the request only while it still has ``expected_status``."""

        raise NotImplementedError


class LeaveBalanceRepository(Protocol):
    def get(self, *, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        raise NotImplementedError

    def create(self, balance: LeaveBalance) -> int:
        raise NotImplementedError

    def save(self, balance: LeaveBalance) -> bool:
        """Persist ``used_days``/``carry_over_days`` if the stored version equals ``balance.version``.

        Returns False when another writer changed the row first.
        """

        raise NotImplementedError
