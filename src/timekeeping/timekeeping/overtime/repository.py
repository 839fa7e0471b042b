from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus
from .model import OvertimeRequest


class OvertimeRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def create(self, request: OvertimeRequest) -> int:
        raise NotImplementedError

    def list_for_employee(
        self,
        *,
        employee_id: int,
        start: datetime,
        end: datetime,
        statuses: Optional[Iterable[ApprovalStatus]] = None,
    ) -> Sequence[OvertimeRequest]:
        """Requests whose interval intersects [start, end)."""

        raise NotImplementedError

    def list_by_status(
        self,
        status: ApprovalStatus,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[OvertimeRequest]:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: ApprovalStatus,
        decided_at: datetime,
        supervisor_notes: Optional[str] = None,
    ) -> bool:
        """Move a PENDING request to ``status``. False when it is no longer PENDING."""

        raise NotImplementedError
