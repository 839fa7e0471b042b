from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import round_half_up
from ..core.constants import MONEY_SCALE, NIGHT_SHIFT_END_HOUR, NIGHT_SHIFT_START_HOUR
from ..core.enums import ApprovalStatus


@dataclass(frozen=True)
class OvertimeRequest:
    request_id: Optional[int]
    employee_id: int
    overtime_start: datetime
    overtime_end: datetime
    reason: str
    status: ApprovalStatus = ApprovalStatus.PENDING
    supervisor_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    @property
    def duration_minutes(self) -> int:
        return int((self.overtime_end - self.overtime_start).total_seconds() // 60)

    @property
    def hours(self) -> Decimal:
        """Duration in hours, rounded half-up to 2 decimals."""
        return round_half_up(Decimal(self.duration_minutes) / Decimal(60), MONEY_SCALE)

    @property
    def overtime_date(self) -> date:
        return self.overtime_start.date()

    @property
    def is_night_shift(self) -> bool:
        hour = self.overtime_start.hour
        return hour >= NIGHT_SHIFT_START_HOUR or hour < NIGHT_SHIFT_END_HOUR

    @property
    def is_weekend(self) -> bool:
        return self.overtime_start.weekday() >= 5

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open interval test: touching endpoints do not overlap."""
        return self.overtime_start < end and start < self.overtime_end


@dataclass(frozen=True)
class OvertimeDecision:
    request: OvertimeRequest
    premium_pay: Optional[Decimal] = None
    multiplier: Optional[Decimal] = None


@dataclass(frozen=True)
class OvertimeRanking:
    employee_id: int
    full_name: str
    total_hours: Decimal
    estimated_pay: Decimal
