from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import TardinessKind

# (upper bound in hours, label); first bound the hours fit under wins.
_IMPACT_LEVELS = (
    (Decimal("0.25"), "Minimal"),
    (Decimal("0.5"), "Minor"),
    (Decimal("1.0"), "Moderate"),
    (Decimal("2.0"), "Significant"),
)


@dataclass(frozen=True)
class TardinessRecord:
    """A penalty event owned by exactly one attendance record."""

    tardiness_id: Optional[int]
    attendance_id: int
    kind: TardinessKind
    hours: Decimal
    description: str
    supervisor_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def impact_level(self) -> str:
        if self.hours <= 0:
            return "None"
        for bound, label in _IMPACT_LEVELS:
            if self.hours <= bound:
                return label
        return "Severe"

    @property
    def is_severe(self) -> bool:
        return self.hours > Decimal("2.0")

    def salary_deduction(self, hourly_rate: Decimal) -> Decimal:
        return self.hours * hourly_rate


@dataclass(frozen=True)
class TardinessStatistics:
    employee_id: int
    late_count: int
    undertime_count: int
    total_late_hours: Decimal
    total_undertime_hours: Decimal

    @property
    def total_count(self) -> int:
        return self.late_count + self.undertime_count

    @property
    def total_hours(self) -> Decimal:
        return self.total_late_hours + self.total_undertime_hours
