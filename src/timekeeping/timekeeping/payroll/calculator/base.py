from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ...attendance.model import AttendanceRecord


@dataclass(frozen=True)
class DayHours:
    """Pay-relevant hours for one attendance record."""

    regular_hours: Decimal
    late_hours: Decimal
    overtime_hours: Decimal
    effective_hours: Decimal


ZERO_DAY = DayHours(Decimal("0"), Decimal("0"), Decimal("0"), Decimal("0"))


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll hours).

    The employment class picks the formula; there is no class multiplier.
    """

    @abstractmethod
    def day_hours(self, record: AttendanceRecord) -> DayHours:
        raise NotImplementedError
