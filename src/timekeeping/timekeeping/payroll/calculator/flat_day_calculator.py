from __future__ import annotations

from decimal import Decimal

from ...attendance.model import AttendanceRecord
from ...core.constants import STANDARD_DAY_HOURS
from .base import ZERO_DAY, DayHours, PayrollCalculator


class FlatDayCalculator(PayrollCalculator):
    """Salaried rule: a full standard day whenever the employee timed in."""

    def day_hours(self, record: AttendanceRecord) -> DayHours:
        if not record.has_time_in:
            return ZERO_DAY
        return DayHours(
            regular_hours=STANDARD_DAY_HOURS,
            late_hours=Decimal("0"),
            overtime_hours=Decimal("0"),
            effective_hours=STANDARD_DAY_HOURS,
        )
