from __future__ import annotations

from datetime import time
from decimal import Decimal

from ...attendance.model import AttendanceRecord
from ...common.datetime_utils import hours_between_times
from ...core.constants import LUNCH_BREAK_HOURS, LUNCH_END, LUNCH_START, STANDARD_END, STANDARD_START
from .base import ZERO_DAY, DayHours, PayrollCalculator


class OvertimeEligibleCalculator(PayrollCalculator):
    """Rank-and-file rule.

    Regular hours are the punches clipped to the standard day, minus the
    lunch hour when the clipped span covers it. Time outside the standard
    day counts as overtime. Late hours are deducted from effective hours.
    """

    def day_hours(self, record: AttendanceRecord) -> DayHours:
        if not record.is_complete_attendance():
            return ZERO_DAY

        start: time = max(record.time_in, STANDARD_START)
        end: time = min(record.time_out, STANDARD_END)

        regular = Decimal("0")
        if end > start:
            regular = hours_between_times(start, end)
            if start <= LUNCH_START and end >= LUNCH_END:
                regular -= LUNCH_BREAK_HOURS
            regular = max(regular, Decimal("0"))

        overtime = Decimal("0")
        if record.time_in < STANDARD_START:
            overtime += hours_between_times(record.time_in, STANDARD_START)
        if record.time_out > STANDARD_END:
            overtime += hours_between_times(STANDARD_END, record.time_out)

        late = record.late_hours
        return DayHours(
            regular_hours=regular,
            late_hours=late,
            overtime_hours=overtime,
            effective_hours=max(regular - late, Decimal("0")),
        )
