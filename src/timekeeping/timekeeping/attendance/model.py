from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import hours_between_times
from ..core.constants import GRACE_CUTOFF, STANDARD_END, STANDARD_START
from ..core.enums import AttendanceStatus, DailyAttendanceState


@dataclass(frozen=True)
class AttendanceRecord:
    """One employee's punches for one calendar day.

    The predicates below are pure functions of the stored punches; they are
    the single source for lateness, grace and undertime decisions.
    """

    attendance_id: Optional[int]
    employee_id: int
    work_date: date
    time_in: Optional[time] = None
    time_out: Optional[time] = None
    version: int = 0

    @property
    def has_time_in(self) -> bool:
        return self.time_in is not None

    @property
    def has_time_out(self) -> bool:
        return self.time_out is not None

    def is_complete_attendance(self) -> bool:
        return self.time_in is not None and self.time_out is not None

    def is_within_grace_period(self) -> bool:
        return self.time_in is not None and STANDARD_START < self.time_in <= GRACE_CUTOFF

    def is_late_attendance(self) -> bool:
        return self.time_in is not None and self.time_in > GRACE_CUTOFF

    def is_early_out(self) -> bool:
        return self.time_out is not None and self.time_out < STANDARD_END

    @property
    def late_hours(self) -> Decimal:
        """Hours past the standard start, counted only once the grace period is exceeded."""
        if not self.is_late_attendance():
            return Decimal("0")
        return hours_between_times(STANDARD_START, self.time_in)

    @property
    def undertime_hours(self) -> Decimal:
        if not self.is_early_out():
            return Decimal("0")
        return hours_between_times(self.time_out, STANDARD_END)

    @property
    def time_in_status(self) -> Optional[AttendanceStatus]:
        if self.time_in is None:
            return None
        if self.is_late_attendance():
            return AttendanceStatus.LATE
        if self.is_within_grace_period():
            return AttendanceStatus.WITHIN_GRACE
        return AttendanceStatus.ON_TIME

    @property
    def daily_state(self) -> DailyAttendanceState:
        if self.is_complete_attendance():
            return DailyAttendanceState.LATE if self.is_late_attendance() else DailyAttendanceState.PRESENT
        if self.has_time_in:
            return DailyAttendanceState.INCOMPLETE
        return DailyAttendanceState.ABSENT


@dataclass(frozen=True)
class TodayStatus:
    employee_id: int
    work_date: date
    record: Optional[AttendanceRecord]

    @property
    def can_time_in(self) -> bool:
        return self.record is None or not self.record.has_time_in

    @property
    def can_time_out(self) -> bool:
        return self.record is not None and self.record.has_time_in and not self.record.has_time_out
