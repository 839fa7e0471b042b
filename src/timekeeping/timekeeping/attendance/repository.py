from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        time_in: Optional[time],
        time_out: Optional[time] = None,
    ) -> int:
        raise NotImplementedError

    def update_punches(
        self,
        *,
        attendance_id: int,
        time_in: Optional[time],
        time_out: Optional[time],
        expected_version: int,
    ) -> bool:
        """Write both punches if the stored version still equals ``expected_version``.

        Returns False when another writer got there first.
        """

        raise NotImplementedError
