from __future__ import annotations

from datetime import date

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_working_days
from .model import ConflictAnalysis


class LeaveConflictResolver:
    """Reconciles a leave range against recorded attendance.

    Results are never cached: attendance can change between submission and
    approval, so callers re-run the analysis at each decision point.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def analyze(self, *, employee_id: int, start_date: date, end_date: date) -> ConflictAnalysis:
        working = tuple(iter_working_days(start_date, end_date))
        if not working:
            return ConflictAnalysis(employee_id=employee_id, start_date=start_date, end_date=end_date)

        records = self._attendance.list_for_employee(employee_id=employee_id, start_date=start_date, end_date=end_date)
        worked = {r.work_date for r in records if r.is_complete_attendance()}
        return ConflictAnalysis(
            employee_id=employee_id,
            start_date=start_date,
            end_date=end_date,
            working_days=working,
            conflicting_days=tuple(d for d in working if d in worked),
        )
