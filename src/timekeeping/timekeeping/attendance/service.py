from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Dict, Optional

from ..common.clock import Clock
from ..common.datetime_utils import hours_between_times
from ..common.validators import require_date, require_positive_id
from ..core.constants import GRACE_CUTOFF, STANDARD_END, STANDARD_START
from ..core.enums import AttendanceStatus
from ..core.exceptions import CollaboratorError, ConcurrencyError, StateError, ValidationError
from ..employees.repository import EmployeeRepository
from ..tardiness.service import TardinessService
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, TodayStatus
from .repository import AttendanceRepository
from .strategies.base import StatusDecision

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PunchOutcome:
    """Result of an attendance write.

    The attendance write is authoritative. Tardiness bookkeeping runs after
    it as a second step; ``tardiness_synced`` is False when that step failed
    and the ledger needs a later ``update_tardiness_records`` call.
    """

    record: AttendanceRecord
    status: AttendanceStatus
    note: Optional[str] = None
    tardiness_synced: bool = True
    tardiness_error: Optional[str] = None


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        tardiness: TardinessService,
        clock: Clock,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._tardiness = tardiness
        self._clock = clock
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _require_employee(self, employee_id: int) -> int:
        employee_id = require_positive_id(employee_id, "Employee id")
        if not self._employees.get_by_id(employee_id):
            raise StateError("Employee not found")
        return employee_id

    def _reload(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise CollaboratorError("Attendance record vanished after write")
        return record

    def _sync_tardiness(self, record: AttendanceRecord, *, regenerate: bool, decision: StatusDecision | None = None) -> PunchOutcome:
        status = decision.status if decision else (record.time_in_status or AttendanceStatus.ON_TIME)
        note = decision.note if decision else None
        try:
            if regenerate:
                self._tardiness.update_tardiness_records(record)
            elif decision and decision.tardiness:
                self._tardiness.create_tardiness_record(record, decision.tardiness)
        except CollaboratorError as exc:
            logger.error(
                "Tardiness sync failed for attendance %s (employee %s, %s): %s",
                record.attendance_id, record.employee_id, record.work_date, exc,
            )
            return PunchOutcome(record=record, status=status, note=note, tardiness_synced=False, tardiness_error=str(exc))
        return PunchOutcome(record=record, status=status, note=note)

    def record_time_in(self, employee_id: int) -> PunchOutcome:
        employee_id = self._require_employee(employee_id)
        now = self._clock.now()
        today = now.date()
        punch = now.time()

        existing = self._attendance.get_for_employee_and_date(employee_id, today)
        if existing and existing.has_time_in:
            raise StateError("Time-in already recorded for today")

        if existing:
            if not self._attendance.update_punches(
                attendance_id=existing.attendance_id,
                time_in=punch,
                time_out=existing.time_out,
                expected_version=existing.version,
            ):
                raise ConcurrencyError("Attendance was modified concurrently; retry the time-in")
            attendance_id = existing.attendance_id
        else:
            attendance_id = self._attendance.create(employee_id=employee_id, work_date=today, time_in=punch)

        record = self._reload(attendance_id)
        decision = self._factory.for_time_in(punch=punch).decide_time_in(punch=punch)
        logger.info("Time-in for employee %s at %s: %s", employee_id, punch, decision.status.value)
        return self._sync_tardiness(record, regenerate=False, decision=decision)

    def record_time_out(self, employee_id: int) -> PunchOutcome:
        employee_id = self._require_employee(employee_id)
        now = self._clock.now()
        today = now.date()
        punch = now.time()

        record = self._attendance.get_for_employee_and_date(employee_id, today)
        if not record or not record.has_time_in:
            raise StateError("No time-in recorded for today")
        if record.has_time_out:
            raise StateError("Time-out already recorded for today")
        if punch < record.time_in:
            raise ValidationError("Time-out cannot be before time-in")

        if not self._attendance.update_punches(
            attendance_id=record.attendance_id,
            time_in=record.time_in,
            time_out=punch,
            expected_version=record.version,
        ):
            raise ConcurrencyError("Attendance was modified concurrently; retry the time-out")

        record = self._reload(record.attendance_id)
        decision = self._factory.for_time_out(punch=punch).decide_time_out(
            punch=punch, current=record.time_in_status or AttendanceStatus.ON_TIME
        )
        logger.info("Time-out for employee %s at %s: %s", employee_id, punch, decision.status.value)
        return self._sync_tardiness(record, regenerate=False, decision=decision)

    def create_manual_attendance(
        self,
        *,
        employee_id: int,
        work_date: date,
        time_in: time,
        time_out: Optional[time] = None,
    ) -> PunchOutcome:
        """HR entry of a day's punches; classified exactly like live punches."""

        employee_id = self._require_employee(employee_id)
        work_date = require_date(work_date, "Work date")
        if time_in is None:
            raise ValidationError("Time-in is required")
        if time_out is not None and time_out < time_in:
            raise ValidationError("Time-out cannot be before time-in")
        if self._attendance.get_for_employee_and_date(employee_id, work_date):
            raise StateError("Attendance already exists for this employee and date")

        attendance_id = self._attendance.create(
            employee_id=employee_id, work_date=work_date, time_in=time_in, time_out=time_out
        )
        record = self._reload(attendance_id)
        logger.info("Manual attendance %s created for employee %s on %s", attendance_id, employee_id, work_date)
        return self._sync_tardiness(record, regenerate=True)

    def update_attendance(self, *, attendance_id: int, time_in: time, time_out: time) -> PunchOutcome:
        """HR correction of a complete record; tardiness is regenerated from the new punches."""

        attendance_id = require_positive_id(attendance_id, "Attendance id")
        if time_in is None or time_out is None:
            raise ValidationError("Both time-in and time-out are required")
        if time_out <= time_in:
            raise ValidationError("Time-out must be after time-in")

        current = self._attendance.get_by_id(attendance_id)
        if not current:
            raise StateError("Attendance record not found")

        if not self._attendance.update_punches(
            attendance_id=attendance_id,
            time_in=time_in,
            time_out=time_out,
            expected_version=current.version,
        ):
            raise ConcurrencyError("Attendance was modified concurrently; reload and retry")

        record = self._reload(attendance_id)
        logger.info("Attendance %s updated: %s-%s", attendance_id, time_in, time_out)
        return self._sync_tardiness(record, regenerate=True)

    def get_today_status(self, employee_id: int) -> TodayStatus:
        employee_id = require_positive_id(employee_id, "Employee id")
        today = self._clock.today()
        return TodayStatus(
            employee_id=employee_id,
            work_date=today,
            record=self._attendance.get_for_employee_and_date(employee_id, today),
        )

    def can_time_in(self, employee_id: int) -> bool:
        return self.get_today_status(employee_id).can_time_in

    def can_time_out(self, employee_id: int) -> bool:
        return self.get_today_status(employee_id).can_time_out

    @staticmethod
    def get_grace_period_info() -> Dict[str, object]:
        return {
            "standard_start_time": STANDARD_START.strftime("%H:%M"),
            "grace_period_cutoff": GRACE_CUTOFF.strftime("%H:%M"),
            "standard_end_time": STANDARD_END.strftime("%H:%M"),
            "grace_period_minutes": int(hours_between_times(STANDARD_START, GRACE_CUTOFF) * 60),
        }
