from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Sequence

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import round_half_up
from ..common.validators import require_non_empty
from ..core.constants import TARDINESS_SCALE
from ..core.enums import TardinessKind
from ..core.exceptions import StateError, ValidationError
from .model import TardinessRecord, TardinessStatistics
from .repository import TardinessRepository

logger = logging.getLogger(__name__)


def implied_kinds(attendance: AttendanceRecord) -> List[TardinessKind]:
    """Tardiness kinds an attendance record's punches call for."""

    kinds = []
    if attendance.is_late_attendance():
        kinds.append(TardinessKind.LATE)
    if attendance.is_early_out():
        kinds.append(TardinessKind.UNDERTIME)
    return kinds


def build_tardiness_record(attendance: AttendanceRecord, kind: TardinessKind) -> TardinessRecord:
    if kind == TardinessKind.LATE:
        if not attendance.is_late_attendance():
            raise ValidationError("Attendance is not late")
        hours = round_half_up(attendance.late_hours, TARDINESS_SCALE)
        description = f"Late arrival at {attendance.time_in.strftime('%H:%M')} - {hours} hours late"
    else:
        if not attendance.is_early_out():
            raise ValidationError("Attendance has no early departure")
        hours = round_half_up(attendance.undertime_hours, TARDINESS_SCALE)
        description = f"Early departure at {attendance.time_out.strftime('%H:%M')} - {hours} hours undertime"

    return TardinessRecord(
        tardiness_id=None,
        attendance_id=int(attendance.attendance_id),
        kind=kind,
        hours=hours,
        description=description,
    )


class TardinessService:
    """Ledger of tardiness records derived from attendance.

    Records are always derived from the current punches; edits replace them
    wholesale so the stored set never drifts from what the punches imply.
    """

    def __init__(self, tardiness: TardinessRepository):
        self._tardiness = tardiness

    def create_tardiness_record(self, attendance: AttendanceRecord, kind: TardinessKind) -> TardinessRecord:
        if attendance.attendance_id is None:
            raise ValidationError("Cannot create a tardiness record for unsaved attendance")

        record = build_tardiness_record(attendance, kind)
        self._tardiness.delete_for_attendance(attendance.attendance_id, kind=kind)
        tardiness_id = self._tardiness.create(record)
        logger.info("Tardiness recorded: %s", record.description)
        return TardinessRecord(
            tardiness_id=tardiness_id,
            attendance_id=record.attendance_id,
            kind=record.kind,
            hours=record.hours,
            description=record.description,
        )

    def update_tardiness_records(self, attendance: AttendanceRecord) -> List[TardinessRecord]:
        if attendance.attendance_id is None:
            raise ValidationError("Cannot update tardiness records for unsaved attendance")

        removed = self._tardiness.delete_for_attendance(attendance.attendance_id)
        created = [self.create_tardiness_record(attendance, kind) for kind in implied_kinds(attendance)]
        logger.debug(
            "Tardiness for attendance %s regenerated (removed=%s created=%s)",
            attendance.attendance_id, removed, len(created),
        )
        return created

    def list_for_attendance(self, attendance_id: int) -> Sequence[TardinessRecord]:
        return self._tardiness.list_for_attendance(int(attendance_id))

    def get_statistics(self, *, employee_id: int, start_date: date, end_date: date) -> TardinessStatistics:
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")

        records = self._tardiness.list_for_employee(employee_id=int(employee_id), start_date=start_date, end_date=end_date)
        late = [r for r in records if r.kind == TardinessKind.LATE]
        undertime = [r for r in records if r.kind == TardinessKind.UNDERTIME]
        return TardinessStatistics(
            employee_id=int(employee_id),
            late_count=len(late),
            undertime_count=len(undertime),
            total_late_hours=sum((r.hours for r in late), Decimal("0")),
            total_undertime_hours=sum((r.hours for r in undertime), Decimal("0")),
        )

    def add_supervisor_notes(self, *, tardiness_id: int, notes: str) -> None:
        notes = require_non_empty(notes, "Supervisor notes")
        if not self._tardiness.update_supervisor_notes(tardiness_id=int(tardiness_id), notes=notes):
            raise StateError("Tardiness record not found")
