from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import TardinessKind
from .model import TardinessRecord


class TardinessRepository(Protocol):
    def list_for_attendance(self, attendance_id: int) -> Sequence[TardinessRecord]:
        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, start_date: date, end_date: date) -> Sequence[TardinessRecord]:
        raise NotImplementedError

    def create(self, record: TardinessRecord) -> int:
        raise NotImplementedError

    def delete_for_attendance(self, attendance_id: int, *, kind: Optional[TardinessKind] = None) -> int:
        """Delete the attendance's records (only ``kind`` when given). Returns the row count."""

        raise NotImplementedError

    def update_supervisor_notes(self, *, tardiness_id: int, notes: str) -> bool:
        raise NotImplementedError
