from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import TardinessKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, to_decimal
from .model import TardinessRecord
from .repository import TardinessRepository


def _to_record(r: Dict[str, Any]) -> TardinessRecord:
    return TardinessRecord(
        tardiness_id=int(r["tardiness_id"]),
        attendance_id=int(r["attendance_id"]),
        kind=TardinessKind(r["kind"]),
        hours=to_decimal(r["hours"]),
        description=str(r["description"]),
        supervisor_notes=r.get("supervisor_notes"),
        created_at=r.get("created_at"),
    )


class MySQLTardinessRepository(TardinessRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_attendance(self, attendance_id: int) -> Sequence[TardinessRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT tardiness_id, attendance_id, kind, hours, description, supervisor_notes, created_at
                FROM tardiness_records
                WHERE attendance_id=%s
                ORDER BY kind
                """,
                (int(attendance_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_employee(self, *, employee_id: int, start_date: date, end_date: date) -> Sequence[TardinessRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT t.tardiness_id, t.attendance_id, t.kind, t.hours, t.description,
                       t.supervisor_notes, t.created_at
                FROM tardiness_records t
                JOIN attendance a ON a.attendance_id = t.attendance_id
                WHERE a.employee_id=%s AND a.work_date BETWEEN %s AND %s
                ORDER BY a.work_date, t.kind
                """,
                (int(employee_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create(self, record: TardinessRecord) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tardiness_records(attendance_id, kind, hours, description, supervisor_notes)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    int(record.attendance_id),
                    record.kind.value,
                    record.hours,
                    record.description,
                    record.supervisor_notes,
                ),
            )
            return int(cur.lastrowid)

    def delete_for_attendance(self, attendance_id: int, *, kind: Optional[TardinessKind] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if kind is None:
                cur.execute("DELETE FROM tardiness_records WHERE attendance_id=%s", (int(attendance_id),))
            else:
                cur.execute(
                    "DELETE FROM tardiness_records WHERE attendance_id=%s AND kind=%s",
                    (int(attendance_id), kind.value),
                )
            return int(cur.rowcount)

    def update_supervisor_notes(self, *, tardiness_id: int, notes: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE tardiness_records SET supervisor_notes=%s WHERE tardiness_id=%s",
                (notes, int(tardiness_id)),
            )
            return cur.rowcount == 1
