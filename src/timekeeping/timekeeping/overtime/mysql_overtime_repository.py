from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..core.enums import ApprovalStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_datetime
from .model import OvertimeRequest
from .repository import OvertimeRequestRepository

_COLUMNS = (
    "request_id, employee_id, overtime_start, overtime_end, reason, status, "
    "supervisor_notes, created_at, decided_at"
)


def _to_request(r: Dict[str, Any]) -> OvertimeRequest:
    return OvertimeRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        overtime_start=normalize_mysql_datetime(r["overtime_start"]),
        overtime_end=normalize_mysql_datetime(r["overtime_end"]),
        reason=str(r["reason"]),
        status=ApprovalStatus(r["status"]),
        supervisor_notes=r.get("supervisor_notes"),
        created_at=r.get("created_at"),
        decided_at=r.get("decided_at"),
    )


class MySQLOvertimeRequestRepository(OvertimeRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM overtime_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def create(self, request: OvertimeRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO overtime_requests(employee_id, overtime_start, overtime_end, reason, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    request.employee_id,
                    request.overtime_start,
                    request.overtime_end,
                    request.reason,
                    request.status.value,
                    request.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_for_employee(
        self,
        *,
        employee_id: int,
        start: datetime,
        end: datetime,
        statuses: Optional[Iterable[ApprovalStatus]] = None,
    ) -> Sequence[OvertimeRequest]:
        where: List[str] = ["employee_id=%s", "overtime_start < %s", "overtime_end > %s"]
        params: List[Any] = [int(employee_id), end, start]
        status_values = [s.value for s in statuses] if statuses else []
        if status_values:
            where.append("status IN (" + ",".join(["%s"] * len(status_values)) + ")")
            params.extend(status_values)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM overtime_requests WHERE {' AND '.join(where)} ORDER BY overtime_start",
                tuple(params),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_by_status(
        self,
        status: ApprovalStatus,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[OvertimeRequest]:
        where: List[str] = ["status=%s"]
        params: List[Any] = [status.value]
        if start is not None:
            where.append("overtime_end > %s")
            params.append(start)
        if end is not None:
            where.append("overtime_start < %s")
            params.append(end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM overtime_requests WHERE {' AND '.join(where)} ORDER BY overtime_start",
                tuple(params),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: ApprovalStatus,
        decided_at: datetime,
        supervisor_notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtime_requests
                SET status=%s, decided_at=%s, supervisor_notes=%s
                WHERE request_id=%s AND status='PENDING'
                """,
                (status.value, decided_at, supervisor_notes, int(request_id)),
            )
            return cur.rowcount == 1
