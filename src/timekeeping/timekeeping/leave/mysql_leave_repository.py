from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..core.enums import ApprovalStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import LeaveBalance, LeaveRequest
from .repository import LeaveBalanceRepository, LeaveRequestRepository

_REQUEST_COLUMNS = (
    "request_id, employee_id, leave_type_id, start_date, end_date, reason, status, "
    "has_attendance_conflict, deducted_days, supervisor_notes, created_at, decided_at"
)
_BALANCE_COLUMNS = "balance_id, employee_id, leave_type_id, year, total_days, used_days, carry_over_days, version"


def _to_request(r: Dict[str, Any]) -> LeaveRequest:
    deducted = r.get("deducted_days")
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=str(r["reason"]),
        status=ApprovalStatus(r["status"]),
        has_attendance_conflict=bool(r.get("has_attendance_conflict")),
        deducted_days=None if deducted is None else to_decimal(deducted),
        supervisor_notes=r.get("supervisor_notes"),
        created_at=r.get("created_at"),
        decided_at=r.get("decided_at"),
    )


def _to_balance(r: Dict[str, Any]) -> LeaveBalance:
    return LeaveBalance(
        balance_id=int(r["balance_id"]),
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        year=int(r["year"]),
        total_days=to_decimal(r["total_days"]),
        used_days=to_decimal(r["used_days"]),
        carry_over_days=to_decimal(r["carry_over_days"]),
        version=int(r.get("version") or 0),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def create(self, request: LeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, leave_type_id, start_date, end_date, reason, status,
                    has_attendance_conflict, deducted_days, supervisor_notes, created_at, decided_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request.employee_id,
                    request.leave_type_id,
                    request.start_date,
                    request.end_date,
                    request.reason,
                    request.status.value,
                    int(request.has_attendance_conflict),
                    request.deducted_days,
                    request.supervisor_notes,
                    request.created_at,
                    request.decided_at,
                ),
            )
            return int(cur.lastrowid)

    def list_for_employee(
        self,
        *,
        employee_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        statuses: Optional[Iterable[ApprovalStatus]] = None,
    ) -> Sequence[LeaveRequest]:
        where: List[str] = ["employee_id=%s"]
        params: List[Any] = [int(employee_id)]
        if start_date is not None:
            where.append("end_date >= %s")
            params.append(start_date)
        if end_date is not None:
            where.append("start_date <= %s")
            params.append(end_date)
        status_values = [s.value for s in statuses] if statuses else []
        if status_values:
            where.append("status IN (" + ",".join(["%s"] * len(status_values)) + ")")
            params.extend(status_values)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE {' AND '.join(where)} ORDER BY start_date",
                tuple(params),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_with_conflicts(self, *, employee_id: Optional[int] = None) -> Sequence[LeaveRequest]:
        sql = f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE has_attendance_conflict=1"
        params: tuple = ()
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params = (int(employee_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY start_date", params)
            return [_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: ApprovalStatus,
        decided_at: datetime,
        supervisor_notes: Optional[str] = None,
        has_attendance_conflict: Optional[bool] = None,
        deducted_days: Optional[Decimal] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s,
                    decided_at=%s,
                    supervisor_notes=%s,
                    has_attendance_conflict=COALESCE(%s, has_attendance_conflict),
                    deducted_days=%s
                WHERE request_id=%s AND status='PENDING'
                """,
                (
                    status.value,
                    decided_at,
                    supervisor_notes,
                    None if has_attendance_conflict is None else int(has_attendance_conflict),
                    deducted_days,
                    int(request_id),
                ),
            )
            return cur.rowcount == 1

    def update_conflict_flag(self, *, request_id: int, has_attendance_conflict: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leave_requests SET has_attendance_conflict=%s WHERE request_id=%s",
                (int(has_attendance_conflict), int(request_id)),
            )
            return cur.rowcount == 1

    def delete(self, request_id: int, *, expected_status: ApprovalStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM leave_requests WHERE request_id=%s AND status=%s",
                (int(request_id), expected_status.value),
            )
            return cur.rowcount == 1


class MySQLLeaveBalanceRepository(LeaveBalanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BALANCE_COLUMNS}
                FROM leave_balances
                WHERE employee_id=%s AND leave_type_id=%s AND year=%s
                """,
                (int(employee_id), int(leave_type_id), int(year)),
            )
            r = fetchone(cur)
            return _to_balance(r) if r else None

    def list_for_employee(self, *, employee_id: int, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        sql = f"SELECT {_BALANCE_COLUMNS} FROM leave_balances WHERE employee_id=%s"
        params: tuple = (int(employee_id),)
        if year is not None:
            sql += " AND year=%s"
            params += (int(year),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY year, leave_type_id", params)
            return [_to_balance(r) for r in fetchall(cur)]

    def create(self, balance: LeaveBalance) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_balances(employee_id, leave_type_id, year, total_days, used_days, carry_over_days, version)
                VALUES(%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    balance.employee_id,
                    balance.leave_type_id,
                    balance.year,
                    balance.total_days,
                    balance.used_days,
                    balance.carry_over_days,
                ),
            )
            return int(cur.lastrowid)

    def save(self, balance: LeaveBalance) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET used_days=%s, carry_over_days=%s, version=version+1
                WHERE balance_id=%s AND version=%s
                """,
                (balance.used_days, balance.carry_over_days, int(balance.balance_id), int(balance.version)),
            )
            return cur.rowcount == 1
