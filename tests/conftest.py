from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List

import pytest

from timekeeping.attendance.model import AttendanceRecord
from timekeeping.attendance.service import AttendanceService
from timekeeping.common.clock import FixedClock
from timekeeping.core.enums import ApprovalStatus
from timekeeping.core.exceptions import CollaboratorError
from timekeeping.employees.model import Employee
from timekeeping.leave.model import LeaveBalance, LeaveRequest
from timekeeping.leave.service import LeaveService
from timekeeping.overtime.model import OvertimeRequest
from timekeeping.overtime.service import OvertimeService
from timekeeping.overtime.validator import OvertimeValidator
from timekeeping.payroll.service import PayrollReportService
from timekeeping.tardiness.model import TardinessRecord
from timekeeping.tardiness.service import TardinessService

# Monday
MONDAY = date(2025, 3, 10)

RANK_AND_FILE_ID = 1
SALARIED_ID = 2


class FakeEmployeeRepo:
    def __init__(self, employees: List[Employee]):
        self._employees = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id):
        return self._employees.get(int(employee_id))

    def is_overtime_eligible(self, employee_id):
        e = self._employees.get(int(employee_id))
        return bool(e and e.is_active and e.is_overtime_eligible)

    def list_active(self):
        return [e for e in self._employees.values() if e.is_active]

    def list_overtime_eligible(self):
        return [e for e in self._employees.values() if e.is_active and e.is_overtime_eligible]

    def set(self, employee: Employee):
        self._employees[employee.employee_id] = employee


class FakeAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: Dict[int, AttendanceRecord] = {}

    def add(self, employee_id, work_date, time_in=None, time_out=None) -> AttendanceRecord:
        rid = self.create(employee_id=employee_id, work_date=work_date, time_in=time_in, time_out=time_out)
        return self.rows[rid]

    def get_by_id(self, attendance_id):
        return self.rows.get(int(attendance_id))

    def get_for_employee_and_date(self, employee_id, work_date):
        for r in self.rows.values():
            if r.employee_id == int(employee_id) and r.work_date == work_date:
                return r
        return None

    def list_for_employee(self, *, employee_id, start_date, end_date):
        return sorted(
            (r for r in self.rows.values() if r.employee_id == int(employee_id) and start_date <= r.work_date <= end_date),
            key=lambda r: r.work_date,
        )

    def list_for_date(self, work_date):
        return sorted((r for r in self.rows.values() if r.work_date == work_date), key=lambda r: r.employee_id)

    def create(self, *, employee_id, work_date, time_in, time_out=None):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = AttendanceRecord(
            attendance_id=rid, employee_id=int(employee_id), work_date=work_date, time_in=time_in, time_out=time_out
        )
        return rid

    def update_punches(self, *, attendance_id, time_in, time_out, expected_version):
        current = self.rows.get(int(attendance_id))
        if not current or current.version != expected_version:
            return False
        self.rows[int(attendance_id)] = replace(current, time_in=time_in, time_out=time_out, version=current.version + 1)
        return True


class FakeTardinessRepo:
    def __init__(self, attendance: FakeAttendanceRepo):
        self._attendance = attendance
        self._next_id = 1
        self.rows: Dict[int, TardinessRecord] = {}
        self.fail_writes = False

    def list_for_attendance(self, attendance_id):
        return [r for r in self.rows.values() if r.attendance_id == int(attendance_id)]

    def list_for_employee(self, *, employee_id, start_date, end_date):
        out = []
        for r in self.rows.values():
            owner = self._attendance.get_by_id(r.attendance_id)
            if owner and owner.employee_id == int(employee_id) and start_date <= owner.work_date <= end_date:
                out.append(r)
        return out

    def create(self, record):
        if self.fail_writes:
            raise CollaboratorError("tardiness table unavailable")
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = replace(record, tardiness_id=rid)
        return rid

    def delete_for_attendance(self, attendance_id, *, kind=None):
        if self.fail_writes:
            raise CollaboratorError("tardiness table unavailable")
        doomed = [
            k for k, r in self.rows.items() if r.attendance_id == int(attendance_id) and (kind is None or r.kind == kind)
        ]
        for k in doomed:
            del self.rows[k]
        return len(doomed)

    def update_supervisor_notes(self, *, tardiness_id, notes):
        r = self.rows.get(int(tardiness_id))
        if not r:
            return False
        self.rows[int(tardiness_id)] = replace(r, supervisor_notes=notes)
        return True


class FakeLeaveRequestRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: Dict[int, LeaveRequest] = {}

    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def create(self, request):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = replace(request, request_id=rid)
        return rid

    def list_for_employee(self, *, employee_id, start_date=None, end_date=None, statuses=None):
        wanted = set(statuses) if statuses else None
        out = []
        for r in self.rows.values():
            if r.employee_id != int(employee_id):
                continue
            if start_date is not None and r.end_date < start_date:
                continue
            if end_date is not None and r.start_date > end_date:
                continue
            if wanted is not None and r.status not in wanted:
                continue
            out.append(r)
        return sorted(out, key=lambda r: r.start_date)

    def list_with_conflicts(self, *, employee_id=None):
        return [
            r for r in self.rows.values()
            if r.has_attendance_conflict and (employee_id is None or r.employee_id == employee_id)
        ]

    def decide(self, *, request_id, status, decided_at, supervisor_notes=None, has_attendance_conflict=None, deducted_days=None):
        r = self.rows.get(int(request_id))
        if not r or r.status != ApprovalStatus.PENDING:
            return False
        self.rows[int(request_id)] = replace(
            r,
            status=status,
            decided_at=decided_at,
            supervisor_notes=supervisor_notes,
            has_attendance_conflict=r.has_attendance_conflict if has_attendance_conflict is None else has_attendance_conflict,
            deducted_days=deducted_days,
        )
        return True

    def update_conflict_flag(self, *, request_id, has_attendance_conflict):
        r = self.rows.get(int(request_id))
        if not r:
            return False
        self.rows[int(request_id)] = replace(r, has_attendance_conflict=has_attendance_conflict)
        return True

    def delete(self, request_id, *, expected_status):
        r = self.rows.get(int(request_id))
        if not r or r.status != expected_status:
            return False
        del self.rows[int(request_id)]
        return True


class FakeLeaveBalanceRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: Dict[int, LeaveBalance] = {}
        self.stale_saves = 0

    def add(self, employee_id, leave_type_id, year, total, used="0", carry="0") -> LeaveBalance:
        rid = self.create(
            LeaveBalance(
                balance_id=None,
                employee_id=employee_id,
                leave_type_id=leave_type_id,
                year=year,
                total_days=Decimal(total),
                used_days=Decimal(used),
                carry_over_days=Decimal(carry),
            )
        )
        return self.rows[rid]

    def get(self, *, employee_id, leave_type_id, year):
        for b in self.rows.values():
            if (b.employee_id, b.leave_type_id, b.year) == (int(employee_id), int(leave_type_id), int(year)):
                return b
        return None

    def list_for_employee(self, *, employee_id, year=None):
        return [b for b in self.rows.values() if b.employee_id == int(employee_id) and (year is None or b.year == year)]

    def create(self, balance):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = replace(balance, balance_id=rid, version=0)
        return rid

    def save(self, balance):
        current = self.rows.get(int(balance.balance_id))
        if self.stale_saves > 0:
            self.stale_saves -= 1
            return False
        if not current or current.version != balance.version:
            return False
        self.rows[int(balance.balance_id)] = replace(balance, version=current.version + 1)
        return True

    def balance(self, employee_id, leave_type_id, year) -> LeaveBalance:
        return self.get(employee_id=employee_id, leave_type_id=leave_type_id, year=year)


class FakeOvertimeRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: Dict[int, OvertimeRequest] = {}

    def add(self, employee_id, start, end, status=ApprovalStatus.PENDING) -> OvertimeRequest:
        rid = self.create(
            OvertimeRequest(
                request_id=None, employee_id=employee_id, overtime_start=start, overtime_end=end, reason="seed", status=status
            )
        )
        return self.rows[rid]

    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def create(self, request):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = replace(request, request_id=rid)
        return rid

    def list_for_employee(self, *, employee_id, start, end, statuses=None):
        wanted = set(statuses) if statuses else None
        return sorted(
            (
                r for r in self.rows.values()
                if r.employee_id == int(employee_id)
                and r.overtime_start < end
                and r.overtime_end > start
                and (wanted is None or r.status in wanted)
            ),
            key=lambda r: r.overtime_start,
        )

    def list_by_status(self, status, *, start=None, end=None):
        return [
            r for r in self.rows.values()
            if r.status == status
            and (start is None or r.overtime_end > start)
            and (end is None or r.overtime_start < end)
        ]

    def decide(self, *, request_id, status, decided_at, supervisor_notes=None):
        r = self.rows.get(int(request_id))
        if not r or r.status != ApprovalStatus.PENDING:
            return False
        self.rows[int(request_id)] = replace(r, status=status, decided_at=decided_at, supervisor_notes=supervisor_notes)
        return True


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime.combine(MONDAY, time(7, 30)))


@pytest.fixture
def employees() -> FakeEmployeeRepo:
    return FakeEmployeeRepo(
        [
            Employee(RANK_AND_FILE_ID, "Ana Reyes", Decimal("100.00"), True),
            Employee(SALARIED_ID, "Ben Cruz", Decimal("300.00"), False),
            Employee(3, "Carla Diaz", Decimal("120.00"), True),
        ]
    )


@pytest.fixture
def attendance_repo() -> FakeAttendanceRepo:
    return FakeAttendanceRepo()


@pytest.fixture
def tardiness_repo(attendance_repo) -> FakeTardinessRepo:
    return FakeTardinessRepo(attendance_repo)


@pytest.fixture
def leave_requests() -> FakeLeaveRequestRepo:
    return FakeLeaveRequestRepo()


@pytest.fixture
def leave_balances() -> FakeLeaveBalanceRepo:
    return FakeLeaveBalanceRepo()


@pytest.fixture
def overtime_repo() -> FakeOvertimeRepo:
    return FakeOvertimeRepo()


@pytest.fixture
def tardiness_service(tardiness_repo) -> TardinessService:
    return TardinessService(tardiness_repo)


@pytest.fixture
def attendance_service(attendance_repo, employees, tardiness_service, clock) -> AttendanceService:
    return AttendanceService(attendance_repo, employees, tardiness_service, clock)


@pytest.fixture
def payroll_service(attendance_repo, employees) -> PayrollReportService:
    return PayrollReportService(attendance_repo, employees)


@pytest.fixture
def leave_service(leave_requests, leave_balances, attendance_repo, clock) -> LeaveService:
    return LeaveService(leave_requests, leave_balances, attendance_repo, clock)


@pytest.fixture
def overtime_service(overtime_repo, employees, attendance_repo, clock) -> OvertimeService:
    validator = OvertimeValidator(employees, attendance_repo, overtime_repo, clock)
    return OvertimeService(overtime_repo, employees, validator, clock)

