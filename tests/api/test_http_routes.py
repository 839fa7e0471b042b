from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from timekeeping.main import HTTP_STATUS_BY_KIND, create_app
from timekeeping.core.enums import ErrorKind


@pytest.fixture
def client(
    monkeypatch,
    clock,
    attendance_service,
    tardiness_service,
    payroll_service,
    leave_service,
    overtime_service,
):
    monkeypatch.setenv("APP_ENV", "testing")
    container = SimpleNamespace(
        clock=clock,
        attendance_service=attendance_service,
        tardiness_service=tardiness_service,
        payroll_report_service=payroll_service,
        leave_service=leave_service,
        overtime_service=overtime_service,
    )
    app = create_app(container)
    return app.test_client()


def test_error_kinds_map_to_http_statuses():
    assert HTTP_STATUS_BY_KIND == {
        ErrorKind.VALIDATION: 400,
        ErrorKind.POLICY: 422,
        ErrorKind.STATE: 409,
        ErrorKind.COLLABORATOR: 503,
    }


def test_time_in_returns_classification(client, clock):
    clock.moment = datetime(2025, 3, 10, 8, 15)

    resp = client.post("/api/attendance/1/time-in")

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["status"] == "LATE"
    assert body["data"]["display"]["label"] == "Late"
    assert body["data"]["record"]["time_in"] == "08:15:00"


def test_duplicate_time_in_is_conflict(client):
    client.post("/api/attendance/1/time-in")

    resp = client.post("/api/attendance/1/time-in")

    assert resp.status_code == 409
    assert resp.get_json() == {
        "success": False,
        "kind": "STATE",
        "retryable": False,
        "message": "Time-in already recorded for today",
    }


def test_grace_period_info(client):
    resp = client.get("/api/attendance/grace-period")

    assert resp.status_code == 200
    assert resp.get_json()["data"]["grace_period_cutoff"] == "08:10"


def test_manual_entry_rejects_malformed_time(client):
    resp = client.post(
        "/api/attendance/manual",
        json={"employee_id": 1, "work_date": "2025-03-07", "time_in": "8 o'clock"},
    )

    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "VALIDATION"


def test_daily_report_uses_daily_state_display(client, attendance_repo):
    attendance_repo.add(1, date(2025, 3, 7), time(8, 30), time(17, 0))

    resp = client.get("/api/attendance/daily?date=2025-03-07")

    (row,) = resp.get_json()["data"]
    assert row["state"] == "LATE"
    assert row["display"]["priority"] == 2


def test_leave_without_body_is_validation_error(client):
    resp = client.post("/api/leave", data="not json", content_type="text/plain")

    assert resp.status_code == 400


def test_leave_without_balance_is_policy_violation(client):
    resp = client.post(
        "/api/leave",
        json={
            "employee_id": 1,
            "leave_type_id": 1,
            "start_date": "2025-03-17",
            "end_date": "2025-03-18",
            "reason": "Trip",
        },
    )

    assert resp.status_code == 422
    assert resp.get_json()["kind"] == "POLICY"


def test_leave_approve_and_cancel(client, leave_balances):
    leave_balances.add(1, 1, 2025, "15")
    created = client.post(
        "/api/leave",
        json={
            "employee_id": 1,
            "leave_type_id": 1,
            "start_date": "2025-03-17",
            "end_date": "2025-03-18",
            "reason": "Trip",
        },
    ).get_json()["data"]
    assert created["working_days"] == 2

    approved = client.post(f"/api/leave/{created['request_id']}/approve", json={"supervisor_notes": "ok"})
    assert approved.get_json()["data"]["status"] == "APPROVED"

    cancelled = client.delete(f"/api/leave/{created['request_id']}?employee_id=1")
    assert cancelled.get_json()["data"]["restored_days"] == "2"


def test_cancel_requires_employee_id(client):
    resp = client.delete("/api/leave/1")

    assert resp.status_code == 400


def test_lost_balance_race_is_retryable(client, leave_balances):
    leave_balances.add(1, 1, 2025, "15")
    created = client.post(
        "/api/leave",
        json={"employee_id": 1, "leave_type_id": 1, "start_date": "2025-03-17", "end_date": "2025-03-17", "reason": "x"},
    ).get_json()["data"]
    leave_balances.stale_saves = 3

    resp = client.post(f"/api/leave/{created['request_id']}/approve")

    assert resp.status_code == 503
    assert resp.get_json()["retryable"] is True


def test_overtime_submit_returns_estimate(client, attendance_repo):
    attendance_repo.add(1, date(2025, 3, 10), time(8, 0), time(17, 0))

    resp = client.post(
        "/api/overtime",
        json={
            "employee_id": 1,
            "overtime_start": "2025-03-10T17:00",
            "overtime_end": "2025-03-10T19:00",
            "reason": "Release",
        },
    )

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["premium_pay"] == "250.00"
    assert data["multiplier"] == "1.25"
    assert data["request"]["hours"] == "2.00"


def test_overtime_for_salaried_employee_is_policy_violation(client, attendance_repo):
    resp = client.post(
        "/api/overtime",
        json={
            "employee_id": 2,
            "overtime_start": "2025-03-10T17:00",
            "overtime_end": "2025-03-10T19:00",
            "reason": "Audit",
        },
    )

    assert resp.status_code == 422


def test_overtime_summary_includes_eligibility(client):
    resp = client.get("/api/overtime/summary/2?year=2025&month=3")

    data = resp.get_json()["data"]
    assert data["is_overtime_eligible"] is False
    assert data["eligibility"].startswith("Not eligible")
