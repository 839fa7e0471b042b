from datetime import date, datetime, time
from decimal import Decimal

import pytest

from timekeeping.core.enums import ApprovalStatus
from timekeeping.core.exceptions import ConcurrencyError, PolicyViolation, StateError, ValidationError

EMP = 1
VACATION = 1
NEXT_MONDAY = date(2025, 3, 17)
NEXT_FRIDAY = date(2025, 3, 21)


@pytest.fixture
def balance(leave_balances):
    return leave_balances.add(EMP, VACATION, 2025, "15")


def _submit(leave_service, start=NEXT_MONDAY, end=NEXT_FRIDAY, **kwargs):
    return leave_service.submit_leave_request(
        employee_id=EMP, leave_type_id=VACATION, start_date=start, end_date=end, reason="Family trip", **kwargs
    )


def _worked(attendance_repo, *days):
    for day in days:
        attendance_repo.add(EMP, day, time(8, 0), time(17, 0))


def test_submit_creates_pending_request(leave_service, balance):
    request = _submit(leave_service)

    assert request.status == ApprovalStatus.PENDING
    assert request.working_days == 5
    assert not request.has_attendance_conflict


def test_submit_rejects_past_start(leave_service, balance):
    with pytest.raises(ValidationError):
        _submit(leave_service, start=date(2025, 3, 7), end=date(2025, 3, 11))


def test_submit_rejects_reversed_range(leave_service, balance):
    with pytest.raises(ValidationError):
        _submit(leave_service, start=NEXT_FRIDAY, end=NEXT_MONDAY)


def test_submit_rejects_weekend_only_range(leave_service, balance):
    with pytest.raises(ValidationError):
        _submit(leave_service, start=date(2025, 3, 15), end=date(2025, 3, 16))


def test_submit_requires_reason(leave_service, balance):
    with pytest.raises(ValidationError):
        leave_service.submit_leave_request(
            employee_id=EMP, leave_type_id=VACATION, start_date=NEXT_MONDAY, end_date=NEXT_FRIDAY, reason=" "
        )


def test_submit_without_balance_row_is_policy_violation(leave_service):
    with pytest.raises(PolicyViolation):
        _submit(leave_service)


def test_submit_beyond_balance_is_policy_violation(leave_service, leave_balances):
    leave_balances.add(EMP, VACATION, 2025, "3")

    with pytest.raises(PolicyViolation):
        _submit(leave_service)


def test_overlapping_active_request_is_rejected(leave_service, balance):
    _submit(leave_service)

    with pytest.raises(PolicyViolation):
        _submit(leave_service, start=NEXT_FRIDAY, end=date(2025, 3, 24))


def test_rejected_request_does_not_block_new_one(leave_service, balance):
    first = _submit(leave_service)
    leave_service.reject_leave_request(first.request_id, supervisor_notes="Team offsite")

    second = _submit(leave_service)

    assert second.request_id != first.request_id


def test_approval_deducts_only_days_not_worked(leave_service, leave_balances, attendance_repo, balance):
    _worked(attendance_repo, date(2025, 3, 18), date(2025, 3, 19))
    request = _submit(leave_service)
    assert request.has_attendance_conflict

    approved = leave_service.approve_leave_request(request.request_id, supervisor_notes="ok")

    assert approved.status == ApprovalStatus.APPROVED
    assert approved.deducted_days == Decimal("3")
    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("3")


def test_approval_recomputes_conflicts_at_decision_time(leave_service, leave_balances, attendance_repo, balance):
    request = _submit(leave_service)
    _worked(attendance_repo, date(2025, 3, 17))

    approved = leave_service.approve_leave_request(request.request_id)

    assert approved.has_attendance_conflict
    assert approved.deducted_days == Decimal("4")


def test_cancel_restores_exactly_what_was_deducted(leave_service, leave_requests, leave_balances, attendance_repo, balance):
    _worked(attendance_repo, date(2025, 3, 18), date(2025, 3, 19))
    request = _submit(leave_service)
    leave_service.approve_leave_request(request.request_id)
    # attendance changing after approval does not change the refund
    _worked(attendance_repo, date(2025, 3, 20))

    restored = leave_service.cancel_leave_request(request.request_id, employee_id=EMP)

    assert restored == Decimal("3")
    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("0")
    assert leave_requests.get_by_id(request.request_id) is None


def test_cancel_pending_restores_nothing(leave_service, leave_balances, balance):
    request = _submit(leave_service)

    assert leave_service.cancel_leave_request(request.request_id, employee_id=EMP) == Decimal("0")
    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("0")


def test_cancel_rereads_request_approved_after_it_was_read(leave_service, leave_requests, leave_balances, balance, monkeypatch):
    request = _submit(leave_service)
    stale = leave_requests.get_by_id(request.request_id)
    leave_service.approve_leave_request(request.request_id)
    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("5")

    reads = []
    fresh_get = leave_requests.get_by_id

    def first_read_is_stale(request_id):
        reads.append(request_id)
        return stale if len(reads) == 1 else fresh_get(request_id)

    monkeypatch.setattr(leave_requests, "get_by_id", first_read_is_stale)

    restored = leave_service.cancel_leave_request(request.request_id, employee_id=EMP)

    assert len(reads) == 2
    assert restored == Decimal("5")
    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("0")
    assert fresh_get(request.request_id) is None


def test_status_guarded_delete_keeps_approved_request(leave_service, leave_requests, balance):
    request = _submit(leave_service)
    leave_service.approve_leave_request(request.request_id)

    assert not leave_requests.delete(request.request_id, expected_status=ApprovalStatus.PENDING)
    assert leave_requests.get_by_id(request.request_id).status == ApprovalStatus.APPROVED


def test_cancel_gives_up_when_request_keeps_changing(leave_service, leave_requests, leave_balances, balance, monkeypatch):
    request = _submit(leave_service)
    stale = leave_requests.get_by_id(request.request_id)
    leave_service.approve_leave_request(request.request_id)
    monkeypatch.setattr(leave_requests, "get_by_id", lambda request_id: stale)

    with pytest.raises(ConcurrencyError):
        leave_service.cancel_leave_request(request.request_id, employee_id=EMP)

    assert leave_requests.rows[request.request_id].status == ApprovalStatus.APPROVED
    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("5")


def test_only_owner_can_cancel(leave_service, balance):
    request = _submit(leave_service)

    with pytest.raises(PolicyViolation):
        leave_service.cancel_leave_request(request.request_id, employee_id=3)


def test_started_approved_leave_cannot_be_cancelled(leave_service, balance, clock):
    request = _submit(leave_service)
    leave_service.approve_leave_request(request.request_id)
    clock.moment = datetime(2025, 3, 17, 9, 0)

    with pytest.raises(StateError):
        leave_service.cancel_leave_request(request.request_id, employee_id=EMP)


def test_decided_request_cannot_be_decided_again(leave_service, balance):
    request = _submit(leave_service)
    leave_service.approve_leave_request(request.request_id)

    with pytest.raises(StateError):
        leave_service.approve_leave_request(request.request_id)
    with pytest.raises(StateError):
        leave_service.reject_leave_request(request.request_id, supervisor_notes="late")


def test_rejection_requires_notes(leave_service, balance):
    request = _submit(leave_service)

    with pytest.raises(ValidationError):
        leave_service.reject_leave_request(request.request_id, supervisor_notes="")


def test_rejection_keeps_balance(leave_service, leave_balances, balance):
    request = _submit(leave_service)

    rejected = leave_service.reject_leave_request(request.request_id, supervisor_notes="Short staffed")

    assert rejected.status == ApprovalStatus.REJECTED
    assert rejected.supervisor_notes == "Short staffed"
    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("0")


def test_lost_decision_race_gives_days_back(leave_service, leave_requests, leave_balances, balance, monkeypatch):
    request = _submit(leave_service)
    monkeypatch.setattr(leave_requests, "decide", lambda **kwargs: False)

    with pytest.raises(StateError):
        leave_service.approve_leave_request(request.request_id)

    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("0")


def test_balance_write_retries_on_stale_version(leave_service, leave_balances, balance):
    request = _submit(leave_service)
    leave_balances.stale_saves = 2

    leave_service.approve_leave_request(request.request_id)

    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("5")


def test_balance_write_gives_up_after_three_attempts(leave_service, leave_requests, leave_balances, balance):
    request = _submit(leave_service)
    leave_balances.stale_saves = 3

    with pytest.raises(ConcurrencyError):
        leave_service.approve_leave_request(request.request_id)

    assert leave_requests.get_by_id(request.request_id).status == ApprovalStatus.PENDING


def test_leave_crossing_new_year_is_charged_to_start_year(leave_service, leave_balances, clock):
    clock.moment = datetime(2025, 12, 1, 9, 0)
    leave_balances.add(EMP, VACATION, 2025, "15")
    leave_balances.add(EMP, VACATION, 2026, "15")

    request = _submit(leave_service, start=date(2025, 12, 29), end=date(2026, 1, 2))
    leave_service.approve_leave_request(request.request_id)

    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("5")
    assert leave_balances.balance(EMP, VACATION, 2026).used_days == Decimal("0")


def test_pre_approved_submission(leave_service, leave_balances, balance):
    request = _submit(leave_service, pre_approved=True, supervisor_notes="HR entry")

    assert request.status == ApprovalStatus.APPROVED
    assert request.supervisor_notes == "HR entry"
    assert leave_balances.balance(EMP, VACATION, 2025).used_days == Decimal("5")


def test_initialize_leave_balances_is_idempotent(leave_service, leave_balances):
    created = leave_service.initialize_leave_balances(employee_id=3, year=2025)
    again = leave_service.initialize_leave_balances(employee_id=3, year=2025)

    assert sorted(b.leave_type_id for b in created) == [1, 2, 3]
    assert again == []
    assert leave_balances.balance(3, 3, 2025).total_days == Decimal("5")


def test_roll_over_balances(leave_service, leave_balances):
    leave_balances.add(EMP, VACATION, 2025, "15", used="5")

    created = leave_service.roll_over_balances(employee_id=EMP, from_year=2025)

    assert len(created) == 1
    assert leave_balances.balance(EMP, VACATION, 2026).carry_over_days == Decimal("5")
    assert leave_service.roll_over_balances(employee_id=EMP, from_year=2025) == []


def test_can_request_leave(leave_service, balance):
    assert leave_service.can_request_leave(
        employee_id=EMP, leave_type_id=VACATION, start_date=NEXT_MONDAY, end_date=NEXT_FRIDAY
    ).allowed

    past = leave_service.can_request_leave(
        employee_id=EMP, leave_type_id=VACATION, start_date=date(2025, 3, 3), end_date=date(2025, 3, 4)
    )
    assert not past.allowed
    assert "past" in past.reason

    too_long = leave_service.can_request_leave(
        employee_id=EMP, leave_type_id=VACATION, start_date=NEXT_MONDAY, end_date=date(2025, 4, 30)
    )
    assert not too_long.allowed


def test_conflict_resolution_summary(leave_service, attendance_repo, balance):
    _worked(attendance_repo, date(2025, 3, 18))
    request = _submit(leave_service)

    summary = leave_service.get_conflict_resolution_summary(request.request_id)

    assert summary["original_leave_days"] == 5
    assert summary["effective_leave_days"] == 4
    assert summary["conflict_dates"] == ["2025-03-18"]
    assert summary["status"] == "PENDING"


def test_check_date_conflict(leave_service, attendance_repo, balance):
    request = _submit(leave_service)
    leave_service.approve_leave_request(request.request_id)
    _worked(attendance_repo, date(2025, 3, 18))

    worked_day = leave_service.check_date_conflict(employee_id=EMP, day=date(2025, 3, 18))
    leave_day = leave_service.check_date_conflict(employee_id=EMP, day=date(2025, 3, 19))

    assert worked_day["has_conflict"]
    assert "resolution" in worked_day
    assert leave_day["has_approved_leave"]
    assert not leave_day["has_conflict"]


def test_refresh_conflict_flags(leave_service, leave_requests, attendance_repo, balance):
    request = _submit(leave_service)
    leave_service.approve_leave_request(request.request_id)
    _worked(attendance_repo, date(2025, 3, 18))

    result = leave_service.refresh_conflict_flags(employee_id=EMP, start_date=NEXT_MONDAY, end_date=NEXT_FRIDAY)

    assert result["updated_requests"] == [request.request_id]
    assert result["success"]
    refreshed = leave_requests.get_by_id(request.request_id)
    assert refreshed.has_attendance_conflict
    assert refreshed.deducted_days == Decimal("5")


def test_monthly_summary_and_effectiveness(leave_service, attendance_repo, balance):
    _worked(attendance_repo, date(2025, 3, 18))
    approved = _submit(leave_service)
    leave_service.approve_leave_request(approved.request_id)
    pending = _submit(leave_service, start=date(2025, 3, 26), end=date(2025, 3, 27))

    summary = leave_service.get_monthly_leave_summary(employee_id=EMP, year=2025, month=3)
    effectiveness = leave_service.get_leave_effectiveness(
        employee_id=EMP, start_date=date(2025, 3, 1), end_date=date(2025, 3, 31)
    )

    assert pending.status == ApprovalStatus.PENDING
    assert summary["total_requests"] == 2
    assert summary["approved_requests"] == 1
    assert summary["pending_requests"] == 1
    assert summary["effective_leave_days"] == 4
    assert summary["approval_rate"] == Decimal("50.00")
    assert effectiveness["effectiveness_rate"] == Decimal("80.00")
    assert effectiveness["interpretation"] == "Moderate effectiveness"


def test_audit_report(leave_service, attendance_repo, balance):
    _worked(attendance_repo, date(2025, 3, 18), date(2025, 3, 19))
    request = _submit(leave_service)
    leave_service.approve_leave_request(request.request_id)

    report = leave_service.get_leave_audit_report(employee_id=EMP, year=2025)

    assert report["approved_requests"] == 1
    assert report["total_original_leave_days"] == 5
    assert report["total_effective_leave_days"] == 3
    assert report["conflict_rate"] == Decimal("40.00")
    assert report["conflict_analyses"][0]["request_id"] == request.request_id


def test_upcoming_leaves_window(leave_service, leave_balances, balance):
    near = _submit(leave_service)
    _submit(leave_service, start=date(2025, 7, 1), end=date(2025, 7, 1))

    upcoming = leave_service.get_upcoming_leaves(EMP)

    assert [r.request_id for r in upcoming] == [near.request_id]


def test_employee_leave_summary(leave_service, leave_balances, balance):
    leave_balances.add(EMP, 2, 2025, "15", used="3")

    summary = leave_service.get_employee_leave_summary(employee_id=EMP, year=2025)

    assert summary["total_allocated_days"] == Decimal("30")
    assert summary["total_remaining_days"] == Decimal("27")
    assert summary["usage_percentage"] == Decimal("10.00")
