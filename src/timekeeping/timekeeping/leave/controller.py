from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, ok, optional_json_body, parse_arg, parse_field, to_jsonable
from ..container import Container
from ..presentation import display_for
from .model import LeaveRequest


def _request_payload(request: LeaveRequest) -> dict:
    payload = to_jsonable(request)
    payload["working_days"] = request.working_days
    payload["display"] = display_for(request.status).to_dict()
    return payload


def register(app: Flask, container: Container) -> None:
    @app.route("/api/leave", methods=["POST"], endpoint="leave_submit")
    def submit_leave():
        data = json_body()
        request = container.leave_service.submit_leave_request(
            employee_id=parse_field(data, "employee_id", int),
            leave_type_id=parse_field(data, "leave_type_id", int),
            start_date=parse_field(data, "start_date", parse_iso_date),
            end_date=parse_field(data, "end_date", parse_iso_date),
            reason=str(data.get("reason") or ""),
            pre_approved=bool(data.get("pre_approved", False)),
            supervisor_notes=data.get("supervisor_notes"),
        )
        return ok(_request_payload(request), 201)

    @app.route("/api/leave/<int:request_id>/approve", methods=["POST"], endpoint="leave_approve")
    def approve_leave(request_id: int):
        data = optional_json_body()
        request = container.leave_service.approve_leave_request(request_id, supervisor_notes=data.get("supervisor_notes"))
        return ok(_request_payload(request))

    @app.route("/api/leave/<int:request_id>/reject", methods=["POST"], endpoint="leave_reject")
    def reject_leave(request_id: int):
        data = json_body()
        request = container.leave_service.reject_leave_request(
            request_id, supervisor_notes=str(data.get("supervisor_notes") or "")
        )
        return ok(_request_payload(request))

    @app.route("/api/leave/<int:request_id>", methods=["DELETE"], endpoint="leave_cancel")
    def cancel_leave(request_id: int):
        restored = container.leave_service.cancel_leave_request(
            request_id, employee_id=parse_arg("employee_id", int, required=True)
        )
        return ok({"request_id": request_id, "restored_days": restored})

    @app.route("/api/leave/<int:request_id>/conflicts", methods=["GET"], endpoint="leave_conflicts")
    def leave_conflicts(request_id: int):
        return ok(container.leave_service.get_conflict_resolution_summary(request_id))

    @app.route("/api/leave/eligibility/<int:employee_id>", methods=["GET"], endpoint="leave_eligibility")
    def leave_eligibility(employee_id: int):
        result = container.leave_service.can_request_leave(
            employee_id=employee_id,
            leave_type_id=parse_arg("leave_type_id", int, required=True),
            start_date=parse_arg("start", parse_iso_date, required=True),
            end_date=parse_arg("end", parse_iso_date, required=True),
        )
        return ok(result)

    @app.route("/api/leave/utilization/<int:employee_id>", methods=["GET"], endpoint="leave_utilization")
    def leave_utilization(employee_id: int):
        year = parse_arg("year", int, required=True)
        return ok(container.leave_service.get_leave_utilization_report(employee_id=employee_id, year=year))

    @app.route("/api/leave/audit/<int:employee_id>", methods=["GET"], endpoint="leave_audit")
    def leave_audit(employee_id: int):
        year = parse_arg("year", int, required=True)
        return ok(container.leave_service.get_leave_audit_report(employee_id=employee_id, year=year))

    @app.route("/api/leave/upcoming/<int:employee_id>", methods=["GET"], endpoint="leave_upcoming")
    def upcoming_leaves(employee_id: int):
        return ok([_request_payload(r) for r in container.leave_service.get_upcoming_leaves(employee_id)])

    @app.route("/api/leave/balances/<int:employee_id>/initialize", methods=["POST"], endpoint="leave_init_balances")
    def initialize_balances(employee_id: int):
        year = parse_arg("year", int)
        return ok(container.leave_service.initialize_leave_balances(employee_id=employee_id, year=year), 201)
