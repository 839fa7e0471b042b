from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import json_body, ok, optional_json_body, parse_arg, parse_field, to_jsonable
from ..container import Container
from ..core.constants import DEFAULT_RANKING_LIMIT
from ..presentation import display_for
from .model import OvertimeDecision, OvertimeRequest


def _request_payload(request: OvertimeRequest) -> dict:
    payload = to_jsonable(request)
    payload["hours"] = str(request.hours)
    payload["display"] = display_for(request.status).to_dict()
    return payload


def _decision_payload(decision: OvertimeDecision) -> dict:
    return {
        "request": _request_payload(decision.request),
        "premium_pay": to_jsonable(decision.premium_pay),
        "multiplier": to_jsonable(decision.multiplier),
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/overtime", methods=["POST"], endpoint="overtime_submit")
    def submit_overtime():
        data = json_body()
        decision = container.overtime_service.submit_overtime_request(
            employee_id=parse_field(data, "employee_id", int),
            overtime_start=parse_field(data, "overtime_start", parse_iso_datetime),
            overtime_end=parse_field(data, "overtime_end", parse_iso_datetime),
            reason=str(data.get("reason") or ""),
        )
        return ok(_decision_payload(decision), 201)

    @app.route("/api/overtime/<int:request_id>/approve", methods=["POST"], endpoint="overtime_approve")
    def approve_overtime(request_id: int):
        data = optional_json_body()
        decision = container.overtime_service.approve_overtime_request(
            request_id, supervisor_notes=data.get("supervisor_notes")
        )
        return ok(_decision_payload(decision))

    @app.route("/api/overtime/<int:request_id>/reject", methods=["POST"], endpoint="overtime_reject")
    def reject_overtime(request_id: int):
        data = json_body()
        request = container.overtime_service.reject_overtime_request(
            request_id, supervisor_notes=str(data.get("supervisor_notes") or "")
        )
        return ok(_request_payload(request))

    @app.route("/api/overtime/pending", methods=["GET"], endpoint="overtime_pending")
    def pending_overtime():
        return ok([_request_payload(r) for r in container.overtime_service.get_pending_requests()])

    @app.route("/api/overtime/ranking", methods=["GET"], endpoint="overtime_ranking")
    def overtime_ranking():
        ranking = container.overtime_service.get_top_overtime_employees(
            start_date=parse_arg("start", parse_iso_date, required=True),
            end_date=parse_arg("end", parse_iso_date, required=True),
            limit=parse_arg("limit", int, default=DEFAULT_RANKING_LIMIT),
        )
        return ok(ranking)

    @app.route("/api/overtime/summary/<int:employee_id>", methods=["GET"], endpoint="overtime_summary")
    def overtime_summary(employee_id: int):
        summary = container.overtime_service.get_employee_overtime_summary(
            employee_id=employee_id,
            year=parse_arg("year", int, required=True),
            month=parse_arg("month", int, required=True),
        )
        summary["eligibility"] = container.overtime_service.get_eligibility_message(employee_id)
        return ok(summary)
