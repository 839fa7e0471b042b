from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, ok, parse_arg, parse_field, parse_time, to_jsonable
from ..container import Container
from ..presentation import display_for
from .service import PunchOutcome


def _outcome_payload(outcome: PunchOutcome) -> dict:
    payload = to_jsonable(outcome)
    payload["display"] = display_for(outcome.status).to_dict()
    return payload


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/<int:employee_id>/time-in", methods=["POST"], endpoint="attendance_time_in")
    def time_in(employee_id: int):
        return ok(_outcome_payload(container.attendance_service.record_time_in(employee_id)), 201)

    @app.route("/api/attendance/<int:employee_id>/time-out", methods=["POST"], endpoint="attendance_time_out")
    def time_out(employee_id: int):
        return ok(_outcome_payload(container.attendance_service.record_time_out(employee_id)))

    @app.route("/api/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    def manual_entry():
        data = json_body()
        outcome = container.attendance_service.create_manual_attendance(
            employee_id=parse_field(data, "employee_id", int),
            work_date=parse_field(data, "work_date", parse_iso_date),
            time_in=parse_field(data, "time_in", parse_time),
            time_out=parse_field(data, "time_out", parse_time, required=False),
        )
        return ok(_outcome_payload(outcome), 201)

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    def update_attendance(attendance_id: int):
        data = json_body()
        outcome = container.attendance_service.update_attendance(
            attendance_id=attendance_id,
            time_in=parse_field(data, "time_in", parse_time),
            time_out=parse_field(data, "time_out", parse_time),
        )
        return ok(_outcome_payload(outcome))

    @app.route("/api/attendance/<int:employee_id>/today", methods=["GET"], endpoint="attendance_today")
    def today_status(employee_id: int):
        status = container.attendance_service.get_today_status(employee_id)
        record = status.record
        return ok(
            {
                "employee_id": status.employee_id,
                "work_date": status.work_date,
                "time_in": record.time_in if record else None,
                "time_out": record.time_out if record else None,
                "can_time_in": status.can_time_in,
                "can_time_out": status.can_time_out,
                "display": display_for(record.time_in_status if record else None).to_dict(),
            }
        )

    @app.route("/api/attendance/grace-period", methods=["GET"], endpoint="attendance_grace_period")
    def grace_period():
        return ok(container.attendance_service.get_grace_period_info())

    @app.route("/api/attendance/<int:employee_id>/summary", methods=["GET"], endpoint="attendance_summary")
    def monthly_summary(employee_id: int):
        summary = container.payroll_report_service.get_monthly_attendance_summary(
            employee_id=employee_id,
            year=parse_arg("year", int, required=True),
            month=parse_arg("month", int, required=True),
        )
        return ok(summary)

    @app.route("/api/attendance/<int:employee_id>/compliance", methods=["GET"], endpoint="attendance_compliance")
    def compliance(employee_id: int):
        rate = container.payroll_report_service.calculate_compliance_rate(
            employee_id=employee_id,
            start_date=parse_arg("start", parse_iso_date, required=True),
            end_date=parse_arg("end", parse_iso_date, required=True),
        )
        return ok({"employee_id": employee_id, "compliance_rate": rate})

    @app.route("/api/attendance/daily", methods=["GET"], endpoint="attendance_daily")
    def daily_report():
        rows = container.payroll_report_service.get_daily_attendance_report(
            parse_arg("date", parse_iso_date, required=True)
        )
        payload = []
        for row in rows:
            item = to_jsonable(row)
            item["display"] = display_for(row.state).to_dict()
            payload.append(item)
        return ok(payload)

    @app.route("/api/attendance/<int:employee_id>/tardiness", methods=["GET"], endpoint="attendance_tardiness")
    def tardiness_statistics(employee_id: int):
        stats = container.tardiness_service.get_statistics(
            employee_id=employee_id,
            start_date=parse_arg("start", parse_iso_date, required=True),
            end_date=parse_arg("end", parse_iso_date, required=True),
        )
        payload = to_jsonable(stats)
        payload.update({"total_count": stats.total_count, "total_hours": str(stats.total_hours)})
        return ok(payload)
