from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.http import current_actor, date_value, int_value, login_required, manager_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.session_service

    @app.post("/api/employees/<int:employee_id>/sessions/start", endpoint="start_session")
    @login_required
    def start_session(employee_id: int):
        session_id = svc.start_session(
            actor=current_actor(),
            employee_id=employee_id,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"session_id": session_id}), 201

    @app.post("/api/employees/<int:employee_id>/sessions/end", endpoint="end_session")
    @login_required
    def end_session(employee_id: int):
        minutes = svc.end_session(actor=current_actor(), employee_id=employee_id)
        return jsonify({"ended": minutes is not None, "duration_minutes": minutes})

    @app.post("/api/employees/<int:employee_id>/sessions/heartbeat", endpoint="session_heartbeat")
    @login_required
    def heartbeat(employee_id: int):
        session_id = svc.record_activity(actor=current_actor(), employee_id=employee_id)
        return jsonify({"session_id": session_id})

    @app.get("/api/reports/work-hours", endpoint="work_hours_report")
    @manager_required
    def work_hours_report():
        today = now_local().date()
        start = date_value(request.args.get("start"), "Start") or today - timedelta(days=7)
        end = date_value(request.args.get("end"), "End") or today
        data = container.work_hours_report_service.build_report(
            start=start,
            end=end,
            employee_id=int_value(request.args.get("employee_id"), "Employee"),
        )
        return jsonify(data)
