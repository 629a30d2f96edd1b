from __future__ import annotations

import dataclasses

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.http import (
    admin_required,
    current_actor,
    date_value,
    enum_value,
    int_value,
    json_body,
    login_required,
    manager_required,
)
from ..container import Container
from ..core.enums import RequestStatus, VacationType
from ..core.exceptions import ValidationError


def _balance_json(balance) -> dict:
    data = dataclasses.asdict(balance)
    data["available"] = balance.available
    data["remaining"] = balance.remaining
    return data


def register(app: Flask, container: Container) -> None:
    svc = container.vacation_service

    @app.get("/api/employees/<int:employee_id>/vacation-balance", endpoint="get_vacation_balance")
    @login_required
    def get_balance(employee_id: int):
        year = int_value(request.args.get("year"), "Year") or now_local().year
        return jsonify(_balance_json(svc.get_balance(actor=current_actor(), employee_id=employee_id, year=year)))

    @app.post("/api/employees/<int:employee_id>/vacation-balance", endpoint="initialize_vacation_balance")
    @admin_required
    def initialize_balance(employee_id: int):
        data = json_body()
        year = int_value(data.get("year"), "Year") or now_local().year
        svc.initialize_balance(
            actor=current_actor(),
            employee_id=employee_id,
            year=year,
            carryover_days=int_value(data.get("carryover_days"), "Carryover") or 0,
        )
        return jsonify(_balance_json(svc.get_balance(actor=current_actor(), employee_id=employee_id, year=year))), 201

    @app.post("/api/employees/<int:employee_id>/vacation-carryover", endpoint="carry_over_vacation")
    @manager_required
    def carry_over(employee_id: int):
        from_year = int_value(json_body().get("from_year"), "Year") or now_local().year - 1
        days = svc.carry_over(actor=current_actor(), employee_id=employee_id, from_year=from_year)
        return jsonify({"carried_over": days})

    @app.get("/api/vacations", endpoint="list_vacation_requests")
    @login_required
    def list_requests():
        requests = svc.list_requests(
            actor=current_actor(),
            employee_id=int_value(request.args.get("employee_id"), "Employee"),
            status=enum_value(RequestStatus, request.args.get("status"), "Status"),
            year=int_value(request.args.get("year"), "Year"),
        )
        return jsonify(requests)

    @app.post("/api/vacations", endpoint="request_vacation")
    @login_required
    def request_vacation():
        data = json_body()
        start = date_value(data.get("start_date"), "Start date")
        end = date_value(data.get("end_date"), "End date")
        if start is None or end is None:
            raise ValidationError("Start and end dates are required")
        employee_id = int_value(data.get("employee_id"), "Employee")
        if employee_id is None:
            raise ValidationError("Employee is required")

        request_id = svc.request_vacation(
            actor=current_actor(),
            employee_id=employee_id,
            start_date=start,
            end_date=end,
            vacation_type=enum_value(VacationType, data.get("vacation_type"), "Vacation type") or VacationType.ANNUAL,
            reason=data.get("reason"),
        )
        return jsonify({"request_id": request_id}), 201

    @app.post("/api/vacations/<int:request_id>/approve", endpoint="approve_vacation")
    @manager_required
    def approve(request_id: int):
        svc.approve_vacation(actor=current_actor(), request_id=request_id, note=json_body().get("note"))
        return jsonify({"ok": True})

    @app.post("/api/vacations/<int:request_id>/reject", endpoint="reject_vacation")
    @manager_required
    def reject(request_id: int):
        svc.reject_vacation(actor=current_actor(), request_id=request_id, reason=json_body().get("reason", ""))
        return jsonify({"ok": True})

    @app.post("/api/vacations/<int:request_id>/cancel", endpoint="cancel_vacation")
    @login_required
    def cancel(request_id: int):
        svc.cancel_vacation(actor=current_actor(), request_id=request_id, note=json_body().get("note"))
        return jsonify({"ok": True})
