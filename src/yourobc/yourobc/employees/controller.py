from __future__ import annotations

from flask import Flask, jsonify, request

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
from ..core.enums import EmployeeStatus
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    svc = container.employee_service

    @app.get("/api/employees", endpoint="list_employees")
    @login_required
    def list_employees():
        employees = svc.list_employees(
            status=enum_value(EmployeeStatus, request.args.get("status"), "Status"),
            department=request.args.get("department"),
            search=request.args.get("q"),
        )
        return jsonify(employees)

    @app.get("/api/employees/<int:employee_id>", endpoint="get_employee")
    @login_required
    def get_employee(employee_id: int):
        return jsonify(svc.get_employee(employee_id))

    @app.post("/api/employees", endpoint="create_employee")
    @manager_required
    def create_employee():
        data = json_body()
        employee_id = svc.create_employee(
            actor=current_actor(),
            full_name=data.get("full_name", ""),
            hire_date=date_value(data.get("hire_date"), "Hire date"),
            email=data.get("email"),
            phone=data.get("phone"),
            department=data.get("department"),
            position=data.get("position"),
            status=enum_value(EmployeeStatus, data.get("status"), "Status") or EmployeeStatus.ACTIVE,
            user_id=int_value(data.get("user_id"), "User"),
        )
        return jsonify(svc.get_employee(employee_id)), 201

    @app.patch("/api/employees/<int:employee_id>", endpoint="update_employee")
    @login_required
    def update_employee(employee_id: int):
        changes = dict(json_body())
        if "hire_date" in changes:
            changes["hire_date"] = date_value(changes["hire_date"], "Hire date")
            if changes["hire_date"] is None:
                raise ValidationError("Hire date is required")
        if "user_id" in changes:
            changes["user_id"] = int_value(changes["user_id"], "User")
        svc.update_employee(actor=current_actor(), employee_id=employee_id, changes=changes)
        return jsonify(svc.get_employee(employee_id))

    @app.post("/api/employees/<int:employee_id>/status", endpoint="change_employee_status")
    @manager_required
    def change_status(employee_id: int):
        status = enum_value(EmployeeStatus, json_body().get("status"), "Status")
        if status is None:
            raise ValidationError("Status is required")
        svc.change_status(actor=current_actor(), employee_id=employee_id, status=status)
        return jsonify({"ok": True})

    @app.delete("/api/employees/<int:employee_id>", endpoint="delete_employee")
    @admin_required
    def delete_employee(employee_id: int):
        svc.delete_employee(actor=current_actor(), employee_id=employee_id)
        return jsonify({"ok": True})

    @app.post("/api/employees/<int:employee_id>/restore", endpoint="restore_employee")
    @admin_required
    def restore_employee(employee_id: int):
        svc.restore_employee(actor=current_actor(), employee_id=employee_id)
        return jsonify({"ok": True})
