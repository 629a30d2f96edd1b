from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, date_value, enum_value, int_value, json_body, login_required
from ..container import Container
from ..core.enums import Priority, ProjectStatus, TaskStatus
from ..core.exceptions import ValidationError


def _dates(changes: dict, *fields: str) -> dict:
    for field in fields:
        if field in changes:
            changes[field] = date_value(changes[field], field.replace("_", " ").capitalize())
    return changes


def register(app: Flask, container: Container) -> None:
    svc = container.project_service

    # -------- Projects --------
    @app.get("/api/projects", endpoint="list_projects")
    @login_required
    def list_projects():
        projects = svc.list_projects(
            owner_id=int_value(request.args.get("owner_id"), "Owner"),
            status=enum_value(ProjectStatus, request.args.get("status"), "Status"),
            search=request.args.get("q"),
        )
        return jsonify(projects)

    @app.get("/api/projects/<int:project_id>", endpoint="get_project")
    @login_required
    def get_project(project_id: int):
        return jsonify(svc.get_project(project_id))

    @app.post("/api/projects", endpoint="create_project")
    @login_required
    def create_project():
        data = json_body()
        project_id = svc.create_project(
            actor=current_actor(),
            title=data.get("title", ""),
            description=data.get("description"),
            client_id=int_value(data.get("client_id"), "Client"),
            status=enum_value(ProjectStatus, data.get("status"), "Status") or ProjectStatus.PLANNING,
            priority=enum_value(Priority, data.get("priority"), "Priority") or Priority.MEDIUM,
            start_date=date_value(data.get("start_date"), "Start date"),
            due_date=date_value(data.get("due_date"), "Due date"),
            budget=data.get("budget"),
        )
        return jsonify(svc.get_project(project_id)), 201

    @app.patch("/api/projects/<int:project_id>", endpoint="update_project")
    @login_required
    def update_project(project_id: int):
        changes = _dates(dict(json_body()), "start_date", "due_date")
        if "status" in changes:
            changes["status"] = enum_value(ProjectStatus, changes["status"], "Status")
        if "priority" in changes:
            changes["priority"] = enum_value(Priority, changes["priority"], "Priority")
        return jsonify(svc.update_project(actor=current_actor(), project_id=project_id, changes=changes))

    @app.delete("/api/projects/<int:project_id>", endpoint="delete_project")
    @login_required
    def delete_project(project_id: int):
        svc.delete_project(actor=current_actor(), project_id=project_id)
        return jsonify({"ok": True})

    @app.post("/api/projects/<int:project_id>/restore", endpoint="restore_project")
    @login_required
    def restore_project(project_id: int):
        svc.restore_project(actor=current_actor(), project_id=project_id)
        return jsonify({"ok": True})

    # -------- Tasks --------
    @app.get("/api/tasks", endpoint="list_tasks")
    @login_required
    def list_tasks():
        tasks = svc.list_tasks(
            project_id=int_value(request.args.get("project_id"), "Project"),
            assigned_to=int_value(request.args.get("assigned_to"), "Assignee"),
            status=enum_value(TaskStatus, request.args.get("status"), "Status"),
            overdue_only=request.args.get("overdue") in ("1", "true"),
        )
        return jsonify(tasks)

    @app.post("/api/tasks", endpoint="create_task")
    @login_required
    def create_task():
        data = json_body()
        task_id = svc.create_task(
            actor=current_actor(),
            title=data.get("title", ""),
            project_id=int_value(data.get("project_id"), "Project"),
            shipment_id=int_value(data.get("shipment_id"), "Shipment"),
            description=data.get("description"),
            priority=enum_value(Priority, data.get("priority"), "Priority") or Priority.MEDIUM,
            assigned_to=int_value(data.get("assigned_to"), "Assignee"),
            due_date=date_value(data.get("due_date"), "Due date"),
        )
        return jsonify(svc.get_task(task_id)), 201

    @app.patch("/api/tasks/<int:task_id>", endpoint="update_task")
    @login_required
    def update_task(task_id: int):
        changes = _dates(dict(json_body()), "due_date")
        if "priority" in changes:
            changes["priority"] = enum_value(Priority, changes["priority"], "Priority")
        return jsonify(svc.update_task(actor=current_actor(), task_id=task_id, changes=changes))

    @app.put("/api/tasks/<int:task_id>/assignee", endpoint="assign_task")
    @login_required
    def assign_task(task_id: int):
        user_id = int_value(json_body().get("user_id"), "User")
        if user_id is None:
            raise ValidationError("User is required")
        svc.assign_task(actor=current_actor(), task_id=task_id, user_id=user_id)
        return jsonify(svc.get_task(task_id))

    @app.delete("/api/tasks/<int:task_id>/assignee", endpoint="unassign_task")
    @login_required
    def unassign_task(task_id: int):
        svc.unassign_task(actor=current_actor(), task_id=task_id)
        return jsonify(svc.get_task(task_id))

    @app.post("/api/tasks/<int:task_id>/start", endpoint="start_task")
    @login_required
    def start_task(task_id: int):
        svc.start_task(actor=current_actor(), task_id=task_id)
        return jsonify(svc.get_task(task_id))

    @app.post("/api/tasks/<int:task_id>/complete", endpoint="complete_task")
    @login_required
    def complete_task(task_id: int):
        svc.complete_task(actor=current_actor(), task_id=task_id, notes=json_body().get("notes"))
        return jsonify(svc.get_task(task_id))

    @app.post("/api/tasks/<int:task_id>/cancel", endpoint="cancel_task")
    @login_required
    def cancel_task(task_id: int):
        svc.cancel_task(actor=current_actor(), task_id=task_id)
        return jsonify(svc.get_task(task_id))

    @app.delete("/api/tasks/<int:task_id>", endpoint="delete_task")
    @login_required
    def delete_task(task_id: int):
        svc.delete_task(actor=current_actor(), task_id=task_id)
        return jsonify({"ok": True})
