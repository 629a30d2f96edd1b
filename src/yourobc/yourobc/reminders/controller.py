from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import current_actor, enum_value, int_value, json_body, login_required
from ..container import Container
from ..core.enums import Priority, Recurrence, ReminderStatus
from ..core.exceptions import ValidationError


def _datetime_value(value, field_name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date-time")


def register(app: Flask, container: Container) -> None:
    svc = container.reminder_service

    @app.get("/api/reminders", endpoint="list_reminders")
    @login_required
    def list_reminders():
        reminders = svc.list_reminders(
            actor=current_actor(),
            status=enum_value(ReminderStatus, request.args.get("status"), "Status"),
            entity_type=request.args.get("entity_type"),
            entity_id=int_value(request.args.get("entity_id"), "Entity"),
            limit=int_value(request.args.get("limit"), "Limit") or 200,
        )
        return jsonify(reminders)

    @app.get("/api/reminders/overdue", endpoint="list_overdue_reminders")
    @login_required
    def list_overdue():
        return jsonify(svc.list_overdue(actor=current_actor()))

    @app.get("/api/reminders/<int:reminder_id>", endpoint="get_reminder")
    @login_required
    def get_reminder(reminder_id: int):
        return jsonify(svc.get_reminder(reminder_id))

    @app.post("/api/reminders", endpoint="create_reminder")
    @login_required
    def create_reminder():
        data = json_body()
        due_date = _datetime_value(data.get("due_date"), "Due date")
        if due_date is None:
            raise ValidationError("Due date is required")
        reminder_id = svc.create_reminder(
            actor=current_actor(),
            title=data.get("title", ""),
            due_date=due_date,
            description=data.get("description"),
            reminder_date=_datetime_value(data.get("reminder_date"), "Reminder date"),
            entity_type=data.get("entity_type"),
            entity_id=int_value(data.get("entity_id"), "Entity"),
            assigned_to=int_value(data.get("assigned_to"), "Assignee"),
            priority=enum_value(Priority, data.get("priority"), "Priority") or Priority.MEDIUM,
            recurrence=enum_value(Recurrence, data.get("recurrence"), "Recurrence"),
            recurrence_interval=int_value(data.get("recurrence_interval"), "Recurrence interval") or 1,
        )
        return jsonify(svc.get_reminder(reminder_id)), 201

    @app.patch("/api/reminders/<int:reminder_id>", endpoint="update_reminder")
    @login_required
    def update_reminder(reminder_id: int):
        changes = dict(json_body())
        for field, label in (("due_date", "Due date"), ("reminder_date", "Reminder date")):
            if field in changes:
                changes[field] = _datetime_value(changes[field], label)
        if "priority" in changes:
            changes["priority"] = enum_value(Priority, changes["priority"], "Priority") or Priority.MEDIUM
        if "assigned_to" in changes:
            changes["assigned_to"] = int_value(changes["assigned_to"], "Assignee")
        return jsonify(svc.update_reminder(actor=current_actor(), reminder_id=reminder_id, changes=changes))

    @app.post("/api/reminders/<int:reminder_id>/complete", endpoint="complete_reminder")
    @login_required
    def complete_reminder(reminder_id: int):
        next_id = svc.complete_reminder(actor=current_actor(), reminder_id=reminder_id, notes=json_body().get("notes"))
        return jsonify({"ok": True, "next_reminder_id": next_id})

    @app.post("/api/reminders/<int:reminder_id>/snooze", endpoint="snooze_reminder")
    @login_required
    def snooze_reminder(reminder_id: int):
        until = _datetime_value(json_body().get("until"), "Snooze time")
        if until is None:
            raise ValidationError("Snooze time is required")
        svc.snooze_reminder(actor=current_actor(), reminder_id=reminder_id, until=until)
        return jsonify(svc.get_reminder(reminder_id))

    @app.post("/api/reminders/<int:reminder_id>/cancel", endpoint="cancel_reminder")
    @login_required
    def cancel_reminder(reminder_id: int):
        svc.cancel_reminder(actor=current_actor(), reminder_id=reminder_id)
        return jsonify({"ok": True})

    @app.delete("/api/reminders/<int:reminder_id>", endpoint="delete_reminder")
    @login_required
    def delete_reminder(reminder_id: int):
        svc.delete_reminder(actor=current_actor(), reminder_id=reminder_id)
        return jsonify({"ok": True})
