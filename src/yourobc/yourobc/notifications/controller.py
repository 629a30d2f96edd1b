from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, int_value, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.notification_service

    @app.get("/api/notifications", endpoint="list_notifications")
    @login_required
    def list_notifications():
        notifications = svc.list_for_user(
            actor=current_actor(),
            unread_only=request.args.get("unread") in ("1", "true"),
            limit=int_value(request.args.get("limit"), "Limit") or 100,
        )
        return jsonify(notifications)

    @app.get("/api/notifications/unread-count", endpoint="unread_notification_count")
    @login_required
    def unread_count():
        return jsonify({"unread": svc.unread_count(actor=current_actor())})

    @app.post("/api/notifications/<int:notification_id>/read", endpoint="mark_notification_read")
    @login_required
    def mark_read(notification_id: int):
        svc.mark_read(actor=current_actor(), notification_id=notification_id)
        return jsonify({"ok": True})

    @app.post("/api/notifications/read-all", endpoint="mark_all_notifications_read")
    @login_required
    def mark_all_read():
        return jsonify({"updated": svc.mark_all_read(actor=current_actor())})
