from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, int_value, json_body, login_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    svc = container.comment_service

    @app.get("/api/comments", endpoint="list_comments")
    @login_required
    def list_thread():
        entity_type = request.args.get("entity_type")
        entity_id = int_value(request.args.get("entity_id"), "Entity")
        if not entity_type or entity_id is None:
            raise ValidationError("entity_type and entity_id are required")
        return jsonify(svc.list_thread(entity_type=entity_type, entity_id=entity_id))

    @app.post("/api/comments", endpoint="add_comment")
    @login_required
    def add_comment():
        data = json_body()
        entity_id = int_value(data.get("entity_id"), "Entity")
        if entity_id is None:
            raise ValidationError("Entity is required")
        comment_id = svc.add_comment(
            actor=current_actor(),
            entity_type=data.get("entity_type", ""),
            entity_id=entity_id,
            content=data.get("content", ""),
            parent_id=int_value(data.get("parent_id"), "Parent"),
            is_internal=bool(data.get("is_internal", False)),
        )
        return jsonify(svc.get_comment(comment_id)), 201

    @app.patch("/api/comments/<int:comment_id>", endpoint="edit_comment")
    @login_required
    def edit_comment(comment_id: int):
        return jsonify(svc.edit_comment(actor=current_actor(), comment_id=comment_id, content=json_body().get("content", "")))

    @app.delete("/api/comments/<int:comment_id>", endpoint="delete_comment")
    @login_required
    def delete_comment(comment_id: int):
        svc.delete_comment(actor=current_actor(), comment_id=comment_id)
        return jsonify({"ok": True})
