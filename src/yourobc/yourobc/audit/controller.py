from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import int_value, manager_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    audit = container.audit_repo

    @app.get("/api/audit", endpoint="list_audit_entries")
    @manager_required
    def list_for_entity():
        entity_type = request.args.get("entity_type")
        entity_id = int_value(request.args.get("entity_id"), "Entity")
        if not entity_type or entity_id is None:
            raise ValidationError("entity_type and entity_id are required")
        limit = int_value(request.args.get("limit"), "Limit") or 100
        return jsonify(audit.list_for_entity(entity_type=entity_type, entity_id=entity_id, limit=limit))
