from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, enum_value, int_value, json_body, login_required
from ..container import Container
from ..core.enums import PartnerStatus, ServiceType
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    svc = container.partner_service

    @app.get("/api/partners", endpoint="list_partners")
    @login_required
    def list_partners():
        partners = svc.list_partners(
            status=enum_value(PartnerStatus, request.args.get("status"), "Status"),
            country=request.args.get("country"),
            service_type=enum_value(ServiceType, request.args.get("service_type"), "Service type"),
            search=request.args.get("q"),
            limit=int_value(request.args.get("limit"), "Limit") or 200,
        )
        return jsonify(partners)

    @app.get("/api/partners/<int:partner_id>", endpoint="get_partner")
    @login_required
    def get_partner(partner_id: int):
        return jsonify(svc.get_partner(partner_id))

    @app.post("/api/partners", endpoint="create_partner")
    @login_required
    def create_partner():
        data = dict(json_body())
        service_type = enum_value(ServiceType, data.pop("service_type", None), "Service type")
        if service_type is None:
            raise ValidationError("Service type is required")
        company_name = data.pop("company_name", "")
        partner_id = svc.create_partner(actor=current_actor(), company_name=company_name, service_type=service_type, **data)
        return jsonify(svc.get_partner(partner_id)), 201

    @app.patch("/api/partners/<int:partner_id>", endpoint="update_partner")
    @login_required
    def update_partner(partner_id: int):
        return jsonify(svc.update_partner(actor=current_actor(), partner_id=partner_id, changes=json_body()))

    @app.post("/api/partners/<int:partner_id>/archive", endpoint="archive_partner")
    @login_required
    def archive_partner(partner_id: int):
        svc.archive_partner(actor=current_actor(), partner_id=partner_id)
        return jsonify({"ok": True})

    @app.delete("/api/partners/<int:partner_id>", endpoint="delete_partner")
    @login_required
    def delete_partner(partner_id: int):
        svc.delete_partner(actor=current_actor(), partner_id=partner_id)
        return jsonify({"ok": True})

    @app.post("/api/partners/<int:partner_id>/restore", endpoint="restore_partner")
    @login_required
    def restore_partner(partner_id: int):
        svc.restore_partner(actor=current_actor(), partner_id=partner_id)
        return jsonify({"ok": True})
