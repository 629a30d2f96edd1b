from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, enum_value, int_value, json_body, login_required
from ..container import Container
from ..core.enums import PartnerStatus, ServiceType


def register(app: Flask, container: Container) -> None:
    svc = container.courier_service

    @app.get("/api/couriers", endpoint="list_couriers")
    @login_required
    def list_couriers():
        couriers = svc.list_couriers(
            status=enum_value(PartnerStatus, request.args.get("status"), "Status"),
            country=request.args.get("country"),
            service_type=enum_value(ServiceType, request.args.get("service_type"), "Service type"),
            search=request.args.get("q"),
            limit=int_value(request.args.get("limit"), "Limit") or 200,
        )
        return jsonify(couriers)

    @app.get("/api/couriers/<int:courier_id>", endpoint="get_courier")
    @login_required
    def get_courier(courier_id: int):
        return jsonify(svc.get_courier(courier_id))

    @app.post("/api/couriers", endpoint="create_courier")
    @login_required
    def create_courier():
        data = dict(json_body())
        name = data.pop("name", "")
        courier_id = svc.create_courier(actor=current_actor(), name=name, **data)
        return jsonify(svc.get_courier(courier_id)), 201

    @app.patch("/api/couriers/<int:courier_id>", endpoint="update_courier")
    @login_required
    def update_courier(courier_id: int):
        return jsonify(svc.update_courier(actor=current_actor(), courier_id=courier_id, changes=json_body()))

    @app.post("/api/couriers/<int:courier_id>/archive", endpoint="archive_courier")
    @login_required
    def archive_courier(courier_id: int):
        svc.archive_courier(actor=current_actor(), courier_id=courier_id)
        return jsonify({"ok": True})

    @app.delete("/api/couriers/<int:courier_id>", endpoint="delete_courier")
    @login_required
    def delete_courier(courier_id: int):
        svc.delete_courier(actor=current_actor(), courier_id=courier_id)
        return jsonify({"ok": True})

    @app.post("/api/couriers/<int:courier_id>/restore", endpoint="restore_courier")
    @login_required
    def restore_courier(courier_id: int):
        svc.restore_courier(actor=current_actor(), courier_id=courier_id)
        return jsonify({"ok": True})
