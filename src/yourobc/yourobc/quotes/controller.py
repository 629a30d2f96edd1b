from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, date_value, enum_value, int_value, json_body, login_required
from ..container import Container
from ..core.enums import Currency, QuoteStatus
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    svc = container.quote_service

    @app.get("/api/quotes", endpoint="list_quotes")
    @login_required
    def list_quotes():
        quotes = svc.list_quotes(
            status=enum_value(QuoteStatus, request.args.get("status"), "Status"),
            owner_id=int_value(request.args.get("owner_id"), "Owner"),
            customer_id=int_value(request.args.get("customer_id"), "Customer"),
            search=request.args.get("q"),
            limit=int_value(request.args.get("limit"), "Limit") or 200,
        )
        return jsonify(quotes)

    @app.get("/api/quotes/<int:quote_id>", endpoint="get_quote")
    @login_required
    def get_quote(quote_id: int):
        return jsonify(svc.get_quote(quote_id))

    @app.post("/api/quotes", endpoint="create_quote")
    @login_required
    def create_quote():
        data = json_body()
        deadline = date_value(data.get("deadline"), "Deadline")
        valid_until = date_value(data.get("valid_until"), "Valid until")
        if deadline is None or valid_until is None:
            raise ValidationError("Deadline and valid until dates are required")
        quote_id = svc.create_quote(
            actor=current_actor(),
            deadline=deadline,
            valid_until=valid_until,
            base_cost=data.get("base_cost"),
            markup_percentage=data.get("markup_percentage", 0),
            currency=enum_value(Currency, data.get("currency"), "Currency") or Currency.EUR,
            customer_id=int_value(data.get("customer_id"), "Customer"),
            customer_reference=data.get("customer_reference"),
            description=data.get("description"),
            incoterms=data.get("incoterms"),
            tags=data.get("tags"),
        )
        return jsonify(svc.get_quote(quote_id)), 201

    @app.patch("/api/quotes/<int:quote_id>", endpoint="update_quote")
    @login_required
    def update_quote(quote_id: int):
        changes = dict(json_body())
        for field in ("deadline", "valid_until"):
            if field in changes:
                changes[field] = date_value(changes[field], field.replace("_", " ").capitalize())
                if changes[field] is None:
                    raise ValidationError(f"{field.replace('_', ' ').capitalize()} cannot be empty")
        if "currency" in changes:
            changes["currency"] = enum_value(Currency, changes["currency"], "Currency") or Currency.EUR
        return jsonify(svc.update_quote(actor=current_actor(), quote_id=quote_id, changes=changes))

    @app.post("/api/quotes/<int:quote_id>/send", endpoint="send_quote")
    @login_required
    def send_quote(quote_id: int):
        svc.send_quote(actor=current_actor(), quote_id=quote_id)
        return jsonify(svc.get_quote(quote_id))

    @app.post("/api/quotes/<int:quote_id>/accept", endpoint="accept_quote")
    @login_required
    def accept_quote(quote_id: int):
        svc.accept_quote(actor=current_actor(), quote_id=quote_id)
        return jsonify(svc.get_quote(quote_id))

    @app.post("/api/quotes/<int:quote_id>/reject", endpoint="reject_quote")
    @login_required
    def reject_quote(quote_id: int):
        svc.reject_quote(actor=current_actor(), quote_id=quote_id, reason=json_body().get("reason", ""))
        return jsonify(svc.get_quote(quote_id))

    @app.post("/api/quotes/<int:quote_id>/convert", endpoint="convert_quote")
    @login_required
    def convert_quote(quote_id: int):
        shipment_id = int_value(json_body().get("shipment_id"), "Shipment")
        if shipment_id is None:
            raise ValidationError("Shipment is required")
        svc.convert_to_shipment(actor=current_actor(), quote_id=quote_id, shipment_id=shipment_id)
        return jsonify(svc.get_quote(quote_id))

    @app.delete("/api/quotes/<int:quote_id>", endpoint="delete_quote")
    @login_required
    def delete_quote(quote_id: int):
        svc.delete_quote(actor=current_actor(), quote_id=quote_id)
        return jsonify({"ok": True})

    @app.post("/api/quotes/<int:quote_id>/restore", endpoint="restore_quote")
    @login_required
    def restore_quote(quote_id: int):
        svc.restore_quote(actor=current_actor(), quote_id=quote_id)
        return jsonify({"ok": True})
