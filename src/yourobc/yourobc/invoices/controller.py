from __future__ import annotations

import dataclasses

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.http import current_actor, date_value, enum_value, int_value, json_body, login_required
from ..container import Container
from ..core.enums import CollectionMethod, InvoiceStatus, InvoiceType, PaymentMethod
from ..core.exceptions import ValidationError
from . import calculations


def _invoice_json(invoice) -> dict:
    today = now_local().date()
    data = dataclasses.asdict(invoice)
    data["outstanding_amount"] = invoice.outstanding_amount
    data["is_overdue"] = calculations.is_overdue(invoice, today)
    data["days_overdue"] = calculations.days_overdue(invoice, today)
    return data


def register(app: Flask, container: Container) -> None:
    svc = container.invoice_service

    @app.get("/api/invoices", endpoint="list_invoices")
    @login_required
    def list_invoices():
        invoices = svc.list_invoices(
            status=enum_value(InvoiceStatus, request.args.get("status"), "Status"),
            owner_id=int_value(request.args.get("owner_id"), "Owner"),
            customer_id=int_value(request.args.get("customer_id"), "Customer"),
            overdue_only=request.args.get("overdue") in ("1", "true"),
            limit=int_value(request.args.get("limit"), "Limit") or 200,
        )
        return jsonify([_invoice_json(i) for i in invoices])

    @app.get("/api/invoices/<int:invoice_id>", endpoint="get_invoice")
    @login_required
    def get_invoice(invoice_id: int):
        return jsonify(_invoice_json(svc.get_invoice(invoice_id)))

    @app.post("/api/invoices", endpoint="create_invoice")
    @login_required
    def create_invoice():
        data = json_body()
        invoice_type = enum_value(InvoiceType, data.get("invoice_type", InvoiceType.OUTGOING.value), "Invoice type")
        issue_date = date_value(data.get("issue_date"), "Issue date")
        if issue_date is None:
            raise ValidationError("Issue date is required")

        invoice_id = svc.create_invoice(
            actor=current_actor(),
            invoice_type=invoice_type,
            issue_date=issue_date,
            line_items=data.get("line_items") or [],
            tax_rate=data.get("tax_rate", 0),
            currency=data.get("currency", "EUR"),
            exchange_rate=data.get("exchange_rate", 1),
            customer_id=int_value(data.get("customer_id"), "Customer"),
            partner_id=int_value(data.get("partner_id"), "Partner"),
            shipment_id=int_value(data.get("shipment_id"), "Shipment"),
            due_date=date_value(data.get("due_date"), "Due date"),
            payment_terms=int_value(data.get("payment_terms"), "Payment terms"),
            invoice_number=data.get("invoice_number"),
            description=data.get("description"),
            notes=data.get("notes"),
        )
        return jsonify(_invoice_json(svc.get_invoice(invoice_id))), 201

    @app.patch("/api/invoices/<int:invoice_id>", endpoint="update_invoice")
    @login_required
    def update_invoice(invoice_id: int):
        changes = dict(json_body())
        if "due_date" in changes:
            changes["due_date"] = date_value(changes["due_date"], "Due date")
        invoice = svc.update_invoice(actor=current_actor(), invoice_id=invoice_id, changes=changes)
        return jsonify(_invoice_json(invoice))

    @app.post("/api/invoices/<int:invoice_id>/send", endpoint="send_invoice")
    @login_required
    def send_invoice(invoice_id: int):
        svc.send_invoice(actor=current_actor(), invoice_id=invoice_id)
        return jsonify({"ok": True})

    @app.post("/api/invoices/<int:invoice_id>/payments", endpoint="record_invoice_payment")
    @login_required
    def record_payment(invoice_id: int):
        data = json_body()
        method = enum_value(PaymentMethod, data.get("method"), "Payment method") or PaymentMethod.BANK_TRANSFER
        invoice = svc.record_payment(
            actor=current_actor(),
            invoice_id=invoice_id,
            amount=data.get("amount"),
            method=method,
            reference=data.get("reference"),
            paid_on=date_value(data.get("paid_on"), "Paid on"),
        )
        return jsonify(_invoice_json(invoice))

    @app.post("/api/invoices/<int:invoice_id>/cancel", endpoint="cancel_invoice")
    @login_required
    def cancel_invoice(invoice_id: int):
        svc.cancel_invoice(actor=current_actor(), invoice_id=invoice_id, reason=json_body().get("reason"))
        return jsonify({"ok": True})

    @app.post("/api/invoices/<int:invoice_id>/collection-attempts", endpoint="add_collection_attempt")
    @login_required
    def add_collection_attempt(invoice_id: int):
        data = json_body()
        method = enum_value(CollectionMethod, data.get("method"), "Collection method")
        if method is None:
            raise ValidationError("Collection method is required")
        invoice = svc.add_collection_attempt(
            actor=current_actor(),
            invoice_id=invoice_id,
            method=method,
            result=data.get("result", ""),
            note=data.get("note"),
        )
        return jsonify(_invoice_json(invoice))

    @app.delete("/api/invoices/<int:invoice_id>", endpoint="delete_invoice")
    @login_required
    def delete_invoice(invoice_id: int):
        svc.delete_invoice(actor=current_actor(), invoice_id=invoice_id)
        return jsonify({"ok": True})

    @app.post("/api/invoices/<int:invoice_id>/restore", endpoint="restore_invoice")
    @login_required
    def restore_invoice(invoice_id: int):
        svc.restore_invoice(actor=current_actor(), invoice_id=invoice_id)
        return jsonify({"ok": True})
