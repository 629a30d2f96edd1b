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
from ..core.enums import CommissionStatus, CommissionType, Currency, PaymentMethod
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    svc = container.commission_service

    @app.get("/api/commission-rules", endpoint="list_commission_rules")
    @login_required
    def list_rules():
        rules = svc.list_rules(
            active_only=request.args.get("active") in ("1", "true"),
            employee_id=int_value(request.args.get("employee_id"), "Employee"),
        )
        return jsonify(rules)

    @app.post("/api/commission-rules", endpoint="create_commission_rule")
    @manager_required
    def create_rule():
        data = json_body()
        commission_type = enum_value(CommissionType, data.get("commission_type"), "Commission type")
        if commission_type is None:
            raise ValidationError("Commission type is required")
        rule_id = svc.create_rule(
            actor=current_actor(),
            name=data.get("name", ""),
            commission_type=commission_type,
            rate=data.get("rate"),
            tiers=data.get("tiers"),
            employee_id=int_value(data.get("employee_id"), "Employee"),
            auto_approve=bool(data.get("auto_approve", False)),
            is_active=bool(data.get("is_active", True)),
            effective_from=date_value(data.get("effective_from"), "Effective from"),
            effective_to=date_value(data.get("effective_to"), "Effective to"),
            description=data.get("description"),
        )
        return jsonify(svc.get_rule(rule_id)), 201

    @app.patch("/api/commission-rules/<int:rule_id>", endpoint="update_commission_rule")
    @manager_required
    def update_rule(rule_id: int):
        changes = dict(json_body())
        for field in ("effective_from", "effective_to"):
            if field in changes:
                changes[field] = date_value(changes[field], field.replace("_", " ").capitalize())
        return jsonify(svc.update_rule(actor=current_actor(), rule_id=rule_id, changes=changes))

    @app.delete("/api/commission-rules/<int:rule_id>", endpoint="delete_commission_rule")
    @manager_required
    def delete_rule(rule_id: int):
        svc.delete_rule(actor=current_actor(), rule_id=rule_id)
        return jsonify({"ok": True})

    @app.post("/api/commission-rules/<int:rule_id>/preview", endpoint="preview_commission")
    @login_required
    def preview(rule_id: int):
        data = json_body()
        amount = svc.preview(rule_id=rule_id, base_amount=data.get("base_amount"), margin=data.get("margin"))
        return jsonify({"amount": amount})

    @app.get("/api/commissions", endpoint="list_commissions")
    @login_required
    def list_commissions():
        commissions = svc.list_commissions(
            employee_id=int_value(request.args.get("employee_id"), "Employee"),
            status=enum_value(CommissionStatus, request.args.get("status"), "Status"),
        )
        return jsonify(commissions)

    @app.post("/api/commissions", endpoint="create_commission")
    @manager_required
    def create_commission():
        data = json_body()
        employee_id = int_value(data.get("employee_id"), "Employee")
        rule_id = int_value(data.get("rule_id"), "Rule")
        if employee_id is None or rule_id is None:
            raise ValidationError("Employee and rule are required")
        commission_id = svc.create_commission(
            actor=current_actor(),
            employee_id=employee_id,
            rule_id=rule_id,
            base_amount=data.get("base_amount"),
            margin=data.get("margin"),
            currency=enum_value(Currency, data.get("currency"), "Currency") or Currency.EUR,
            invoice_id=int_value(data.get("invoice_id"), "Invoice"),
            quote_id=int_value(data.get("quote_id"), "Quote"),
            description=data.get("description"),
        )
        return jsonify(svc.get_commission(commission_id)), 201

    @app.post("/api/commissions/<int:commission_id>/approve", endpoint="approve_commission")
    @manager_required
    def approve(commission_id: int):
        svc.approve_commission(actor=current_actor(), commission_id=commission_id)
        return jsonify(svc.get_commission(commission_id))

    @app.post("/api/commissions/<int:commission_id>/pay", endpoint="pay_commission")
    @admin_required
    def pay(commission_id: int):
        data = json_body()
        svc.pay_commission(
            actor=current_actor(),
            commission_id=commission_id,
            payment_reference=data.get("payment_reference", ""),
            payment_method=enum_value(PaymentMethod, data.get("payment_method"), "Payment method")
            or PaymentMethod.BANK_TRANSFER,
        )
        return jsonify(svc.get_commission(commission_id))

    @app.post("/api/commissions/<int:commission_id>/cancel", endpoint="cancel_commission")
    @login_required
    def cancel(commission_id: int):
        svc.cancel_commission(actor=current_actor(), commission_id=commission_id, reason=json_body().get("reason"))
        return jsonify({"ok": True})

    @app.post("/api/commissions/<int:commission_id>/recalculate", endpoint="recalculate_commission")
    @login_required
    def recalculate(commission_id: int):
        return jsonify(svc.recalculate_commission(actor=current_actor(), commission_id=commission_id))

    @app.get("/api/employees/<int:employee_id>/commission-summary", endpoint="commission_summary")
    @login_required
    def summary(employee_id: int):
        return jsonify(svc.employee_summary(employee_id=employee_id))
