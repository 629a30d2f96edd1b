from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.permissions import Actor, require_admin, require_edit, require_manager
from ..common.validators import optional_text, require_decimal, require_max_length, require_non_empty, require_range
from ..core.enums import CommissionStatus, CommissionType, Currency, InvoiceStatus, PaymentMethod
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..invoices.repository import InvoiceRepository
from .factory import CommissionStrategyFactory
from .model import Commission, CommissionRule, CommissionSummary, CommissionTier
from .repository import CommissionRepository, CommissionRuleRepository

logger = logging.getLogger(__name__)

_ENTITY = "commission"
_RULE_ENTITY = "commission_rule"
_RULE_FIELDS = ("name", "rate", "tiers", "employee_id", "auto_approve", "is_active", "effective_from", "effective_to", "description")


def parse_tiers(raw: Optional[Iterable[Mapping[str, Any]]]) -> tuple[CommissionTier, ...]:
    tiers: list[CommissionTier] = []
    for index, item in enumerate(raw or [], start=1):
        if not isinstance(item, Mapping):
            raise ValidationError(f"Tier {index} must be an object")
        min_amount = require_decimal(item.get("min_amount", 0), f"Tier {index} minimum")
        max_raw = item.get("max_amount")
        max_amount = None if max_raw is None else require_decimal(max_raw, f"Tier {index} maximum")
        rate = require_range(item.get("rate"), f"Tier {index} rate", 0, 100)
        if min_amount < 0:
            raise ValidationError(f"Tier {index} minimum cannot be negative")
        if max_amount is not None and max_amount < min_amount:
            raise ValidationError(f"Tier {index} maximum must not be below its minimum")
        tiers.append(CommissionTier(min_amount=min_amount, rate=rate, max_amount=max_amount))
    return tuple(sorted(tiers, key=lambda t: t.min_amount))


def validate_rule(commission_type: CommissionType, rate, tiers: tuple[CommissionTier, ...]) -> Decimal:
    if commission_type == CommissionType.FIXED_AMOUNT:
        value = require_decimal(rate, "Amount")
        if value < 0:
            raise ValidationError("Amount cannot be negative")
        return value
    if commission_type == CommissionType.TIERED:
        if not tiers:
            raise ValidationError("Tiered rules need at least one tier")
        return require_decimal(rate or 0, "Rate")
    return require_range(rate, "Rate", 0, 100)


class CommissionService:
    def __init__(
        self,
        rules: CommissionRuleRepository,
        commissions: CommissionRepository,
        employees: EmployeeRepository,
        *,
        invoices: Optional[InvoiceRepository] = None,
        factory: Optional[CommissionStrategyFactory] = None,
        audit: Optional[AuditLogRepository] = None,
    ):
        self._rules = rules
        self._commissions = commissions
        self._employees = employees
        self._invoices = invoices
        self._factory = factory or CommissionStrategyFactory()
        self._audit = audit

    # -------- Rules --------
    def get_rule(self, rule_id: int) -> CommissionRule:
        rule = self._rules.get(int(rule_id))
        if not rule:
            raise NotFoundError("Commission rule not found")
        return rule

    def list_rules(self, *, active_only: bool = False, employee_id: Optional[int] = None) -> Sequence[CommissionRule]:
        return self._rules.list_rules(active_only=active_only, employee_id=employee_id)

    def _check_dates(self, effective_from: Optional[date], effective_to: Optional[date]) -> None:
        if effective_from and effective_to and effective_to < effective_from:
            raise ValidationError("Effective end cannot be before effective start")

    def create_rule(
        self,
        *,
        actor: Actor,
        name: str,
        commission_type: CommissionType,
        rate,
        tiers=None,
        employee_id: Optional[int] = None,
        auto_approve: bool = False,
        is_active: bool = True,
        effective_from: Optional[date] = None,
        effective_to: Optional[date] = None,
        description: Optional[str] = None,
    ) -> int:
        require_manager(actor)
        parsed_tiers = parse_tiers(tiers)
        value = validate_rule(commission_type, rate, parsed_tiers)
        self._check_dates(effective_from, effective_to)
        if employee_id is not None and not self._employees.get(int(employee_id)):
            raise NotFoundError("Employee not found")

        rule_id = self._rules.create(
            owner_id=actor.user_id,
            values={
                "name": require_max_length(require_non_empty(name, "Name"), "Name", 100),
                "commission_type": commission_type,
                "rate": value,
                "tiers": list(parsed_tiers),
                "employee_id": employee_id,
                "auto_approve": bool(auto_approve),
                "is_active": bool(is_active),
                "effective_from": effective_from,
                "effective_to": effective_to,
                "description": optional_text(description),
            },
        )
        trail.record(
            self._audit,
            actor,
            action="commission_rule.created",
            entity_type=_RULE_ENTITY,
            entity_id=rule_id,
            description=f"Created rule {name} ({commission_type.value})",
        )
        return rule_id

    def update_rule(self, *, actor: Actor, rule_id: int, changes: Mapping[str, Any]) -> CommissionRule:
        rule = self.get_rule(rule_id)
        require_edit(actor, rule.owner_id)
        unknown = set(changes) - set(_RULE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = dict(changes)
        if "name" in patch:
            patch["name"] = require_max_length(require_non_empty(patch["name"], "Name"), "Name", 100)
        tiers = parse_tiers(patch["tiers"]) if "tiers" in patch else rule.tiers
        patch_rate = validate_rule(rule.commission_type, patch.get("rate", rule.rate), tiers)
        if "rate" in patch:
            patch["rate"] = patch_rate
        if "tiers" in patch:
            patch["tiers"] = list(tiers)
        self._check_dates(patch.get("effective_from", rule.effective_from), patch.get("effective_to", rule.effective_to))
        if "description" in patch:
            patch["description"] = optional_text(patch["description"])
        for flag in ("auto_approve", "is_active"):
            if flag in patch:
                patch[flag] = bool(patch[flag])

        if patch and not self._rules.update(rule.rule_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating rule failed")
        trail.record(
            self._audit,
            actor,
            action="commission_rule.updated",
            entity_type=_RULE_ENTITY,
            entity_id=rule.rule_id,
            description=f"Updated rule {rule.name}",
        )
        return self.get_rule(rule.rule_id)

    def delete_rule(self, *, actor: Actor, rule_id: int) -> None:
        rule = self.get_rule(rule_id)
        require_edit(actor, rule.owner_id)
        if self._commissions.count_for_rule(rule.rule_id) > 0:
            raise ConflictError("Rule has commissions. Deactivate instead")
        if not self._rules.soft_delete(rule.rule_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting rule failed")
        trail.record(
            self._audit,
            actor,
            action="commission_rule.deleted",
            entity_type=_RULE_ENTITY,
            entity_id=rule.rule_id,
            description=f"Deleted rule {rule.name}",
        )

    def calculate_commission(self, *, rule: CommissionRule, base_amount, margin=None) -> Decimal:
        base = require_decimal(base_amount, "Base amount")
        if base < 0:
            raise ValidationError("Base amount cannot be negative")
        margin_value = None if margin is None else require_decimal(margin, "Margin")
        strategy = self._factory.for_type(rule.commission_type)
        return strategy.calculate(rule=rule, base_amount=base, margin=margin_value)

    def preview(self, *, rule_id: int, base_amount, margin=None) -> Decimal:
        return self.calculate_commission(rule=self.get_rule(rule_id), base_amount=base_amount, margin=margin)

    # -------- Commissions --------
    def get_commission(self, commission_id: int) -> Commission:
        commission = self._commissions.get(int(commission_id))
        if not commission:
            raise NotFoundError("Commission not found")
        return commission

    def list_commissions(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[CommissionStatus] = None,
        limit: int = 200,
    ) -> Sequence[Commission]:
        return self._commissions.list_commissions(employee_id=employee_id, status=status, limit=limit)

    def _invoice_paid(self, invoice_id: Optional[int]) -> bool:
        if invoice_id is None or self._invoices is None:
            return False
        invoice = self._invoices.get(int(invoice_id))
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice.status == InvoiceStatus.PAID

    def create_commission(
        self,
        *,
        actor: Actor,
        employee_id: int,
        rule_id: int,
        base_amount,
        margin=None,
        currency: Currency = Currency.EUR,
        invoice_id: Optional[int] = None,
        quote_id: Optional[int] = None,
        description: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        require_manager(actor)
        today = today or now_local().date()
        if not self._employees.get(int(employee_id)):
            raise NotFoundError("Employee not found")
        rule = self.get_rule(rule_id)
        if not rule.is_active:
            raise ValidationError("Commission rule is inactive")
        if not rule.is_effective(today):
            raise ValidationError("Commission rule is not effective on this date")
        if rule.employee_id is not None and rule.employee_id != int(employee_id):
            raise ValidationError("Commission rule does not apply to this employee")

        amount = self.calculate_commission(rule=rule, base_amount=base_amount, margin=margin)
        status = CommissionStatus.PENDING
        if rule.auto_approve and self._invoice_paid(invoice_id):
            status = CommissionStatus.APPROVED

        values: dict[str, Any] = {
            "employee_id": int(employee_id),
            "rule_id": rule.rule_id,
            "invoice_id": invoice_id,
            "quote_id": quote_id,
            "base_amount": require_decimal(base_amount, "Base amount"),
            "margin": None if margin is None else require_decimal(margin, "Margin"),
            "rate": rule.rate,
            "commission_type": rule.commission_type,
            "amount": amount,
            "currency": currency,
            "status": status,
            "description": optional_text(description),
        }
        if status == CommissionStatus.APPROVED:
            values["approved_by"] = actor.user_id
            values["approved_at"] = now_local()

        commission_id = self._commissions.create(owner_id=actor.user_id, values=values)
        trail.record(
            self._audit,
            actor,
            action="commission.created",
            entity_type=_ENTITY,
            entity_id=commission_id,
            description=f"{amount} {currency.value} for employee {employee_id} ({status.value})",
        )
        return commission_id

    def _transition(
        self,
        actor: Actor,
        commission: Commission,
        *,
        from_status: CommissionStatus,
        changes: Mapping[str, Any],
        action: str,
        description: str,
    ) -> None:
        if not self._commissions.transition(
            commission.commission_id,
            from_status=from_status,
            changes=changes,
            updated_by=actor.user_id,
        ):
            raise ConflictError("Commission was changed concurrently")
        trail.record(
            self._audit,
            actor,
            action=action,
            entity_type=_ENTITY,
            entity_id=commission.commission_id,
            description=description,
        )

    def approve_commission(self, *, actor: Actor, commission_id: int, now: Optional[datetime] = None) -> None:
        require_manager(actor)
        commission = self.get_commission(commission_id)
        if commission.status != CommissionStatus.PENDING:
            raise ValidationError("Only pending commissions can be approved")
        self._transition(
            actor,
            commission,
            from_status=CommissionStatus.PENDING,
            changes={
                "status": CommissionStatus.APPROVED,
                "approved_by": actor.user_id,
                "approved_at": now or now_local(),
            },
            action="commission.approved",
            description=f"Approved {commission.amount} {commission.currency.value}",
        )

    def pay_commission(
        self,
        *,
        actor: Actor,
        commission_id: int,
        payment_reference: str,
        payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER,
        now: Optional[datetime] = None,
    ) -> None:
        require_admin(actor)
        commission = self.get_commission(commission_id)
        if commission.status != CommissionStatus.APPROVED:
            raise ValidationError("Only approved commissions can be paid")
        reference = require_max_length(require_non_empty(payment_reference, "Payment reference"), "Payment reference", 100)
        self._transition(
            actor,
            commission,
            from_status=CommissionStatus.APPROVED,
            changes={
                "status": CommissionStatus.PAID,
                "paid_at": now or now_local(),
                "payment_method": payment_method,
                "payment_reference": reference,
            },
            action="commission.paid",
            description=f"Paid {commission.amount} {commission.currency.value} ({reference})",
        )

    def cancel_commission(self, *, actor: Actor, commission_id: int, reason: Optional[str] = None) -> None:
        commission = self.get_commission(commission_id)
        require_edit(actor, commission.owner_id)
        if commission.status == CommissionStatus.PAID:
            raise ValidationError("Paid commissions cannot be cancelled")
        if commission.status == CommissionStatus.CANCELLED:
            raise ValidationError("Commission is already cancelled")
        self._transition(
            actor,
            commission,
            from_status=commission.status,
            changes={"status": CommissionStatus.CANCELLED, "cancellation_reason": optional_text(reason)},
            action="commission.cancelled",
            description=f"Cancelled: {optional_text(reason) or '-'}",
        )

    def recalculate_commission(self, *, actor: Actor, commission_id: int) -> Commission:
        commission = self.get_commission(commission_id)
        require_edit(actor, commission.owner_id)
        if commission.status != CommissionStatus.PENDING:
            raise ValidationError("Only pending commissions can be recalculated")
        rule = self.get_rule(commission.rule_id)
        amount = self.calculate_commission(rule=rule, base_amount=commission.base_amount, margin=commission.margin)
        self._transition(
            actor,
            commission,
            from_status=CommissionStatus.PENDING,
            changes={"amount": amount, "rate": rule.rate, "commission_type": rule.commission_type},
            action="commission.recalculated",
            description=f"{commission.amount} -> {amount}",
        )
        return replace(commission, amount=amount, rate=rule.rate, commission_type=rule.commission_type)

    def employee_summary(self, *, employee_id: int) -> CommissionSummary:
        if not self._employees.get(int(employee_id)):
            raise NotFoundError("Employee not found")
        return self._commissions.summary(employee_id=int(employee_id))
