from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from src.yourobc.yourobc.commissions.model import Commission, CommissionRule, CommissionSummary
from src.yourobc.yourobc.commissions.service import CommissionService
from src.yourobc.yourobc.core.enums import CommissionStatus, CommissionType, InvoiceStatus
from src.yourobc.yourobc.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError


class FakeEmployees:
    def __init__(self, *employee_ids):
        self.ids = set(employee_ids)

    def get(self, employee_id, *, include_deleted=False):
        return object() if int(employee_id) in self.ids else None


class FakeInvoice:
    def __init__(self, status):
        self.status = status


class FakeInvoices:
    def __init__(self, rows):
        self.rows = rows

    def get(self, invoice_id, *, include_deleted=False):
        return self.rows.get(int(invoice_id))


class FakeRules:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, CommissionRule] = {}

    def create(self, *, owner_id, values):
        rule_id = self._next_id
        self._next_id += 1
        values = dict(values, tiers=tuple(values["tiers"]))
        self.rows[rule_id] = CommissionRule(rule_id=rule_id, public_id=f"rule-{rule_id}", owner_id=owner_id, **values)
        return rule_id

    def get(self, rule_id):
        return self.rows.get(int(rule_id))

    def list_rules(self, *, active_only=False, employee_id=None):
        return [r for r in self.rows.values() if r.is_active or not active_only]

    def update(self, rule_id, *, changes, updated_by):
        changes = dict(changes)
        if "tiers" in changes:
            changes["tiers"] = tuple(changes["tiers"])
        self.rows[rule_id] = replace(self.rows[rule_id], **changes)
        return True

    def soft_delete(self, rule_id, *, deleted_by):
        return self.rows.pop(int(rule_id), None) is not None


class FakeCommissions:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Commission] = {}

    def create(self, *, owner_id, values):
        commission_id = self._next_id
        self._next_id += 1
        self.rows[commission_id] = Commission(
            commission_id=commission_id, public_id=f"com-{commission_id}", owner_id=owner_id, **values
        )
        return commission_id

    def get(self, commission_id):
        return self.rows.get(int(commission_id))

    def list_commissions(self, *, employee_id=None, status=None, limit=200):
        return list(self.rows.values())

    def update(self, commission_id, *, changes, updated_by):
        self.rows[commission_id] = replace(self.rows[commission_id], **changes)
        return True

    def transition(self, commission_id, *, from_status, changes, updated_by):
        commission = self.rows[commission_id]
        if commission.status != from_status:
            return False
        self.rows[commission_id] = replace(commission, **changes)
        return True

    def count_for_rule(self, rule_id):
        return sum(1 for c in self.rows.values() if c.rule_id == rule_id)

    def summary(self, *, employee_id):
        rows = [c for c in self.rows.values() if c.employee_id == employee_id]
        return CommissionSummary(employee_id=employee_id, count=len(rows))


TODAY = date(2026, 10, 15)


@pytest.fixture
def rules():
    return FakeRules()


@pytest.fixture
def commissions():
    return FakeCommissions()


@pytest.fixture
def svc(rules, commissions, audit):
    invoices = FakeInvoices({10: FakeInvoice(InvoiceStatus.PAID), 11: FakeInvoice(InvoiceStatus.SENT)})
    return CommissionService(rules, commissions, FakeEmployees(1, 2), invoices=invoices, audit=audit)


def _revenue_rule(svc, actor, **overrides):
    kwargs = dict(actor=actor, name="Sales 5%", commission_type=CommissionType.REVENUE_PERCENTAGE, rate="5")
    kwargs.update(overrides)
    return svc.create_rule(**kwargs)


def _commission(svc, actor, rule_id, **overrides):
    kwargs = dict(actor=actor, employee_id=1, rule_id=rule_id, base_amount="2000", today=TODAY)
    kwargs.update(overrides)
    return svc.create_commission(**kwargs)


def test_create_commission_is_pending_by_default(svc, manager, audit):
    rule_id = _revenue_rule(svc, manager)
    commission = svc.get_commission(_commission(svc, manager, rule_id))

    assert commission.amount == Decimal("100.00")
    assert commission.status == CommissionStatus.PENDING
    assert audit.actions() == ["commission_rule.created", "commission.created"]


def test_auto_approve_requires_paid_invoice(svc, manager):
    rule_id = _revenue_rule(svc, manager, auto_approve=True)

    paid = svc.get_commission(_commission(svc, manager, rule_id, invoice_id=10))
    unpaid = svc.get_commission(_commission(svc, manager, rule_id, invoice_id=11))

    assert paid.status == CommissionStatus.APPROVED
    assert paid.approved_by == manager.user_id
    assert unpaid.status == CommissionStatus.PENDING


def test_rule_must_be_active_effective_and_applicable(svc, manager):
    inactive = _revenue_rule(svc, manager, is_active=False)
    expired = _revenue_rule(svc, manager, effective_from=date(2025, 1, 1), effective_to=date(2025, 12, 31))
    personal = _revenue_rule(svc, manager, employee_id=2)

    with pytest.raises(ValidationError, match="inactive"):
        _commission(svc, manager, inactive)
    with pytest.raises(ValidationError, match="not effective"):
        _commission(svc, manager, expired)
    with pytest.raises(ValidationError, match="does not apply"):
        _commission(svc, manager, personal)
    assert _commission(svc, manager, personal, employee_id=2)


def test_rule_dates_and_employee_are_checked(svc, manager, staff):
    with pytest.raises(AuthorizationError):
        _revenue_rule(svc, staff)
    with pytest.raises(ValidationError):
        _revenue_rule(svc, manager, effective_from=date(2026, 2, 1), effective_to=date(2026, 1, 1))
    with pytest.raises(NotFoundError):
        _revenue_rule(svc, manager, employee_id=99)


def test_lifecycle_pending_approved_paid(svc, manager, admin, now):
    commission_id = _commission(svc, manager, _revenue_rule(svc, manager))

    with pytest.raises(ValidationError):
        svc.pay_commission(actor=admin, commission_id=commission_id, payment_reference="PAY-1")

    svc.approve_commission(actor=manager, commission_id=commission_id, now=now)
    with pytest.raises(AuthorizationError):
        svc.pay_commission(actor=manager, commission_id=commission_id, payment_reference="PAY-1")
    svc.pay_commission(actor=admin, commission_id=commission_id, payment_reference="PAY-1", now=now)

    paid = svc.get_commission(commission_id)
    assert paid.status == CommissionStatus.PAID
    assert paid.paid_at == now
    with pytest.raises(ValidationError):
        svc.cancel_commission(actor=admin, commission_id=commission_id)


def test_cancel_records_reason(svc, manager, staff):
    commission_id = _commission(svc, manager, _revenue_rule(svc, manager))

    with pytest.raises(AuthorizationError):
        svc.cancel_commission(actor=staff, commission_id=commission_id)
    svc.cancel_commission(actor=manager, commission_id=commission_id, reason=" Duplicate ")

    cancelled = svc.get_commission(commission_id)
    assert cancelled.status == CommissionStatus.CANCELLED
    assert cancelled.cancellation_reason == "Duplicate"


def test_recalculate_uses_current_rule(svc, manager):
    rule_id = _revenue_rule(svc, manager)
    commission_id = _commission(svc, manager, rule_id)

    svc.update_rule(actor=manager, rule_id=rule_id, changes={"rate": "7.5"})
    recalculated = svc.recalculate_commission(actor=manager, commission_id=commission_id)

    assert recalculated.amount == Decimal("150.00")
    assert svc.get_commission(commission_id).rate == Decimal("7.5")


def test_rule_with_commissions_cannot_be_deleted(svc, manager):
    used = _revenue_rule(svc, manager)
    unused = _revenue_rule(svc, manager, name="Unused")
    _commission(svc, manager, used)

    with pytest.raises(ConflictError):
        svc.delete_rule(actor=manager, rule_id=used)
    svc.delete_rule(actor=manager, rule_id=unused)
    with pytest.raises(NotFoundError):
        svc.get_rule(unused)


def test_update_rule_rejects_unknown_fields(svc, manager):
    rule_id = _revenue_rule(svc, manager)

    with pytest.raises(ValidationError, match="Fields cannot be updated: commission_type"):
        svc.update_rule(actor=manager, rule_id=rule_id, changes={"commission_type": "fixed_amount"})


def test_preview_and_summary(svc, manager):
    rule_id = _revenue_rule(svc, manager)
    _commission(svc, manager, rule_id)

    assert svc.preview(rule_id=rule_id, base_amount="80") == Decimal("4.00")
    assert svc.employee_summary(employee_id=1).count == 1
    with pytest.raises(NotFoundError):
        svc.employee_summary(employee_id=42)
