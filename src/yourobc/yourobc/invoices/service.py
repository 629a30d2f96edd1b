from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.money import to_money
from ..common.permissions import Actor, require_edit
from ..common.validators import optional_text, require_non_empty, require_positive, require_range
from ..core.constants import DEFAULT_PAYMENT_TERMS_DAYS, MAX_COLLECTION_ATTEMPTS, MAX_PAYMENT_TERMS_DAYS
from ..core.enums import CollectionMethod, Currency, InvoiceStatus, InvoiceType, PaymentMethod
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..counters.service import CounterService
from . import calculations
from .model import CollectionAttempt, Invoice
from .repository import InvoiceRepository

logger = logging.getLogger(__name__)

_ENTITY = "invoice"

# Fields a caller may change through update_invoice.
_EDITABLE_FIELDS = (
    "description",
    "notes",
    "line_items",
    "tax_rate",
    "due_date",
    "payment_terms",
    "customer_id",
    "partner_id",
    "shipment_id",
    "currency",
    "exchange_rate",
)


class InvoiceService:
    def __init__(
        self,
        invoices: InvoiceRepository,
        counters: CounterService,
        *,
        audit: Optional[AuditLogRepository] = None,
        default_payment_terms: int = DEFAULT_PAYMENT_TERMS_DAYS,
    ):
        self._invoices = invoices
        self._counters = counters
        self._audit = audit
        self._default_payment_terms = int(default_payment_terms)

    # -------- Queries --------
    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self._invoices.get(int(invoice_id))
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice

    def list_invoices(
        self,
        *,
        status: Optional[InvoiceStatus] = None,
        owner_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        overdue_only: bool = False,
        today: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[Invoice]:
        due_before = (today or now_local().date()) if overdue_only else None
        return self._invoices.list_invoices(
            status=status,
            owner_id=owner_id,
            customer_id=customer_id,
            due_before=due_before,
            limit=limit,
        )

    # -------- Validation helpers --------
    @staticmethod
    def _payment_terms(value) -> int:
        return int(require_range(value, "Payment terms", 0, MAX_PAYMENT_TERMS_DAYS))

    @staticmethod
    def _currency(value) -> Currency:
        try:
            return Currency(value)
        except ValueError:
            raise ValidationError("Currency must be EUR or USD")

    # -------- Mutations --------
    def create_invoice(
        self,
        *,
        actor: Actor,
        invoice_type: InvoiceType,
        issue_date: date,
        line_items: Sequence[Mapping],
        tax_rate=Decimal("0"),
        currency: str = Currency.EUR.value,
        exchange_rate=Decimal("1"),
        customer_id: Optional[int] = None,
        partner_id: Optional[int] = None,
        shipment_id: Optional[int] = None,
        due_date: Optional[date] = None,
        payment_terms: Optional[int] = None,
        invoice_number: Optional[str] = None,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        if customer_id is None and partner_id is None and shipment_id is None:
            raise ValidationError("Invoice must reference a customer, partner or shipment")

        items = calculations.build_line_items(line_items)
        totals = calculations.calculate_totals(items, tax_rate)
        terms = self._payment_terms(self._default_payment_terms if payment_terms is None else payment_terms)
        if due_date is None:
            due_date = issue_date + timedelta(days=terms)
        if due_date < issue_date:
            raise ValidationError("Due date cannot be before issue date")

        if invoice_number is not None:
            invoice_number = require_non_empty(invoice_number, "Invoice number")
            if self._counters.is_generated_invoice_number(invoice_number):
                raise ValidationError(f"Invoice number {invoice_number} is reserved for automatic numbering")
            if self._invoices.get_by_number(invoice_number):
                raise ConflictError("Invoice number already exists")
        else:
            invoice_number = self._counters.next_invoice_number(issued_on=issue_date).number
            # imported rows may already hold the issued number
            if self._invoices.get_by_number(invoice_number):
                raise ConflictError(f"Invoice number {invoice_number} already exists")

        invoice_id = self._invoices.create(
            owner_id=actor.user_id,
            values={
                "invoice_number": invoice_number,
                "invoice_type": invoice_type,
                "issue_date": issue_date,
                "due_date": due_date,
                "currency": self._currency(currency),
                "exchange_rate": require_positive(exchange_rate, "Exchange rate"),
                "line_items": items,
                "subtotal": totals.subtotal,
                "tax_rate": Decimal(str(tax_rate)),
                "tax_amount": totals.tax_amount,
                "total_amount": totals.total,
                "payment_terms": terms,
                "status": InvoiceStatus.DRAFT,
                "description": optional_text(description),
                "customer_id": customer_id,
                "partner_id": partner_id,
                "shipment_id": shipment_id,
                "notes": optional_text(notes),
            },
        )
        trail.record(
            self._audit,
            actor,
            action="invoice.created",
            entity_type=_ENTITY,
            entity_id=invoice_id,
            description=f"Created invoice {invoice_number}",
        )
        return invoice_id

    def _editable(self, actor: Actor, invoice_id: int) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        require_edit(actor, invoice.owner_id)
        if not calculations.is_editable(invoice):
            raise ValidationError(f"Invoice cannot be edited in status {invoice.status.value}")
        return invoice

    def update_invoice(self, *, actor: Actor, invoice_id: int, changes: Mapping[str, Any]) -> Invoice:
        invoice = self._editable(actor, invoice_id)

        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = {}
        for field in ("description", "notes"):
            if field in changes:
                patch[field] = optional_text(changes[field])
        for field in ("customer_id", "partner_id", "shipment_id"):
            if field in changes:
                patch[field] = int(changes[field]) if changes[field] is not None else None
        if "currency" in changes:
            patch["currency"] = self._currency(changes["currency"])
        if "exchange_rate" in changes:
            patch["exchange_rate"] = require_positive(changes["exchange_rate"], "Exchange rate")

        if "line_items" in changes or "tax_rate" in changes:
            items = calculations.build_line_items(changes["line_items"]) if "line_items" in changes else invoice.line_items
            tax_rate = changes.get("tax_rate", invoice.tax_rate)
            totals = calculations.calculate_totals(items, tax_rate)
            patch.update(
                line_items=items,
                tax_rate=Decimal(str(tax_rate)),
                subtotal=totals.subtotal,
                tax_amount=totals.tax_amount,
                total_amount=totals.total,
            )

        if "payment_terms" in changes:
            patch["payment_terms"] = self._payment_terms(changes["payment_terms"])
            if "due_date" not in changes:
                patch["due_date"] = invoice.issue_date + timedelta(days=patch["payment_terms"])
        if "due_date" in changes:
            patch["due_date"] = changes["due_date"]
            if patch["due_date"] < invoice.issue_date:
                raise ValidationError("Due date cannot be before issue date")

        merged = replace(invoice, **patch)
        if merged.customer_id is None and merged.partner_id is None and merged.shipment_id is None:
            raise ValidationError("Invoice must reference a customer, partner or shipment")

        if patch and not self._invoices.update(invoice.invoice_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating invoice failed")

        trail.record(
            self._audit,
            actor,
            action="invoice.updated",
            entity_type=_ENTITY,
            entity_id=invoice.invoice_id,
            description=f"Updated invoice {invoice.invoice_number}",
        )
        return merged

    def _transition(self, actor: Actor, invoice: Invoice, status: InvoiceStatus, description: str, **extra) -> None:
        changes = {"status": status, **extra}
        if not self._invoices.update(invoice.invoice_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Updating invoice status failed")
        logger.info("Invoice %s: %s -> %s", invoice.invoice_number, invoice.status.value, status.value)
        trail.record(
            self._audit,
            actor,
            action=f"invoice.{status.value}",
            entity_type=_ENTITY,
            entity_id=invoice.invoice_id,
            description=description,
        )

    def send_invoice(self, *, actor: Actor, invoice_id: int) -> None:
        invoice = self.get_invoice(invoice_id)
        require_edit(actor, invoice.owner_id)
        if invoice.status != InvoiceStatus.DRAFT:
            raise ValidationError("Only draft invoices can be sent")
        self._transition(actor, invoice, InvoiceStatus.SENT, f"Sent invoice {invoice.invoice_number}")

    def record_payment(
        self,
        *,
        actor: Actor,
        invoice_id: int,
        amount,
        method: PaymentMethod,
        reference: Optional[str] = None,
        paid_on: Optional[date] = None,
    ) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        require_edit(actor, invoice.owner_id)
        if invoice.status in (InvoiceStatus.CANCELLED, InvoiceStatus.PAID):
            raise ValidationError(f"Cannot record a payment on a {invoice.status.value} invoice")

        amount = to_money(require_positive(amount, "Payment amount"))
        paid_amount = to_money(invoice.paid_amount + amount)
        changes: dict[str, Any] = {
            "paid_amount": paid_amount,
            "payment_method": method,
            "payment_reference": optional_text(reference),
        }
        if paid_amount >= invoice.total_amount:
            changes["status"] = InvoiceStatus.PAID
            changes["paid_date"] = paid_on or now_local().date()

        if not self._invoices.update(invoice.invoice_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Recording payment failed")

        trail.record(
            self._audit,
            actor,
            action="invoice.payment_recorded",
            entity_type=_ENTITY,
            entity_id=invoice.invoice_id,
            description=f"Recorded payment of {amount} {invoice.currency.value} on {invoice.invoice_number}",
        )
        return replace(invoice, **changes)

    def cancel_invoice(self, *, actor: Actor, invoice_id: int, reason: Optional[str] = None) -> None:
        invoice = self.get_invoice(invoice_id)
        require_edit(actor, invoice.owner_id)
        if invoice.status == InvoiceStatus.PAID:
            raise ValidationError("Paid invoices cannot be cancelled")
        if invoice.status == InvoiceStatus.CANCELLED:
            raise ValidationError("Invoice is already cancelled")

        note = optional_text(reason)
        extra = {"notes": note} if note else {}
        self._transition(actor, invoice, InvoiceStatus.CANCELLED, f"Cancelled invoice {invoice.invoice_number}", **extra)

    def add_collection_attempt(
        self,
        *,
        actor: Actor,
        invoice_id: int,
        method: CollectionMethod,
        result: str,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        require_edit(actor, invoice.owner_id)
        if invoice.status not in (InvoiceStatus.SENT, InvoiceStatus.OVERDUE):
            raise ValidationError("Collection is only possible for sent or overdue invoices")
        if len(invoice.collection_attempts) >= MAX_COLLECTION_ATTEMPTS:
            raise ValidationError(f"Maximum of {MAX_COLLECTION_ATTEMPTS} collection attempts reached")

        level = calculations.next_dunning_level(invoice.dunning_level)
        fee = calculations.dunning_fee(level) if level > invoice.dunning_level else Decimal("0.00")
        attempt = CollectionAttempt(
            attempted_at=now or now_local(),
            method=method,
            result=require_non_empty(result, "Result"),
            dunning_level=level,
            created_by=actor.user_id,
            note=optional_text(note),
        )
        changes = {
            "collection_attempts": invoice.collection_attempts + (attempt,),
            "dunning_level": level,
            "dunning_fees": to_money(invoice.dunning_fees + fee),
        }
        if not self._invoices.update(invoice.invoice_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Recording collection attempt failed")

        trail.record(
            self._audit,
            actor,
            action="invoice.collection_attempt",
            entity_type=_ENTITY,
            entity_id=invoice.invoice_id,
            description=f"{calculations.dunning_label(level)} for {invoice.invoice_number} via {method.value}",
        )
        return replace(invoice, **changes)

    def delete_invoice(self, *, actor: Actor, invoice_id: int) -> None:
        invoice = self.get_invoice(invoice_id)
        require_edit(actor, invoice.owner_id)
        if invoice.status == InvoiceStatus.PAID:
            raise ValidationError("Paid invoices cannot be deleted")
        if not self._invoices.soft_delete(invoice.invoice_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting invoice failed")
        trail.record(
            self._audit,
            actor,
            action="invoice.deleted",
            entity_type=_ENTITY,
            entity_id=invoice.invoice_id,
            description=f"Deleted invoice {invoice.invoice_number}",
        )

    def restore_invoice(self, *, actor: Actor, invoice_id: int) -> None:
        invoice = self._invoices.get(int(invoice_id), include_deleted=True)
        if not invoice:
            raise NotFoundError("Invoice not found")
        if invoice.deleted_at is None:
            raise ValidationError("Invoice is not deleted")
        require_edit(actor, invoice.owner_id)
        if not self._invoices.restore(invoice.invoice_id, restored_by=actor.user_id):
            raise ValidationError("Restoring invoice failed")
        trail.record(
            self._audit,
            actor,
            action="invoice.restored",
            entity_type=_ENTITY,
            entity_id=invoice.invoice_id,
            description=f"Restored invoice {invoice.invoice_number}",
        )

    # -------- Scheduled --------
    def mark_overdue_invoices(self, *, today: Optional[date] = None) -> int:
        count = self._invoices.mark_overdue(today=today or now_local().date())
        if count:
            logger.info("Marked %s invoices overdue", count)
        return count
