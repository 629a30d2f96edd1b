from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import CollectionMethod, Currency, InvoiceStatus, InvoiceType, PaymentMethod


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal


@dataclass(frozen=True)
class CollectionAttempt:
    attempted_at: datetime
    method: CollectionMethod
    result: str
    dunning_level: int
    created_by: int
    note: Optional[str] = None


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class Invoice:
    invoice_id: int
    public_id: str
    owner_id: int
    invoice_number: str
    invoice_type: InvoiceType
    issue_date: date
    due_date: date
    currency: Currency
    exchange_rate: Decimal
    line_items: tuple[LineItem, ...]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    payment_terms: int
    status: InvoiceStatus
    description: Optional[str] = None
    customer_id: Optional[int] = None
    partner_id: Optional[int] = None
    shipment_id: Optional[int] = None
    paid_amount: Decimal = Decimal("0.00")
    paid_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = None
    dunning_level: int = 0
    dunning_fees: Decimal = Decimal("0.00")
    collection_attempts: tuple[CollectionAttempt, ...] = ()
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[int] = None

    @property
    def outstanding_amount(self) -> Decimal:
        return max(self.total_amount - self.paid_amount, Decimal("0.00"))
