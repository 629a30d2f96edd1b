"""Pure invoice arithmetic and state predicates."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence

from ..common.money import to_money
from ..common.validators import require_decimal, require_non_empty, require_range
from ..core.constants import DUNNING_FEES, LINE_TOTAL_TOLERANCE, MAX_DUNNING_LEVEL, MAX_LINE_ITEMS
from ..core.enums import InvoiceStatus
from ..core.exceptions import ValidationError
from .model import Invoice, InvoiceTotals, LineItem

_CLOSED = (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


def build_line_items(raw_items: Sequence[Mapping]) -> tuple[LineItem, ...]:
    if not raw_items:
        raise ValidationError("At least one line item is required")
    if len(raw_items) > MAX_LINE_ITEMS:
        raise ValidationError(f"Cannot exceed {MAX_LINE_ITEMS} line items")

    items: list[LineItem] = []
    for index, raw in enumerate(raw_items, start=1):
        description = require_non_empty(str(raw.get("description") or ""), f"Line item {index} description")
        quantity = require_decimal(raw.get("quantity"), f"Line item {index} quantity")
        unit_price = require_decimal(raw.get("unit_price"), f"Line item {index} unit price")
        if quantity <= 0:
            raise ValidationError(f"Line item {index} quantity must be greater than 0")
        if unit_price < 0:
            raise ValidationError(f"Line item {index} unit price cannot be negative")

        expected = to_money(quantity * unit_price)
        given = raw.get("total")
        if given is not None and abs(require_decimal(given, f"Line item {index} total") - expected) > LINE_TOTAL_TOLERANCE:
            raise ValidationError(f"Line item {index} total does not match quantity x unit price")

        items.append(LineItem(description=description, quantity=quantity, unit_price=to_money(unit_price), total=expected))
    return tuple(items)


def calculate_totals(items: Iterable[LineItem], tax_rate) -> InvoiceTotals:
    rate = require_range(tax_rate, "Tax rate", 0, 100)
    subtotal = to_money(sum((item.total for item in items), Decimal("0")))
    tax_amount = to_money(subtotal * rate / Decimal("100"))
    return InvoiceTotals(subtotal=subtotal, tax_amount=tax_amount, total=to_money(subtotal + tax_amount))


def is_editable(invoice: Invoice) -> bool:
    if invoice.deleted_at is not None:
        return False
    return invoice.status not in _CLOSED


def is_overdue(invoice: Invoice, today: date) -> bool:
    if invoice.status in _CLOSED:
        return False
    return invoice.due_date < today


def days_until_due(invoice: Invoice, today: date) -> int:
    return (invoice.due_date - today).days


def days_overdue(invoice: Invoice, today: date) -> int:
    if not is_overdue(invoice, today):
        return 0
    return max((today - invoice.due_date).days, 0)


def next_dunning_level(current: int) -> int:
    return min(int(current) + 1, MAX_DUNNING_LEVEL)


def dunning_fee(level: int) -> Decimal:
    return DUNNING_FEES.get(int(level), Decimal("0.00"))


def dunning_label(level: int) -> Optional[str]:
    return {1: "First reminder", 2: "Second reminder", 3: "Final notice"}.get(int(level))
