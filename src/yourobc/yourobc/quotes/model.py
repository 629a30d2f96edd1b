from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import Currency, QuoteStatus

FINAL_STATUSES = (QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.EXPIRED)


@dataclass(frozen=True)
class Quote:
    quote_id: int
    public_id: str
    owner_id: int
    quote_number: str
    status: QuoteStatus
    deadline: date
    valid_until: date
    base_cost: Decimal
    markup_percentage: Decimal
    total_price: Decimal
    currency: Currency = Currency.EUR
    customer_id: Optional[int] = None
    customer_reference: Optional[str] = None
    description: Optional[str] = None
    incoterms: Optional[str] = None
    sent_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    converted_shipment_id: Optional[int] = None
    tags: tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    def is_expired(self, today: date) -> bool:
        return self.valid_until < today
