from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import Currency, PartnerStatus, ServiceType


@dataclass(frozen=True)
class Partner:
    partner_id: int
    public_id: str
    owner_id: int
    partner_code: str
    company_name: str
    service_type: ServiceType
    status: PartnerStatus
    short_name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    quoting_email: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    service_countries: tuple[str, ...] = ()
    preferred_currency: Currency = Currency.EUR
    payment_terms: int = 30
    ranking: Optional[int] = None
    commission_rate: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
