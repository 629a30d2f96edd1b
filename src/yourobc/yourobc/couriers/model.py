from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import Currency, PartnerStatus, PricingModel, ServiceType


@dataclass(frozen=True)
class Courier:
    courier_id: int
    public_id: str
    owner_id: int
    courier_number: str
    name: str
    status: PartnerStatus
    short_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    service_countries: tuple[str, ...] = ()
    service_types: tuple[ServiceType, ...] = ()
    pricing_model: PricingModel = PricingModel.FLAT
    default_currency: Currency = Currency.EUR
    max_weight_kg: Optional[Decimal] = None
    is_preferred: bool = False
    reliability_score: Optional[int] = None
    notes: Optional[str] = None
    tags: tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
