from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import CommissionStatus, CommissionType, Currency, PaymentMethod


@dataclass(frozen=True)
class CommissionTier:
    min_amount: Decimal
    rate: Decimal
    max_amount: Optional[Decimal] = None

    def matches(self, base: Decimal) -> bool:
        if base < self.min_amount:
            return False
        return self.max_amount is None or base <= self.max_amount


@dataclass(frozen=True)
class CommissionRule:
    rule_id: int
    public_id: str
    owner_id: int
    name: str
    commission_type: CommissionType
    rate: Decimal
    tiers: tuple[CommissionTier, ...] = ()
    employee_id: Optional[int] = None
    auto_approve: bool = False
    is_active: bool = True
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    def is_effective(self, on: date) -> bool:
        if self.effective_from and on < self.effective_from:
            return False
        if self.effective_to and on > self.effective_to:
            return False
        return True


@dataclass(frozen=True)
class Commission:
    commission_id: int
    public_id: str
    owner_id: int
    employee_id: int
    rule_id: int
    base_amount: Decimal
    rate: Decimal
    commission_type: CommissionType
    amount: Decimal
    currency: Currency
    status: CommissionStatus
    invoice_id: Optional[int] = None
    quote_id: Optional[int] = None
    margin: Optional[Decimal] = None
    description: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class CommissionSummary:
    employee_id: int
    count: int = 0
    total_earned: Decimal = Decimal("0.00")
    pending: Decimal = Decimal("0.00")
    approved: Decimal = Decimal("0.00")
    paid: Decimal = Decimal("0.00")
