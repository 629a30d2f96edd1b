from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...common.money import percentage_of, to_money
from ..model import CommissionRule
from .base import CommissionStrategy


class TieredStrategy(CommissionStrategy):
    """First tier (by ascending minimum) containing the base amount sets the rate."""

    def calculate(self, *, rule: CommissionRule, base_amount: Decimal, margin: Optional[Decimal] = None) -> Decimal:
        for tier in sorted(rule.tiers, key=lambda t: t.min_amount):
            if tier.matches(base_amount):
                return percentage_of(base_amount, tier.rate)
        return to_money(0)
