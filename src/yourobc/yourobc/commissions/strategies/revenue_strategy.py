from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...common.money import percentage_of
from ..model import CommissionRule
from .base import CommissionStrategy


class RevenuePercentageStrategy(CommissionStrategy):
    """Percentage of the revenue (base amount)."""

    def calculate(self, *, rule: CommissionRule, base_amount: Decimal, margin: Optional[Decimal] = None) -> Decimal:
        return percentage_of(base_amount, rule.rate)
