from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...common.money import to_money
from ..model import CommissionRule
from .base import CommissionStrategy


class FixedAmountStrategy(CommissionStrategy):
    def calculate(self, *, rule: CommissionRule, base_amount: Decimal, margin: Optional[Decimal] = None) -> Decimal:
        return to_money(rule.rate)
