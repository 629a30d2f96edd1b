from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...common.money import percentage_of
from ...core.exceptions import ValidationError
from ..model import CommissionRule
from .base import CommissionStrategy


class MarginPercentageStrategy(CommissionStrategy):
    """Percentage of the margin."""

    def calculate(self, *, rule: CommissionRule, base_amount: Decimal, margin: Optional[Decimal] = None) -> Decimal:
        if margin is None:
            raise ValidationError("Margin is required for margin-based commissions")
        return percentage_of(margin, rule.rate)
