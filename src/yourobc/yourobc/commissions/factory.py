from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import CommissionType
from .strategies.base import CommissionStrategy
from .strategies.fixed_strategy import FixedAmountStrategy
from .strategies.margin_strategy import MarginPercentageStrategy
from .strategies.revenue_strategy import RevenuePercentageStrategy
from .strategies.tiered_strategy import TieredStrategy


@dataclass
class CommissionStrategyFactory:
    """Factory Pattern: choose the calculation strategy for a commission type."""

    def for_type(self, commission_type: CommissionType) -> CommissionStrategy:
        if commission_type == CommissionType.MARGIN_PERCENTAGE:
            return MarginPercentageStrategy()
        if commission_type == CommissionType.REVENUE_PERCENTAGE:
            return RevenuePercentageStrategy()
        if commission_type == CommissionType.FIXED_AMOUNT:
            return FixedAmountStrategy()
        return TieredStrategy()
