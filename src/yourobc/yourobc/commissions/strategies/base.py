from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from ..model import CommissionRule


class CommissionStrategy(ABC):
    """Strategy Pattern: encapsulate how a rule turns an amount into a commission."""

    @abstractmethod
    def calculate(self, *, rule: CommissionRule, base_amount: Decimal, margin: Optional[Decimal] = None) -> Decimal:
        raise NotImplementedError
