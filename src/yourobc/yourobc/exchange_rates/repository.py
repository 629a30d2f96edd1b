from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import Currency
from .model import ExchangeRate


class ExchangeRateRepository(Protocol):
    def add_current(
        self,
        *,
        from_currency: Currency,
        to_currency: Currency,
        rate: Decimal,
        source: Optional[str],
        created_by: int,
    ) -> int:
        """Insert a rate as the pair's current one, clearing the previous current flag."""

        raise NotImplementedError

    def current(self, *, from_currency: Currency, to_currency: Currency) -> Optional[ExchangeRate]:
        raise NotImplementedError

    def list_rates(
        self,
        *,
        from_currency: Optional[Currency] = None,
        to_currency: Optional[Currency] = None,
        limit: int = 100,
    ) -> Sequence[ExchangeRate]:
        raise NotImplementedError
