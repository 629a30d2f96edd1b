from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.money import to_money
from ..common.permissions import Actor, require_manager
from ..common.validators import optional_text, require_decimal, require_max_length
from ..core.constants import DEFAULT_EXCHANGE_RATES, MAX_EXCHANGE_RATE, MIN_EXCHANGE_RATE
from ..core.enums import Currency
from ..core.exceptions import ValidationError
from .model import ExchangeRate
from .repository import ExchangeRateRepository

logger = logging.getLogger(__name__)

_RATE_PLACES = Decimal("0.000001")


class ExchangeRateService:
    def __init__(
        self,
        rates: ExchangeRateRepository,
        *,
        defaults: Optional[Mapping[tuple[str, str], Decimal]] = None,
        audit: Optional[AuditLogRepository] = None,
    ):
        self._rates = rates
        self._defaults = dict(DEFAULT_EXCHANGE_RATES if defaults is None else defaults)
        self._audit = audit

    def create_rate(
        self,
        *,
        actor: Actor,
        from_currency: Currency,
        to_currency: Currency,
        rate,
        source: Optional[str] = None,
    ) -> int:
        require_manager(actor)
        if from_currency == to_currency:
            raise ValidationError("Currencies must differ")
        value = require_decimal(rate, "Rate")
        if value <= 0:
            raise ValidationError("Rate must be greater than 0")
        if value < MIN_EXCHANGE_RATE or value > MAX_EXCHANGE_RATE:
            raise ValidationError(f"Rate must be between {MIN_EXCHANGE_RATE} and {MAX_EXCHANGE_RATE}")

        rate_id = self._rates.add_current(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=value,
            source=require_max_length(optional_text(source), "Source", 100),
            created_by=actor.user_id,
        )
        trail.record(
            self._audit,
            actor,
            action="exchange_rate.created",
            entity_type="exchange_rate",
            entity_id=rate_id,
            description=f"{from_currency.value}->{to_currency.value} = {value}",
        )
        return rate_id

    def get_rate(self, from_currency: Currency, to_currency: Currency) -> Decimal:
        if from_currency == to_currency:
            return Decimal(1)

        direct = self._rates.current(from_currency=from_currency, to_currency=to_currency)
        if direct:
            return direct.rate

        reverse = self._rates.current(from_currency=to_currency, to_currency=from_currency)
        if reverse and reverse.rate > 0:
            return (Decimal(1) / reverse.rate).quantize(_RATE_PLACES, rounding=ROUND_HALF_UP)

        fallback = self._defaults.get((from_currency.value, to_currency.value))
        if fallback is None:
            raise ValidationError(f"No exchange rate for {from_currency.value}->{to_currency.value}")
        logger.warning("Using default exchange rate %s->%s", from_currency.value, to_currency.value)
        return Decimal(str(fallback))

    def convert(self, amount, from_currency: Currency, to_currency: Currency) -> Decimal:
        value = require_decimal(amount, "Amount")
        return to_money(value * self.get_rate(from_currency, to_currency))

    def list_rates(
        self,
        *,
        from_currency: Optional[Currency] = None,
        to_currency: Optional[Currency] = None,
        limit: int = 100,
    ) -> Sequence[ExchangeRate]:
        return self._rates.list_rates(from_currency=from_currency, to_currency=to_currency, limit=limit)
