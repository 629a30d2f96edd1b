from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from src.yourobc.yourobc.core.enums import Currency
from src.yourobc.yourobc.core.exceptions import AuthorizationError, ValidationError
from src.yourobc.yourobc.exchange_rates.model import ExchangeRate
from src.yourobc.yourobc.exchange_rates.service import ExchangeRateService


class FakeRates:
    def __init__(self):
        self.rows: list[ExchangeRate] = []

    def add_current(self, *, from_currency, to_currency, rate, source, created_by):
        self.rows = [
            replace(r, is_current=False) if (r.from_currency, r.to_currency) == (from_currency, to_currency) else r
            for r in self.rows
        ]
        rate_id = len(self.rows) + 1
        self.rows.append(
            ExchangeRate(
                rate_id=rate_id,
                from_currency=from_currency,
                to_currency=to_currency,
                rate=rate,
                is_current=True,
                source=source,
                created_by=created_by,
            )
        )
        return rate_id

    def current(self, *, from_currency, to_currency):
        return next(
            (
                r
                for r in self.rows
                if r.is_current and (r.from_currency, r.to_currency) == (from_currency, to_currency)
            ),
            None,
        )

    def list_rates(self, *, from_currency=None, to_currency=None, limit=100):
        return list(reversed(self.rows))[:limit]


@pytest.fixture
def rates():
    return FakeRates()


@pytest.fixture
def svc(rates, audit):
    return ExchangeRateService(rates, audit=audit)


def test_same_currency_is_identity(svc):
    assert svc.get_rate(Currency.EUR, Currency.EUR) == Decimal(1)


def test_falls_back_to_defaults(svc):
    assert svc.get_rate(Currency.EUR, Currency.USD) == Decimal("1.1")
    assert svc.convert("100", Currency.USD, Currency.EUR) == Decimal("91.00")


def test_missing_default_is_an_error(rates):
    svc = ExchangeRateService(rates, defaults={})

    with pytest.raises(ValidationError):
        svc.get_rate(Currency.EUR, Currency.USD)


def test_newest_rate_wins_and_inverse_is_derived(svc, rates, manager, audit):
    svc.create_rate(actor=manager, from_currency=Currency.EUR, to_currency=Currency.USD, rate="1.05")
    svc.create_rate(actor=manager, from_currency=Currency.EUR, to_currency=Currency.USD, rate="1.08", source=" ECB ")

    assert svc.get_rate(Currency.EUR, Currency.USD) == Decimal("1.08")
    assert svc.get_rate(Currency.USD, Currency.EUR) == Decimal("0.925926")
    assert sum(1 for r in rates.rows if r.is_current) == 1
    assert svc.list_rates()[0].source == "ECB"
    assert audit.actions() == ["exchange_rate.created", "exchange_rate.created"]


@pytest.mark.parametrize("rate", ["0", "-1", "0.00001", "10001", "abc"])
def test_invalid_rates_are_rejected(svc, manager, rate):
    with pytest.raises(ValidationError):
        svc.create_rate(actor=manager, from_currency=Currency.EUR, to_currency=Currency.USD, rate=rate)


def test_create_rate_rules(svc, manager, staff):
    with pytest.raises(AuthorizationError):
        svc.create_rate(actor=staff, from_currency=Currency.EUR, to_currency=Currency.USD, rate="1.1")
    with pytest.raises(ValidationError):
        svc.create_rate(actor=manager, from_currency=Currency.EUR, to_currency=Currency.EUR, rate="1")
