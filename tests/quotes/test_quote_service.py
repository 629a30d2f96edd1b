from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from src.yourobc.yourobc.core.enums import QuoteStatus
from src.yourobc.yourobc.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.yourobc.yourobc.quotes.model import FINAL_STATUSES, Quote
from src.yourobc.yourobc.quotes.service import QuoteService, total_price, validate_validity


class FakeQuotes:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Quote] = {}

    def create(self, *, owner_id, values):
        quote_id = self._next_id
        self._next_id += 1
        self.rows[quote_id] = Quote(quote_id=quote_id, public_id=f"qt-{quote_id}", owner_id=owner_id, **values)
        return quote_id

    def get(self, quote_id, *, include_deleted=False):
        quote = self.rows.get(int(quote_id))
        if quote and quote.deleted_at is not None and not include_deleted:
            return None
        return quote

    def list_quotes(self, *, status=None, owner_id=None, customer_id=None, search=None, limit=200):
        return [q for q in self.rows.values() if status is None or q.status == status]

    def update(self, quote_id, *, changes, updated_by):
        self.rows[quote_id] = replace(self.rows[quote_id], **changes)
        return True

    def soft_delete(self, quote_id, *, deleted_by):
        self.rows[quote_id] = replace(self.rows[quote_id], deleted_at=datetime(2026, 10, 16))
        return True

    def restore(self, quote_id, *, restored_by):
        self.rows[quote_id] = replace(self.rows[quote_id], deleted_at=None)
        return True

    def expire(self, *, today):
        count = 0
        for quote in list(self.rows.values()):
            if quote.status not in FINAL_STATUSES and quote.valid_until < today:
                self.rows[quote.quote_id] = replace(quote, status=QuoteStatus.EXPIRED)
                count += 1
        return count


@pytest.fixture
def svc(counter_service, audit):
    return QuoteService(FakeQuotes(), counter_service, audit=audit)


def _create(svc, actor, **overrides):
    kwargs = dict(
        actor=actor,
        deadline=date(2026, 10, 20),
        valid_until=date(2026, 11, 20),
        base_cost="1000",
        markup_percentage="15",
    )
    kwargs.update(overrides)
    return svc.create_quote(**kwargs)


def test_total_price_applies_markup():
    assert total_price(Decimal("1000"), Decimal("15")) == Decimal("1150.00")
    assert total_price(Decimal("99.99"), Decimal("12.5")) == Decimal("112.49")


@pytest.mark.parametrize("valid_until", [date(2026, 10, 20), date(2027, 10, 21)])
def test_validity_period_bounds(valid_until):
    with pytest.raises(ValidationError):
        validate_validity(date(2026, 10, 20), valid_until)


def test_create_quote(svc, staff, audit):
    quote = svc.get_quote(_create(svc, staff, incoterms="dap", tags=["Urgent", "urgent"]))

    assert quote.quote_number.startswith("QT-")
    assert quote.total_price == Decimal("1150.00")
    assert quote.status == QuoteStatus.DRAFT
    assert quote.incoterms == "DAP"
    assert quote.tags == ("urgent",)
    assert audit.actions() == ["quote.created"]


@pytest.mark.parametrize(
    "overrides",
    [{"base_cost": "-1"}, {"markup_percentage": "501"}, {"incoterms": "FOB1"}],
)
def test_create_quote_validation(svc, staff, overrides):
    with pytest.raises(ValidationError):
        _create(svc, staff, **overrides)


def test_update_recomputes_total(svc, staff):
    quote_id = _create(svc, staff)

    updated = svc.update_quote(actor=staff, quote_id=quote_id, changes={"markup_percentage": "20"})

    assert updated.total_price == Decimal("1200.00")


def test_send_accept_convert(svc, staff, now):
    quote_id = _create(svc, staff)
    svc.send_quote(actor=staff, quote_id=quote_id, now=now)
    svc.accept_quote(actor=staff, quote_id=quote_id, now=now)

    with pytest.raises(ValidationError):
        svc.update_quote(actor=staff, quote_id=quote_id, changes={"description": "late change"})

    svc.convert_to_shipment(actor=staff, quote_id=quote_id, shipment_id=501)
    assert svc.get_quote(quote_id).converted_shipment_id == 501
    with pytest.raises(ValidationError):
        svc.convert_to_shipment(actor=staff, quote_id=quote_id, shipment_id=502)


def test_draft_cannot_be_accepted_or_converted(svc, staff, now):
    quote_id = _create(svc, staff)

    with pytest.raises(ValidationError):
        svc.accept_quote(actor=staff, quote_id=quote_id, now=now)
    with pytest.raises(ValidationError):
        svc.convert_to_shipment(actor=staff, quote_id=quote_id, shipment_id=1)


def test_zero_total_cannot_be_sent(svc, staff):
    quote_id = _create(svc, staff, base_cost="0")

    with pytest.raises(ValidationError):
        svc.send_quote(actor=staff, quote_id=quote_id)


def test_expired_quote_cannot_be_accepted(svc, staff, now):
    quote_id = _create(svc, staff, deadline=date(2026, 9, 1), valid_until=date(2026, 10, 1))
    svc.send_quote(actor=staff, quote_id=quote_id, now=now)

    with pytest.raises(ValidationError, match="expired"):
        svc.accept_quote(actor=staff, quote_id=quote_id, now=now)


def test_reject_requires_reason(svc, staff, other_staff, now):
    quote_id = _create(svc, staff)
    svc.send_quote(actor=staff, quote_id=quote_id, now=now)

    with pytest.raises(AuthorizationError):
        svc.reject_quote(actor=other_staff, quote_id=quote_id, reason="Too expensive")
    with pytest.raises(ValidationError):
        svc.reject_quote(actor=staff, quote_id=quote_id, reason="")
    svc.reject_quote(actor=staff, quote_id=quote_id, reason="Too expensive", now=now)

    quote = svc.get_quote(quote_id)
    assert quote.status == QuoteStatus.REJECTED
    assert quote.rejection_reason == "Too expensive"


def test_expire_quotes_skips_final_ones(svc, staff, now):
    stale = _create(svc, staff, deadline=date(2026, 9, 1), valid_until=date(2026, 10, 1))
    accepted = _create(svc, staff, deadline=date(2026, 9, 1), valid_until=date(2026, 10, 20))
    svc.send_quote(actor=staff, quote_id=accepted, now=now)
    svc.accept_quote(actor=staff, quote_id=accepted, now=now)

    assert svc.expire_quotes(today=date(2026, 10, 25)) == 1
    assert svc.get_quote(stale).status == QuoteStatus.EXPIRED
    assert svc.get_quote(accepted).status == QuoteStatus.ACCEPTED


def test_delete_and_restore(svc, staff):
    quote_id = _create(svc, staff)
    svc.delete_quote(actor=staff, quote_id=quote_id)

    with pytest.raises(NotFoundError):
        svc.get_quote(quote_id)
    svc.restore_quote(actor=staff, quote_id=quote_id)
    assert svc.get_quote(quote_id).status == QuoteStatus.DRAFT
