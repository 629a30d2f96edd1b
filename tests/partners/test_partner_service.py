from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from src.yourobc.yourobc.core.enums import Currency, PartnerStatus, ServiceType
from src.yourobc.yourobc.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.yourobc.yourobc.partners.model import Partner
from src.yourobc.yourobc.partners.service import PartnerService


class FakePartners:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Partner] = {}
        self.last_filters: dict = {}

    def create(self, *, owner_id, values):
        partner_id = self._next_id
        self._next_id += 1
        self.rows[partner_id] = Partner(partner_id=partner_id, public_id=f"ptr-{partner_id}", owner_id=owner_id, **values)
        return partner_id

    def get(self, partner_id, *, include_deleted=False):
        partner = self.rows.get(int(partner_id))
        if partner and partner.deleted_at is not None and not include_deleted:
            return None
        return partner

    def list_partners(self, *, status=None, country=None, service_type=None, search=None, limit=200):
        self.last_filters = {"status": status, "country": country, "service_type": service_type, "search": search}
        return list(self.rows.values())

    def update(self, partner_id, *, changes, updated_by):
        self.rows[partner_id] = replace(self.rows[partner_id], **changes)
        return True

    def soft_delete(self, partner_id, *, deleted_by):
        self.rows[partner_id] = replace(self.rows[partner_id], deleted_at=datetime(2026, 10, 16))
        return True

    def restore(self, partner_id, *, restored_by):
        self.rows[partner_id] = replace(self.rows[partner_id], deleted_at=None)
        return True


@pytest.fixture
def partners():
    return FakePartners()


@pytest.fixture
def svc(partners, counter_service, audit):
    return PartnerService(partners, counter_service, audit=audit)


def test_create_partner_with_defaults(svc, staff, audit):
    partner = svc.get_partner(
        svc.create_partner(
            actor=staff,
            company_name="Nippon Hand Carry",
            service_type="both",
            country="jp",
            service_countries=["jp", "kr"],
            quoting_email="Quotes@Nippon.example",
        )
    )

    assert partner.partner_code.startswith("PTR-")
    assert partner.service_type == ServiceType.BOTH
    assert partner.country == "JP"
    assert partner.service_countries == ("JP", "KR")
    assert partner.quoting_email == "quotes@nippon.example"
    assert partner.preferred_currency == Currency.EUR
    assert partner.payment_terms == 30
    assert partner.status == PartnerStatus.ACTIVE
    assert audit.actions() == ["partner.created"]


@pytest.mark.parametrize(
    "service_type, fields",
    [
        ("express", {}),
        ("obc", {"ranking": 6}),
        ("obc", {"ranking": 0}),
        ("obc", {"commission_rate": "150"}),
        ("obc", {"payment_terms": 400}),
        ("obc", {"preferred_currency": "GBP"}),
        ("obc", {"partner_code": "PTR-1"}),
    ],
)
def test_create_partner_rejects_bad_fields(svc, staff, service_type, fields):
    with pytest.raises(ValidationError):
        svc.create_partner(actor=staff, company_name="Nippon", service_type=service_type, **fields)


def test_update_ranking_and_commission(svc, staff):
    partner_id = svc.create_partner(actor=staff, company_name="Nippon", service_type=ServiceType.OBC)

    partner = svc.update_partner(actor=staff, partner_id=partner_id, changes={"ranking": 5, "commission_rate": "12.5"})

    assert partner.ranking == 5
    assert partner.commission_rate == Decimal("12.5")


def test_list_normalizes_country_filter(svc, partners):
    svc.list_partners(country=" jp ", search="  ")

    assert partners.last_filters["country"] == "JP"
    assert partners.last_filters["search"] is None


def test_archive_delete_restore(svc, staff, other_staff):
    partner_id = svc.create_partner(actor=staff, company_name="Nippon", service_type="nfo")

    with pytest.raises(AuthorizationError):
        svc.archive_partner(actor=other_staff, partner_id=partner_id)
    svc.archive_partner(actor=staff, partner_id=partner_id)
    assert svc.get_partner(partner_id).status == PartnerStatus.ARCHIVED

    svc.delete_partner(actor=staff, partner_id=partner_id)
    with pytest.raises(NotFoundError):
        svc.get_partner(partner_id)
    svc.restore_partner(actor=staff, partner_id=partner_id)
    assert svc.get_partner(partner_id).deleted_at is None
