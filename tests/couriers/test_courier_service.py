from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from src.yourobc.yourobc.core.enums import Currency, PartnerStatus, PricingModel, ServiceType
from src.yourobc.yourobc.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.yourobc.yourobc.couriers.model import Courier
from src.yourobc.yourobc.couriers.service import CourierService


class FakeCouriers:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Courier] = {}

    def create(self, *, owner_id, values):
        courier_id = self._next_id
        self._next_id += 1
        self.rows[courier_id] = Courier(courier_id=courier_id, public_id=f"cou-{courier_id}", owner_id=owner_id, **values)
        return courier_id

    def get(self, courier_id, *, include_deleted=False):
        courier = self.rows.get(int(courier_id))
        if courier and courier.deleted_at is not None and not include_deleted:
            return None
        return courier

    def list_couriers(self, *, status=None, country=None, service_type=None, search=None, limit=200):
        return [
            c
            for c in self.rows.values()
            if (country is None or country in c.service_countries)
            and (service_type is None or service_type in c.service_types)
        ]

    def update(self, courier_id, *, changes, updated_by):
        self.rows[courier_id] = replace(self.rows[courier_id], **changes)
        return True

    def soft_delete(self, courier_id, *, deleted_by):
        self.rows[courier_id] = replace(self.rows[courier_id], deleted_at=datetime(2026, 10, 16))
        return True

    def restore(self, courier_id, *, restored_by):
        self.rows[courier_id] = replace(self.rows[courier_id], deleted_at=None)
        return True


@pytest.fixture
def svc(counter_service, audit):
    return CourierService(FakeCouriers(), counter_service, audit=audit)


def test_create_courier_normalizes_fields(svc, staff, audit):
    courier = svc.get_courier(
        svc.create_courier(
            actor=staff,
            name=" Skyline Couriers ",
            email="Ops@Skyline.example",
            service_countries=["de", "CN", "de"],
            service_types=["obc", "express", "obc"],
            max_weight_kg="32.5",
            tags=["Asia", " asia ", "Priority"],
        )
    )

    assert courier.courier_number.startswith("COU-")
    assert courier.name == "Skyline Couriers"
    assert courier.email == "ops@skyline.example"
    assert courier.service_countries == ("DE", "CN")
    assert courier.service_types == (ServiceType.OBC, ServiceType.EXPRESS)
    assert courier.max_weight_kg == Decimal("32.5")
    assert courier.tags == ("asia", "priority")
    assert courier.pricing_model == PricingModel.FLAT
    assert courier.default_currency == Currency.EUR
    assert courier.status == PartnerStatus.ACTIVE
    assert audit.actions() == ["courier.created"]


@pytest.mark.parametrize(
    "fields",
    [
        {"service_types": ["both"]},
        {"service_types": ["teleport"]},
        {"service_countries": ["DEU"]},
        {"max_weight_kg": 0},
        {"reliability_score": 101},
        {"email": "not-an-email"},
        {"courier_number": "COU-1"},
    ],
)
def test_create_courier_rejects_bad_fields(svc, staff, fields):
    with pytest.raises(ValidationError):
        svc.create_courier(actor=staff, name="Skyline", **fields)


def test_archive_clears_preferred_flag(svc, staff):
    courier_id = svc.create_courier(actor=staff, name="Skyline", is_preferred=True)

    svc.archive_courier(actor=staff, courier_id=courier_id)

    courier = svc.get_courier(courier_id)
    assert courier.status == PartnerStatus.ARCHIVED
    assert courier.is_preferred is False
    with pytest.raises(ValidationError):
        svc.archive_courier(actor=staff, courier_id=courier_id)


def test_list_filters_by_country_and_service(svc, staff):
    svc.create_courier(actor=staff, name="Skyline", service_countries=["DE"], service_types=["obc"])
    svc.create_courier(actor=staff, name="Harbor", service_countries=["NL"], service_types=["standard"])

    assert [c.name for c in svc.list_couriers(country=" de ")] == ["Skyline"]
    assert [c.name for c in svc.list_couriers(service_type=ServiceType.STANDARD)] == ["Harbor"]


def test_update_delete_restore(svc, staff, other_staff):
    courier_id = svc.create_courier(actor=staff, name="Skyline")

    with pytest.raises(AuthorizationError):
        svc.update_courier(actor=other_staff, courier_id=courier_id, changes={"name": "Mine"})
    assert svc.update_courier(actor=staff, courier_id=courier_id, changes={"reliability_score": 88}).reliability_score == 88

    svc.delete_courier(actor=staff, courier_id=courier_id)
    with pytest.raises(NotFoundError):
        svc.get_courier(courier_id)
    svc.restore_courier(actor=staff, courier_id=courier_id)
    with pytest.raises(ValidationError):
        svc.restore_courier(actor=staff, courier_id=courier_id)
