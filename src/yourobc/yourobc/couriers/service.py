from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.permissions import Actor, require_edit
from ..common.validators import (
    normalize_tags,
    optional_text,
    require_country_codes,
    require_decimal,
    require_email,
    require_max_length,
    require_non_empty,
    require_range,
)
from ..core.enums import CounterType, Currency, PartnerStatus, PricingModel, ServiceType
from ..core.exceptions import NotFoundError, ValidationError
from ..counters.service import CounterService
from .model import Courier
from .repository import CourierRepository

logger = logging.getLogger(__name__)

_ENTITY = "courier"
_EDITABLE_FIELDS = (
    "name",
    "short_name",
    "email",
    "phone",
    "website",
    "service_countries",
    "service_types",
    "pricing_model",
    "default_currency",
    "max_weight_kg",
    "is_preferred",
    "status",
    "reliability_score",
    "notes",
    "tags",
)
_COURIER_SERVICE_TYPES = (ServiceType.OBC, ServiceType.NFO, ServiceType.EXPRESS, ServiceType.STANDARD)


def _service_types(values) -> tuple[ServiceType, ...]:
    result: list[ServiceType] = []
    for raw in values or []:
        try:
            service_type = ServiceType(raw)
        except ValueError:
            raise ValidationError(f"Unknown service type: {raw}")
        if service_type not in _COURIER_SERVICE_TYPES:
            raise ValidationError(f"Couriers cannot offer service type {service_type.value}")
        if service_type not in result:
            result.append(service_type)
    return tuple(result)


def _enum(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"{label} is not valid")


def _normalize(field: str, value: Any) -> Any:
    if field == "name":
        return require_max_length(require_non_empty(value, "Name"), "Name", 200)
    if field == "short_name":
        return require_max_length(optional_text(value), "Short name", 50)
    if field == "email":
        return require_email(value)
    if field in ("phone", "website", "notes"):
        return require_max_length(optional_text(value), field.capitalize(), 2000 if field == "notes" else 200)
    if field == "service_countries":
        return require_country_codes(value, "Service countries")
    if field == "service_types":
        return _service_types(value)
    if field == "pricing_model":
        return _enum(PricingModel, value, "Pricing model")
    if field == "default_currency":
        return _enum(Currency, value, "Currency")
    if field == "max_weight_kg":
        if value is None:
            return None
        weight = require_decimal(value, "Max weight")
        if weight <= 0:
            raise ValidationError("Max weight must be greater than 0")
        return weight
    if field == "is_preferred":
        return bool(value)
    if field == "status":
        return _enum(PartnerStatus, value, "Status")
    if field == "reliability_score":
        return None if value is None else int(require_range(value, "Reliability score", 0, 100))
    if field == "tags":
        return normalize_tags(value)
    return value


class CourierService:
    def __init__(self, couriers: CourierRepository, counters: CounterService, *, audit: Optional[AuditLogRepository] = None):
        self._couriers = couriers
        self._counters = counters
        self._audit = audit

    def get_courier(self, courier_id: int) -> Courier:
        courier = self._couriers.get(int(courier_id))
        if not courier:
            raise NotFoundError("Courier not found")
        return courier

    def list_couriers(
        self,
        *,
        status: Optional[PartnerStatus] = None,
        country: Optional[str] = None,
        service_type: Optional[ServiceType] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Courier]:
        return self._couriers.list_couriers(
            status=status,
            country=(optional_text(country) or "").upper() or None,
            service_type=service_type,
            search=optional_text(search),
            limit=limit,
        )

    def create_courier(self, *, actor: Actor, name: str, **fields: Any) -> int:
        unknown = set(fields) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown courier fields: {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {"name": _normalize("name", name), "status": PartnerStatus.ACTIVE}
        for field, value in fields.items():
            values[field] = _normalize(field, value)
        values.setdefault("pricing_model", PricingModel.FLAT)
        values.setdefault("default_currency", Currency.EUR)

        values["courier_number"] = self._counters.next_sequence_number(CounterType.COURIER, year=now_local().year)
        courier_id = self._couriers.create(owner_id=actor.user_id, values=values)
        trail.record(
            self._audit,
            actor,
            action="courier.created",
            entity_type=_ENTITY,
            entity_id=courier_id,
            description=f"Created courier {values['courier_number']} {values['name']}",
        )
        return courier_id

    def update_courier(self, *, actor: Actor, courier_id: int, changes: Mapping[str, Any]) -> Courier:
        courier = self.get_courier(courier_id)
        require_edit(actor, courier.owner_id)
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch = {field: _normalize(field, value) for field, value in changes.items()}
        if patch and not self._couriers.update(courier.courier_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating courier failed")
        trail.record(
            self._audit,
            actor,
            action="courier.updated",
            entity_type=_ENTITY,
            entity_id=courier.courier_id,
            description=f"Updated {', '.join(sorted(patch)) or 'nothing'}",
        )
        return self.get_courier(courier.courier_id)

    def archive_courier(self, *, actor: Actor, courier_id: int) -> None:
        courier = self.get_courier(courier_id)
        require_edit(actor, courier.owner_id)
        if courier.status == PartnerStatus.ARCHIVED:
            raise ValidationError("Courier is already archived")
        self._couriers.update(
            courier.courier_id,
            changes={"status": PartnerStatus.ARCHIVED, "is_preferred": False},
            updated_by=actor.user_id,
        )
        trail.record(
            self._audit,
            actor,
            action="courier.archived",
            entity_type=_ENTITY,
            entity_id=courier.courier_id,
            description=f"Archived courier {courier.courier_number}",
        )

    def delete_courier(self, *, actor: Actor, courier_id: int) -> None:
        courier = self.get_courier(courier_id)
        require_edit(actor, courier.owner_id)
        if not self._couriers.soft_delete(courier.courier_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting courier failed")
        trail.record(
            self._audit,
            actor,
            action="courier.deleted",
            entity_type=_ENTITY,
            entity_id=courier.courier_id,
            description=f"Deleted courier {courier.courier_number}",
        )

    def restore_courier(self, *, actor: Actor, courier_id: int) -> None:
        courier = self._couriers.get(int(courier_id), include_deleted=True)
        if not courier:
            raise NotFoundError("Courier not found")
        require_edit(actor, courier.owner_id)
        if courier.deleted_at is None:
            raise ValidationError("Courier is not deleted")
        if not self._couriers.restore(courier.courier_id, restored_by=actor.user_id):
            raise ValidationError("Restoring courier failed")
        trail.record(
            self._audit,
            actor,
            action="courier.restored",
            entity_type=_ENTITY,
            entity_id=courier.courier_id,
            description=f"Restored courier {courier.courier_number}",
        )
