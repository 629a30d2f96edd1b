from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.permissions import Actor, require_edit
from ..common.validators import (
    optional_text,
    require_country_codes,
    require_email,
    require_max_length,
    require_non_empty,
    require_range,
)
from ..core.constants import DEFAULT_PAYMENT_TERMS_DAYS, MAX_PAYMENT_TERMS_DAYS
from ..core.enums import CounterType, Currency, PartnerStatus, ServiceType
from ..core.exceptions import NotFoundError, ValidationError
from ..counters.service import CounterService
from .model import Partner
from .repository import PartnerRepository

logger = logging.getLogger(__name__)

_ENTITY = "partner"
_EDITABLE_FIELDS = (
    "company_name",
    "short_name",
    "contact_name",
    "email",
    "phone",
    "quoting_email",
    "country",
    "city",
    "service_type",
    "service_countries",
    "preferred_currency",
    "payment_terms",
    "ranking",
    "commission_rate",
    "status",
    "notes",
)
_PARTNER_SERVICE_TYPES = (ServiceType.OBC, ServiceType.NFO, ServiceType.BOTH)


def _enum(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"{label} is not valid")


def _normalize(field: str, value: Any) -> Any:
    if field == "company_name":
        return require_max_length(require_non_empty(value, "Company name"), "Company name", 200)
    if field in ("email", "quoting_email"):
        return require_email(value, "Quoting email" if field == "quoting_email" else "Email")
    if field == "country":
        codes = require_country_codes([value] if optional_text(value) else [], "Country")
        return codes[0] if codes else None
    if field == "service_countries":
        return require_country_codes(value, "Service countries")
    if field == "service_type":
        service_type = _enum(ServiceType, value, "Service type")
        if service_type not in _PARTNER_SERVICE_TYPES:
            raise ValidationError("Partner service type must be obc, nfo or both")
        return service_type
    if field == "preferred_currency":
        return _enum(Currency, value, "Currency")
    if field == "payment_terms":
        return int(require_range(value, "Payment terms", 0, MAX_PAYMENT_TERMS_DAYS))
    if field == "ranking":
        return None if value is None else int(require_range(value, "Ranking", 1, 5))
    if field == "commission_rate":
        return None if value is None else require_range(value, "Commission rate", 0, 100)
    if field == "status":
        return _enum(PartnerStatus, value, "Status")
    if field == "notes":
        return require_max_length(optional_text(value), "Notes", 2000)
    return require_max_length(optional_text(value), field.replace("_", " ").capitalize(), 200)


class PartnerService:
    def __init__(self, partners: PartnerRepository, counters: CounterService, *, audit: Optional[AuditLogRepository] = None):
        self._partners = partners
        self._counters = counters
        self._audit = audit

    def get_partner(self, partner_id: int) -> Partner:
        partner = self._partners.get(int(partner_id))
        if not partner:
            raise NotFoundError("Partner not found")
        return partner

    def list_partners(
        self,
        *,
        status: Optional[PartnerStatus] = None,
        country: Optional[str] = None,
        service_type: Optional[ServiceType] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Partner]:
        return self._partners.list_partners(
            status=status,
            country=(optional_text(country) or "").upper() or None,
            service_type=service_type,
            search=optional_text(search),
            limit=limit,
        )

    def create_partner(
        self,
        *,
        actor: Actor,
        company_name: str,
        service_type: ServiceType,
        **fields: Any,
    ) -> int:
        unknown = set(fields) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown partner fields: {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {
            "company_name": _normalize("company_name", company_name),
            "service_type": _normalize("service_type", service_type),
            "status": PartnerStatus.ACTIVE,
            "preferred_currency": Currency.EUR,
            "payment_terms": DEFAULT_PAYMENT_TERMS_DAYS,
        }
        for field, value in fields.items():
            values[field] = _normalize(field, value)

        values["partner_code"] = self._counters.next_sequence_number(CounterType.PARTNER, year=now_local().year)
        partner_id = self._partners.create(owner_id=actor.user_id, values=values)
        trail.record(
            self._audit,
            actor,
            action="partner.created",
            entity_type=_ENTITY,
            entity_id=partner_id,
            description=f"Created partner {values['partner_code']} {values['company_name']}",
        )
        return partner_id

    def update_partner(self, *, actor: Actor, partner_id: int, changes: Mapping[str, Any]) -> Partner:
        partner = self.get_partner(partner_id)
        require_edit(actor, partner.owner_id)
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch = {field: _normalize(field, value) for field, value in changes.items()}
        if patch and not self._partners.update(partner.partner_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating partner failed")
        trail.record(
            self._audit,
            actor,
            action="partner.updated",
            entity_type=_ENTITY,
            entity_id=partner.partner_id,
            description=f"Updated {', '.join(sorted(patch)) or 'nothing'}",
        )
        return self.get_partner(partner.partner_id)

    def archive_partner(self, *, actor: Actor, partner_id: int) -> None:
        partner = self.get_partner(partner_id)
        require_edit(actor, partner.owner_id)
        if partner.status == PartnerStatus.ARCHIVED:
            raise ValidationError("Partner is already archived")
        self._partners.update(partner.partner_id, changes={"status": PartnerStatus.ARCHIVED}, updated_by=actor.user_id)
        trail.record(
            self._audit,
            actor,
            action="partner.archived",
            entity_type=_ENTITY,
            entity_id=partner.partner_id,
            description=f"Archived partner {partner.partner_code}",
        )

    def delete_partner(self, *, actor: Actor, partner_id: int) -> None:
        partner = self.get_partner(partner_id)
        require_edit(actor, partner.owner_id)
        if not self._partners.soft_delete(partner.partner_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting partner failed")
        trail.record(
            self._audit,
            actor,
            action="partner.deleted",
            entity_type=_ENTITY,
            entity_id=partner.partner_id,
            description=f"Deleted partner {partner.partner_code}",
        )

    def restore_partner(self, *, actor: Actor, partner_id: int) -> None:
        partner = self._partners.get(int(partner_id), include_deleted=True)
        if not partner:
            raise NotFoundError("Partner not found")
        require_edit(actor, partner.owner_id)
        if partner.deleted_at is None:
            raise ValidationError("Partner is not deleted")
        if not self._partners.restore(partner.partner_id, restored_by=actor.user_id):
            raise ValidationError("Restoring partner failed")
        trail.record(
            self._audit,
            actor,
            action="partner.restored",
            entity_type=_ENTITY,
            entity_id=partner.partner_id,
            description=f"Restored partner {partner.partner_code}",
        )
