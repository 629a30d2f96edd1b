from __future__ import annotations

import logging
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.money import to_money
from ..common.permissions import Actor, require_edit
from ..common.validators import normalize_tags, optional_text, require_decimal, require_max_length, require_non_empty, require_range
from ..core.constants import MAX_MARKUP_PERCENTAGE, MAX_VALIDITY_PERIOD_DAYS, MIN_VALIDITY_PERIOD_DAYS
from ..core.enums import CounterType, Currency, QuoteStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..counters.service import CounterService
from .model import Quote
from .repository import QuoteRepository

logger = logging.getLogger(__name__)

_ENTITY = "quote"
_INCOTERMS_RE = re.compile(r"^[A-Z]{3}$")
_EDITABLE_STATUSES = (QuoteStatus.DRAFT, QuoteStatus.SENT)
_DECIDABLE_STATUSES = (QuoteStatus.SENT, QuoteStatus.PENDING)
_EDITABLE_FIELDS = (
    "customer_id",
    "customer_reference",
    "description",
    "deadline",
    "valid_until",
    "base_cost",
    "markup_percentage",
    "currency",
    "incoterms",
    "tags",
)


def total_price(base_cost, markup_percentage) -> Decimal:
    base = Decimal(str(base_cost))
    markup = Decimal(str(markup_percentage))
    return to_money(base * (Decimal(1) + markup / Decimal(100)))


def validate_validity(deadline: date, valid_until: date) -> None:
    days = (valid_until - deadline).days
    if days < MIN_VALIDITY_PERIOD_DAYS or days > MAX_VALIDITY_PERIOD_DAYS:
        raise ValidationError(
            f"Validity period must be between {MIN_VALIDITY_PERIOD_DAYS} and {MAX_VALIDITY_PERIOD_DAYS} days"
        )


def _incoterms(value: Optional[str]) -> Optional[str]:
    text = optional_text(value)
    if text is None:
        return None
    text = text.upper()
    if not _INCOTERMS_RE.match(text):
        raise ValidationError("Incoterms must be 3 uppercase letters")
    return text


def _base_cost(value) -> Decimal:
    cost = require_decimal(value, "Base cost")
    if cost < 0:
        raise ValidationError("Base cost cannot be negative")
    return to_money(cost)


def _markup(value) -> Decimal:
    return require_range(value, "Markup percentage", 0, MAX_MARKUP_PERCENTAGE)


class QuoteService:
    def __init__(self, quotes: QuoteRepository, counters: CounterService, *, audit: Optional[AuditLogRepository] = None):
        self._quotes = quotes
        self._counters = counters
        self._audit = audit

    def get_quote(self, quote_id: int) -> Quote:
        quote = self._quotes.get(int(quote_id))
        if not quote:
            raise NotFoundError("Quote not found")
        return quote

    def list_quotes(
        self,
        *,
        status: Optional[QuoteStatus] = None,
        owner_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Quote]:
        return self._quotes.list_quotes(
            status=status,
            owner_id=owner_id,
            customer_id=customer_id,
            search=optional_text(search),
            limit=limit,
        )

    def create_quote(
        self,
        *,
        actor: Actor,
        deadline: date,
        valid_until: date,
        base_cost,
        markup_percentage=0,
        currency: Currency = Currency.EUR,
        customer_id: Optional[int] = None,
        customer_reference: Optional[str] = None,
        description: Optional[str] = None,
        incoterms: Optional[str] = None,
        tags=None,
    ) -> int:
        validate_validity(deadline, valid_until)
        cost = _base_cost(base_cost)
        markup = _markup(markup_percentage)
        quote_number = self._counters.next_sequence_number(CounterType.QUOTE, year=now_local().year)

        quote_id = self._quotes.create(
            owner_id=actor.user_id,
            values={
                "quote_number": quote_number,
                "customer_id": customer_id,
                "customer_reference": require_max_length(optional_text(customer_reference), "Customer reference", 100),
                "description": optional_text(description),
                "deadline": deadline,
                "valid_until": valid_until,
                "base_cost": cost,
                "markup_percentage": markup,
                "total_price": total_price(cost, markup),
                "currency": currency,
                "incoterms": _incoterms(incoterms),
                "status": QuoteStatus.DRAFT,
                "tags": normalize_tags(tags),
            },
        )
        trail.record(
            self._audit,
            actor,
            action="quote.created",
            entity_type=_ENTITY,
            entity_id=quote_id,
            description=f"Created quote {quote_number}",
        )
        return quote_id

    def update_quote(self, *, actor: Actor, quote_id: int, changes: Mapping[str, Any]) -> Quote:
        quote = self.get_quote(quote_id)
        require_edit(actor, quote.owner_id)
        if quote.status not in _EDITABLE_STATUSES:
            raise ValidationError("Only draft or sent quotes can be edited")
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = dict(changes)
        if "base_cost" in patch:
            patch["base_cost"] = _base_cost(patch["base_cost"])
        if "markup_percentage" in patch:
            patch["markup_percentage"] = _markup(patch["markup_percentage"])
        if "incoterms" in patch:
            patch["incoterms"] = _incoterms(patch["incoterms"])
        if "tags" in patch:
            patch["tags"] = normalize_tags(patch["tags"])
        if "description" in patch:
            patch["description"] = optional_text(patch["description"])
        if "customer_reference" in patch:
            patch["customer_reference"] = require_max_length(
                optional_text(patch["customer_reference"]), "Customer reference", 100
            )
        if "deadline" in patch or "valid_until" in patch:
            validate_validity(patch.get("deadline", quote.deadline), patch.get("valid_until", quote.valid_until))
        if "base_cost" in patch or "markup_percentage" in patch:
            patch["total_price"] = total_price(
                patch.get("base_cost", quote.base_cost),
                patch.get("markup_percentage", quote.markup_percentage),
            )

        if patch and not self._quotes.update(quote.quote_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating quote failed")
        trail.record(
            self._audit,
            actor,
            action="quote.updated",
            entity_type=_ENTITY,
            entity_id=quote.quote_id,
            description=f"Updated {', '.join(sorted(patch)) or 'nothing'}",
        )
        return self.get_quote(quote.quote_id)

    def _change(self, actor: Actor, quote: Quote, changes: dict[str, Any], *, action: str, description: str) -> None:
        if not self._quotes.update(quote.quote_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Updating quote failed")
        trail.record(self._audit, actor, action=action, entity_type=_ENTITY, entity_id=quote.quote_id, description=description)

    def send_quote(self, *, actor: Actor, quote_id: int, now: Optional[datetime] = None) -> None:
        quote = self.get_quote(quote_id)
        require_edit(actor, quote.owner_id)
        if quote.status != QuoteStatus.DRAFT:
            raise ValidationError("Only draft quotes can be sent")
        if quote.total_price <= 0:
            raise ValidationError("Quote total must be greater than 0")
        self._change(
            actor,
            quote,
            {"status": QuoteStatus.SENT, "sent_at": now or now_local()},
            action="quote.sent",
            description=f"Sent quote {quote.quote_number}",
        )

    def accept_quote(self, *, actor: Actor, quote_id: int, now: Optional[datetime] = None) -> None:
        quote = self.get_quote(quote_id)
        require_edit(actor, quote.owner_id)
        now = now or now_local()
        if quote.status not in _DECIDABLE_STATUSES:
            raise ValidationError("Only sent or pending quotes can be accepted")
        if quote.is_expired(now.date()):
            raise ValidationError("Quote has expired")
        self._change(
            actor,
            quote,
            {"status": QuoteStatus.ACCEPTED, "accepted_at": now},
            action="quote.accepted",
            description=f"Accepted quote {quote.quote_number}",
        )

    def reject_quote(self, *, actor: Actor, quote_id: int, reason: str, now: Optional[datetime] = None) -> None:
        quote = self.get_quote(quote_id)
        require_edit(actor, quote.owner_id)
        reason = require_max_length(require_non_empty(reason, "Rejection reason"), "Rejection reason", 500)
        if quote.status not in _DECIDABLE_STATUSES:
            raise ValidationError("Only sent or pending quotes can be rejected")
        self._change(
            actor,
            quote,
            {"status": QuoteStatus.REJECTED, "rejected_at": now or now_local(), "rejection_reason": reason},
            action="quote.rejected",
            description=f"Rejected quote {quote.quote_number}: {reason}",
        )

    def convert_to_shipment(self, *, actor: Actor, quote_id: int, shipment_id: int) -> None:
        quote = self.get_quote(quote_id)
        require_edit(actor, quote.owner_id)
        if quote.status != QuoteStatus.ACCEPTED:
            raise ValidationError("Only accepted quotes can be converted")
        if quote.converted_shipment_id is not None:
            raise ValidationError("Quote has already been converted")
        self._change(
            actor,
            quote,
            {"converted_shipment_id": int(shipment_id)},
            action="quote.converted",
            description=f"Converted quote {quote.quote_number} to shipment {shipment_id}",
        )

    def delete_quote(self, *, actor: Actor, quote_id: int) -> None:
        quote = self.get_quote(quote_id)
        require_edit(actor, quote.owner_id)
        if not self._quotes.soft_delete(quote.quote_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting quote failed")
        trail.record(
            self._audit,
            actor,
            action="quote.deleted",
            entity_type=_ENTITY,
            entity_id=quote.quote_id,
            description=f"Deleted quote {quote.quote_number}",
        )

    def restore_quote(self, *, actor: Actor, quote_id: int) -> None:
        quote = self._quotes.get(int(quote_id), include_deleted=True)
        if not quote:
            raise NotFoundError("Quote not found")
        require_edit(actor, quote.owner_id)
        if quote.deleted_at is None:
            raise ValidationError("Quote is not deleted")
        if not self._quotes.restore(quote.quote_id, restored_by=actor.user_id):
            raise ValidationError("Restoring quote failed")
        trail.record(
            self._audit,
            actor,
            action="quote.restored",
            entity_type=_ENTITY,
            entity_id=quote.quote_id,
            description=f"Restored quote {quote.quote_number}",
        )

    def expire_quotes(self, *, today: Optional[date] = None) -> int:
        today = today or now_local().date()
        expired = self._quotes.expire(today=today)
        if expired:
            logger.info("Expired %s quote(s) valid until before %s", expired, today.isoformat())
        return expired
