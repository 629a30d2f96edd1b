from __future__ import annotations

import logging
from datetime import date
from typing import Mapping, Optional, Sequence

from ..common.permissions import Actor, require_admin
from ..core.constants import INVOICE_NUMBER_INCREMENT, INVOICE_NUMBER_START
from ..core.enums import CounterType
from ..core.exceptions import NotFoundError, ValidationError
from .formatting import format_counter_number, format_invoice_number, parse_invoice_number, validate_prefix
from .model import Counter, InvoiceNumber
from .repository import CounterRepository

logger = logging.getLogger(__name__)

DEFAULT_PREFIXES: Mapping[CounterType, str] = {
    CounterType.QUOTE: "QT",
    CounterType.EMPLOYEE: "EMP",
    CounterType.COURIER: "COU",
    CounterType.PARTNER: "PTR",
    CounterType.CUSTOMER: "CUS",
}


class CounterService:
    """Issues human-readable sequence numbers.

    Invoices use one counter per (year, month) and the ``YYMM####`` format;
    everything else uses a yearly ``PREFIX-YYYY-000001`` counter.
    """

    def __init__(
        self,
        counters: CounterRepository,
        *,
        invoice_prefix: str = "",
        invoice_start: int = INVOICE_NUMBER_START,
        invoice_increment: int = INVOICE_NUMBER_INCREMENT,
        prefixes: Optional[Mapping[CounterType, str]] = None,
    ):
        if invoice_start < 1 or invoice_increment < 1:
            raise ValueError("Invoice numbering start and increment must be positive")
        self._counters = counters
        self._invoice_prefix = invoice_prefix
        self._invoice_start = int(invoice_start)
        self._invoice_increment = int(invoice_increment)
        self._prefixes = dict(DEFAULT_PREFIXES)
        for counter_type, prefix in (prefixes or {}).items():
            self._prefixes[counter_type] = validate_prefix(prefix)

    def next_invoice_number(self, *, issued_on: date) -> InvoiceNumber:
        sequence = self._counters.increment(
            counter_type=CounterType.INVOICE,
            year=issued_on.year,
            month=issued_on.month,
            prefix=self._invoice_prefix,
            start=self._invoice_start,
            increment_by=self._invoice_increment,
        )
        number = format_invoice_number(self._invoice_prefix, issued_on.year, issued_on.month, sequence)
        logger.info("Issued invoice number %s", number)
        return InvoiceNumber(number=number, year=issued_on.year, month=issued_on.month, sequence=sequence)

    def is_generated_invoice_number(self, value: str) -> bool:
        """True when ``value`` has the shape the monthly counter issues."""
        return parse_invoice_number(value, self._invoice_prefix) is not None

    def next_sequence_number(self, counter_type: CounterType, *, year: int) -> str:
        if counter_type == CounterType.INVOICE:
            raise ValidationError("Invoice numbers are issued per month, use next_invoice_number")
        prefix = self._prefixes[counter_type]
        sequence = self._counters.increment(
            counter_type=counter_type,
            year=int(year),
            month=0,
            prefix=prefix,
            start=1,
            increment_by=1,
        )
        return format_counter_number(prefix, int(year), sequence)

    def list_counters(
        self,
        *,
        actor: Actor,
        counter_type: Optional[CounterType] = None,
        year: Optional[int] = None,
    ) -> Sequence[Counter]:
        require_admin(actor)
        return self._counters.list_counters(counter_type=counter_type, year=year)

    def get_counter(self, *, actor: Actor, counter_type: CounterType, year: int, month: int = 0) -> Counter:
        require_admin(actor)
        counter = self._counters.get(counter_type=counter_type, year=int(year), month=int(month))
        if not counter:
            raise NotFoundError("Counter not found")
        return counter

    def reset_counter(self, *, actor: Actor, counter_type: CounterType, year: int, month: int = 0) -> None:
        require_admin(actor)
        if counter_type == CounterType.INVOICE:
            raise ValidationError("Invoice counters cannot be reset")
        if not self._counters.delete(counter_type=counter_type, year=int(year), month=int(month)):
            raise NotFoundError("Counter not found")
        logger.warning("Counter %s %04d-%02d reset by user %s", counter_type.value, int(year), int(month), actor.user_id)
