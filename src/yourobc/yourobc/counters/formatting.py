from __future__ import annotations

import re
from typing import Optional

from ..core.constants import COUNTER_SEQUENCE_DIGITS, INVOICE_SEQUENCE_DIGITS, MAX_COUNTER_PREFIX_LENGTH
from ..core.exceptions import ValidationError
from .model import InvoiceNumber, ParsedCounterNumber

_COUNTER_NUMBER_RE = re.compile(r"^([A-Z]+)-(\d{4})-(\d+)$")
_PREFIX_RE = re.compile(r"^[A-Z]+$")
_INVOICE_BODY_RE = re.compile(r"^(\d{2})(0[1-9]|1[0-2])(\d{%d,})$" % INVOICE_SEQUENCE_DIGITS)


def format_invoice_number(prefix: str, year: int, month: int, sequence: int, *, digits: int = INVOICE_SEQUENCE_DIGITS) -> str:
    """``prefix + YY + MM + zero-padded sequence``, e.g. 26100013."""
    yy = str(year)[-2:]
    return f"{prefix}{yy}{month:02d}{sequence:0{digits}d}"


def format_counter_number(prefix: str, year: int, number: int, *, digits: int = COUNTER_SEQUENCE_DIGITS) -> str:
    """``PREFIX-YYYY-000001``."""
    return f"{prefix}-{year}-{number:0{digits}d}"


def parse_invoice_number(value: str, prefix: str = "") -> Optional[InvoiceNumber]:
    """Inverse of ``format_invoice_number``; None when the value is not in that shape."""
    value = (value or "").strip()
    if not value.startswith(prefix):
        return None
    match = _INVOICE_BODY_RE.match(value[len(prefix) :])
    if not match:
        return None
    return InvoiceNumber(number=value, year=2000 + int(match.group(1)), month=int(match.group(2)), sequence=int(match.group(3)))


def parse_counter_number(value: str) -> Optional[ParsedCounterNumber]:
    match = _COUNTER_NUMBER_RE.match((value or "").strip())
    if not match:
        return None
    return ParsedCounterNumber(prefix=match.group(1), year=int(match.group(2)), sequence=int(match.group(3)))


def validate_prefix(prefix: str) -> str:
    prefix = (prefix or "").strip()
    if not prefix or len(prefix) > MAX_COUNTER_PREFIX_LENGTH:
        raise ValidationError(f"Counter prefix must be 1-{MAX_COUNTER_PREFIX_LENGTH} characters")
    if not _PREFIX_RE.match(prefix):
        raise ValidationError("Counter prefix must contain only uppercase letters")
    return prefix
