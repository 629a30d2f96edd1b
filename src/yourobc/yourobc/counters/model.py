from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import CounterType


@dataclass(frozen=True)
class Counter:
    """Last issued number for one (type, year, month) scope.

    Yearly counters use month=0.
    """

    counter_id: int
    counter_type: CounterType
    year: int
    month: int
    prefix: str
    last_number: int
    increment_by: int
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class InvoiceNumber:
    number: str
    year: int
    month: int
    sequence: int


@dataclass(frozen=True)
class ParsedCounterNumber:
    prefix: str
    year: int
    sequence: int
