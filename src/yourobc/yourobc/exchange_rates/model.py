from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import Currency


@dataclass(frozen=True)
class ExchangeRate:
    rate_id: int
    from_currency: Currency
    to_currency: Currency
    rate: Decimal
    is_current: bool
    source: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
