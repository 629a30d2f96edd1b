from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Round to 2 decimal places, half up."""
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount, rate) -> Decimal:
    return to_money(Decimal(str(amount)) * Decimal(str(rate)) / Decimal("100"))
