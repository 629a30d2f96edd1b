from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import Currency
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ExchangeRate
from .repository import ExchangeRateRepository

_COLUMNS = "rate_id, from_currency, to_currency, rate, is_current, source, created_by, created_at"


def _to_rate(r: dict) -> ExchangeRate:
    return ExchangeRate(
        rate_id=int(r["rate_id"]),
        from_currency=Currency(r["from_currency"]),
        to_currency=Currency(r["to_currency"]),
        rate=Decimal(str(r["rate"])),
        is_current=bool(r["is_current"]),
        source=r.get("source"),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
    )


class MySQLExchangeRateRepository(ExchangeRateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add_current(
        self,
        *,
        from_currency: Currency,
        to_currency: Currency,
        rate: Decimal,
        source: Optional[str],
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE exchange_rates SET is_current=0 WHERE from_currency=%s AND to_currency=%s AND is_current=1",
                (from_currency.value, to_currency.value),
            )
            cur.execute(
                """
                INSERT INTO exchange_rates(from_currency, to_currency, rate, is_current, source, created_by)
                VALUES(%s,%s,%s,1,%s,%s)
                """,
                (from_currency.value, to_currency.value, rate, source, int(created_by)),
            )
            return int(cur.lastrowid)

    def current(self, *, from_currency: Currency, to_currency: Currency) -> Optional[ExchangeRate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM exchange_rates
                WHERE from_currency=%s AND to_currency=%s AND is_current=1
                ORDER BY created_at DESC, rate_id DESC
                LIMIT 1
                """,
                (from_currency.value, to_currency.value),
            )
            row = fetchone(cur)
            return _to_rate(row) if row else None

    def list_rates(
        self,
        *,
        from_currency: Optional[Currency] = None,
        to_currency: Optional[Currency] = None,
        limit: int = 100,
    ) -> Sequence[ExchangeRate]:
        clauses = ["1=1"]
        params: list[object] = []
        if from_currency is not None:
            clauses.append("from_currency=%s")
            params.append(from_currency.value)
        if to_currency is not None:
            clauses.append("to_currency=%s")
            params.append(to_currency.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM exchange_rates WHERE {where} ORDER BY created_at DESC, rate_id DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_rate(r) for r in fetchall(cur)]
