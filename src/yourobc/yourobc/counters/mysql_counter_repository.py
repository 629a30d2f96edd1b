from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import CounterType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Counter
from .repository import CounterRepository

_COLUMNS = "counter_id, counter_type, year, month, prefix, last_number, increment_by, updated_at"


def _to_counter(row: dict) -> Counter:
    return Counter(
        counter_id=int(row["counter_id"]),
        counter_type=CounterType(row["counter_type"]),
        year=int(row["year"]),
        month=int(row["month"]),
        prefix=row["prefix"] or "",
        last_number=int(row["last_number"]),
        increment_by=int(row["increment_by"]),
        updated_at=row.get("updated_at"),
    )


class MySQLCounterRepository(CounterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def increment(
        self,
        *,
        counter_type: CounterType,
        year: int,
        month: int,
        prefix: str,
        start: int,
        increment_by: int,
    ) -> int:
        # The upsert row-locks the (type, year, month) key until commit, so
        # concurrent callers serialize here and the read below sees our write.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO counters(counter_type, year, month, prefix, last_number, increment_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE last_number = last_number + increment_by, updated_at = NOW()
                """,
                (counter_type.value, int(year), int(month), prefix, int(start), int(increment_by)),
            )
            cur.execute(
                """
                SELECT last_number FROM counters
                WHERE counter_type=%s AND year=%s AND month=%s
                """,
                (counter_type.value, int(year), int(month)),
            )
            row = fetchone(cur)
            return int(row["last_number"])

    def get(self, *, counter_type: CounterType, year: int, month: int) -> Optional[Counter]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM counters WHERE counter_type=%s AND year=%s AND month=%s",
                (counter_type.value, int(year), int(month)),
            )
            row = fetchone(cur)
            return _to_counter(row) if row else None

    def list_counters(self, *, counter_type: Optional[CounterType] = None, year: Optional[int] = None) -> Sequence[Counter]:
        clauses = ["1=1"]
        params: list[object] = []
        if counter_type is not None:
            clauses.append("counter_type=%s")
            params.append(counter_type.value)
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM counters WHERE {where} ORDER BY year DESC, month DESC, counter_type",
                tuple(params),
            )
            return [_to_counter(r) for r in fetchall(cur)]

    def delete(self, *, counter_type: CounterType, year: int, month: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM counters WHERE counter_type=%s AND year=%s AND month=%s",
                (counter_type.value, int(year), int(month)),
            )
            return cur.rowcount > 0
