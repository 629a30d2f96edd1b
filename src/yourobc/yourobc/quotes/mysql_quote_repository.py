from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Currency, QuoteStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    insert_owned_row,
    load_json,
    restore_row,
    soft_delete_row,
    update_columns,
)
from .model import Quote
from .repository import QuoteRepository

_COLUMNS = (
    "quote_id, public_id, owner_id, quote_number, customer_id, customer_reference, description, deadline, "
    "valid_until, base_cost, markup_percentage, total_price, currency, incoterms, status, sent_at, accepted_at, "
    "rejected_at, rejection_reason, converted_shipment_id, tags, created_at, updated_at, deleted_at"
)

_WRITABLE = (
    "quote_number",
    "customer_id",
    "customer_reference",
    "description",
    "deadline",
    "valid_until",
    "base_cost",
    "markup_percentage",
    "total_price",
    "currency",
    "incoterms",
    "status",
    "sent_at",
    "accepted_at",
    "rejected_at",
    "rejection_reason",
    "converted_shipment_id",
    "tags",
)


def _to_quote(r: dict) -> Quote:
    return Quote(
        quote_id=int(r["quote_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        quote_number=r["quote_number"],
        customer_id=r.get("customer_id"),
        customer_reference=r.get("customer_reference"),
        description=r.get("description"),
        deadline=r["deadline"],
        valid_until=r["valid_until"],
        base_cost=Decimal(str(r["base_cost"])),
        markup_percentage=Decimal(str(r["markup_percentage"])),
        total_price=Decimal(str(r["total_price"])),
        currency=Currency(r["currency"]),
        incoterms=r.get("incoterms"),
        status=QuoteStatus(r["status"]),
        sent_at=r.get("sent_at"),
        accepted_at=r.get("accepted_at"),
        rejected_at=r.get("rejected_at"),
        rejection_reason=r.get("rejection_reason"),
        converted_shipment_id=r.get("converted_shipment_id"),
        tags=tuple(load_json(r.get("tags"), [])),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLQuoteRepository(QuoteRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="quotes", owner_id=owner_id, values=values, allowed=_WRITABLE)

    def get(self, quote_id: int, *, include_deleted: bool = False) -> Optional[Quote]:
        sql = f"SELECT {_COLUMNS} FROM quotes WHERE quote_id=%s"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(quote_id),))
            row = fetchone(cur)
            return _to_quote(row) if row else None

    def list_quotes(
        self,
        *,
        status: Optional[QuoteStatus] = None,
        owner_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Quote]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if owner_id is not None:
            clauses.append("owner_id=%s")
            params.append(int(owner_id))
        if customer_id is not None:
            clauses.append("customer_id=%s")
            params.append(int(customer_id))
        if search:
            clauses.append("(quote_number LIKE %s OR customer_reference LIKE %s OR description LIKE %s)")
            like = f"%{search}%"
            params.extend([like, like, like])

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM quotes
                WHERE {where}
                ORDER BY created_at DESC, quote_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_quote(r) for r in fetchall(cur)]

    def update(self, quote_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="quotes",
                id_column="quote_id",
                row_id=quote_id,
                changes=changes,
                allowed=_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, quote_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="quotes", id_column="quote_id", row_id=quote_id, deleted_by=deleted_by)

    def restore(self, quote_id: int, *, restored_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return restore_row(cur, table="quotes", id_column="quote_id", row_id=quote_id, restored_by=restored_by)

    def expire(self, *, today: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE quotes
                SET status=%s, updated_at=NOW()
                WHERE status IN (%s, %s, %s) AND valid_until < %s AND deleted_at IS NULL
                """,
                (
                    QuoteStatus.EXPIRED.value,
                    QuoteStatus.DRAFT.value,
                    QuoteStatus.SENT.value,
                    QuoteStatus.PENDING.value,
                    today,
                ),
            )
            return int(cur.rowcount)
