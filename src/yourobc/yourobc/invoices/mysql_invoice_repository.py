from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import CollectionMethod, Currency, InvoiceStatus, InvoiceType, PaymentMethod
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
from .model import CollectionAttempt, Invoice, LineItem
from .repository import InvoiceRepository

_COLUMNS = (
    "invoice_id, public_id, owner_id, invoice_number, invoice_type, issue_date, due_date, currency, "
    "exchange_rate, line_items, subtotal, tax_rate, tax_amount, total_amount, payment_terms, status, "
    "description, customer_id, partner_id, shipment_id, paid_amount, paid_date, payment_method, "
    "payment_reference, dunning_level, dunning_fees, collection_attempts, notes, created_at, created_by, "
    "updated_at, updated_by, deleted_at, deleted_by"
)

_WRITABLE = (
    "invoice_number",
    "invoice_type",
    "issue_date",
    "due_date",
    "currency",
    "exchange_rate",
    "line_items",
    "subtotal",
    "tax_rate",
    "tax_amount",
    "total_amount",
    "payment_terms",
    "status",
    "description",
    "customer_id",
    "partner_id",
    "shipment_id",
    "paid_amount",
    "paid_date",
    "payment_method",
    "payment_reference",
    "dunning_level",
    "dunning_fees",
    "collection_attempts",
    "notes",
)


def _line_item(raw: dict) -> LineItem:
    return LineItem(
        description=raw["description"],
        quantity=Decimal(str(raw["quantity"])),
        unit_price=Decimal(str(raw["unit_price"])),
        total=Decimal(str(raw["total"])),
    )


def _attempt(raw: dict) -> CollectionAttempt:
    return CollectionAttempt(
        attempted_at=datetime.fromisoformat(raw["attempted_at"]),
        method=CollectionMethod(raw["method"]),
        result=raw["result"],
        dunning_level=int(raw.get("dunning_level", 0)),
        created_by=int(raw["created_by"]),
        note=raw.get("note"),
    )


def _to_invoice(r: dict) -> Invoice:
    return Invoice(
        invoice_id=int(r["invoice_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        invoice_number=r["invoice_number"],
        invoice_type=InvoiceType(r["invoice_type"]),
        issue_date=r["issue_date"],
        due_date=r["due_date"],
        currency=Currency(r["currency"]),
        exchange_rate=Decimal(str(r["exchange_rate"])),
        line_items=tuple(_line_item(i) for i in load_json(r.get("line_items"), [])),
        subtotal=r["subtotal"],
        tax_rate=r["tax_rate"],
        tax_amount=r["tax_amount"],
        total_amount=r["total_amount"],
        payment_terms=int(r["payment_terms"]),
        status=InvoiceStatus(r["status"]),
        description=r.get("description"),
        customer_id=r.get("customer_id"),
        partner_id=r.get("partner_id"),
        shipment_id=r.get("shipment_id"),
        paid_amount=r.get("paid_amount") or Decimal("0.00"),
        paid_date=r.get("paid_date"),
        payment_method=PaymentMethod(r["payment_method"]) if r.get("payment_method") else None,
        payment_reference=r.get("payment_reference"),
        dunning_level=int(r.get("dunning_level") or 0),
        dunning_fees=r.get("dunning_fees") or Decimal("0.00"),
        collection_attempts=tuple(_attempt(a) for a in load_json(r.get("collection_attempts"), [])),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        created_by=r.get("created_by"),
        updated_at=r.get("updated_at"),
        updated_by=r.get("updated_by"),
        deleted_at=r.get("deleted_at"),
        deleted_by=r.get("deleted_by"),
    )


class MySQLInvoiceRepository(InvoiceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="invoices", owner_id=owner_id, values=values, allowed=_WRITABLE)

    def get(self, invoice_id: int, *, include_deleted: bool = False) -> Optional[Invoice]:
        sql = f"SELECT {_COLUMNS} FROM invoices WHERE invoice_id=%s"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(invoice_id),))
            row = fetchone(cur)
            return _to_invoice(row) if row else None

    def get_by_number(self, invoice_number: str) -> Optional[Invoice]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM invoices WHERE invoice_number=%s", (invoice_number,))
            row = fetchone(cur)
            return _to_invoice(row) if row else None

    def list_invoices(
        self,
        *,
        status: Optional[InvoiceStatus] = None,
        owner_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        due_before: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[Invoice]:
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
        if due_before is not None:
            clauses.append("due_date < %s AND status NOT IN ('paid', 'cancelled')")
            params.append(due_before)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM invoices
                WHERE {where}
                ORDER BY issue_date DESC, invoice_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_invoice(r) for r in fetchall(cur)]

    def update(self, invoice_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="invoices",
                id_column="invoice_id",
                row_id=invoice_id,
                changes=changes,
                allowed=_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, invoice_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="invoices", id_column="invoice_id", row_id=invoice_id, deleted_by=deleted_by)

    def restore(self, invoice_id: int, *, restored_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return restore_row(cur, table="invoices", id_column="invoice_id", row_id=invoice_id, restored_by=restored_by)

    def mark_overdue(self, *, today: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE invoices
                SET status=%s, updated_at=NOW()
                WHERE status=%s AND due_date < %s AND deleted_at IS NULL
                """,
                (InvoiceStatus.OVERDUE.value, InvoiceStatus.SENT.value, today),
            )
            return int(cur.rowcount)
