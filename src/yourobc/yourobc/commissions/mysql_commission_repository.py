from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import CommissionStatus, CommissionType, Currency, PaymentMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    insert_owned_row,
    load_json,
    optional_decimal,
    soft_delete_row,
    to_db,
    update_columns,
)
from .model import Commission, CommissionRule, CommissionSummary, CommissionTier
from .repository import CommissionRepository, CommissionRuleRepository

_RULE_COLUMNS = (
    "rule_id, public_id, owner_id, name, commission_type, rate, tiers, employee_id, auto_approve, is_active, "
    "effective_from, effective_to, description, created_at, updated_at, deleted_at"
)

_RULE_WRITABLE = (
    "name",
    "commission_type",
    "rate",
    "tiers",
    "employee_id",
    "auto_approve",
    "is_active",
    "effective_from",
    "effective_to",
    "description",
)

_COMMISSION_COLUMNS = (
    "commission_id, public_id, owner_id, employee_id, rule_id, invoice_id, quote_id, base_amount, margin, "
    "rate, commission_type, amount, currency, status, description, approved_by, approved_at, paid_at, "
    "payment_method, payment_reference, cancellation_reason, created_at, updated_at, deleted_at"
)

_COMMISSION_WRITABLE = (
    "employee_id",
    "rule_id",
    "invoice_id",
    "quote_id",
    "base_amount",
    "margin",
    "rate",
    "commission_type",
    "amount",
    "currency",
    "status",
    "description",
    "approved_by",
    "approved_at",
    "paid_at",
    "payment_method",
    "payment_reference",
    "cancellation_reason",
)


def _tier(raw: dict) -> CommissionTier:
    return CommissionTier(
        min_amount=Decimal(str(raw["min_amount"])),
        rate=Decimal(str(raw["rate"])),
        max_amount=optional_decimal(raw.get("max_amount")),
    )


def _to_rule(r: dict) -> CommissionRule:
    return CommissionRule(
        rule_id=int(r["rule_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        name=r["name"],
        commission_type=CommissionType(r["commission_type"]),
        rate=Decimal(str(r["rate"])),
        tiers=tuple(_tier(t) for t in load_json(r.get("tiers"), [])),
        employee_id=r.get("employee_id"),
        auto_approve=bool(r.get("auto_approve")),
        is_active=bool(r.get("is_active")),
        effective_from=r.get("effective_from"),
        effective_to=r.get("effective_to"),
        description=r.get("description"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


def _to_commission(r: dict) -> Commission:
    return Commission(
        commission_id=int(r["commission_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        employee_id=int(r["employee_id"]),
        rule_id=int(r["rule_id"]),
        invoice_id=r.get("invoice_id"),
        quote_id=r.get("quote_id"),
        base_amount=Decimal(str(r["base_amount"])),
        margin=optional_decimal(r.get("margin")),
        rate=Decimal(str(r["rate"])),
        commission_type=CommissionType(r["commission_type"]),
        amount=Decimal(str(r["amount"])),
        currency=Currency(r["currency"]),
        status=CommissionStatus(r["status"]),
        description=r.get("description"),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        paid_at=r.get("paid_at"),
        payment_method=PaymentMethod(r["payment_method"]) if r.get("payment_method") else None,
        payment_reference=r.get("payment_reference"),
        cancellation_reason=r.get("cancellation_reason"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLCommissionRuleRepository(CommissionRuleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="commission_rules", owner_id=owner_id, values=values, allowed=_RULE_WRITABLE)

    def get(self, rule_id: int) -> Optional[CommissionRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RULE_COLUMNS} FROM commission_rules WHERE rule_id=%s AND deleted_at IS NULL",
                (int(rule_id),),
            )
            row = fetchone(cur)
            return _to_rule(row) if row else None

    def list_rules(self, *, active_only: bool = False, employee_id: Optional[int] = None) -> Sequence[CommissionRule]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if active_only:
            clauses.append("is_active=1")
        if employee_id is not None:
            clauses.append("(employee_id IS NULL OR employee_id=%s)")
            params.append(int(employee_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RULE_COLUMNS} FROM commission_rules WHERE {where} ORDER BY name", tuple(params))
            return [_to_rule(r) for r in fetchall(cur)]

    def update(self, rule_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="commission_rules",
                id_column="rule_id",
                row_id=rule_id,
                changes=changes,
                allowed=_RULE_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, rule_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="commission_rules", id_column="rule_id", row_id=rule_id, deleted_by=deleted_by)


class MySQLCommissionRepository(CommissionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="commissions", owner_id=owner_id, values=values, allowed=_COMMISSION_WRITABLE)

    def get(self, commission_id: int) -> Optional[Commission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COMMISSION_COLUMNS} FROM commissions WHERE commission_id=%s AND deleted_at IS NULL",
                (int(commission_id),),
            )
            row = fetchone(cur)
            return _to_commission(row) if row else None

    def list_commissions(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[CommissionStatus] = None,
        limit: int = 200,
    ) -> Sequence[Commission]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COMMISSION_COLUMNS}
                FROM commissions
                WHERE {where}
                ORDER BY created_at DESC, commission_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_commission(r) for r in fetchall(cur)]

    def update(self, commission_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="commissions",
                id_column="commission_id",
                row_id=commission_id,
                changes=changes,
                allowed=_COMMISSION_WRITABLE,
                updated_by=updated_by,
            )

    def transition(
        self,
        commission_id: int,
        *,
        from_status: CommissionStatus,
        changes: Mapping[str, Any],
        updated_by: int,
    ) -> bool:
        unknown = set(changes) - set(_COMMISSION_WRITABLE)
        if unknown:
            raise ValueError(f"Unsupported commission columns: {sorted(unknown)}")

        assignments = [f"{column}=%s" for column in changes]
        params: list[Any] = [to_db(v) for v in changes.values()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE commissions
                SET {', '.join(assignments)}, updated_by=%s, updated_at=NOW()
                WHERE commission_id=%s AND status=%s AND deleted_at IS NULL
                """,
                tuple(params + [int(updated_by), int(commission_id), from_status.value]),
            )
            return cur.rowcount > 0

    def count_for_rule(self, rule_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM commissions WHERE rule_id=%s AND deleted_at IS NULL",
                (int(rule_id),),
            )
            row = fetchone(cur) or {}
            return int(row.get("total") or 0)

    def summary(self, *, employee_id: int) -> CommissionSummary:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total_count,
                       COALESCE(SUM(CASE WHEN status<>%s THEN amount ELSE 0 END), 0) AS earned,
                       COALESCE(SUM(CASE WHEN status=%s THEN amount ELSE 0 END), 0) AS pending,
                       COALESCE(SUM(CASE WHEN status=%s THEN amount ELSE 0 END), 0) AS approved,
                       COALESCE(SUM(CASE WHEN status=%s THEN amount ELSE 0 END), 0) AS paid
                FROM commissions
                WHERE employee_id=%s AND deleted_at IS NULL
                """,
                (
                    CommissionStatus.CANCELLED.value,
                    CommissionStatus.PENDING.value,
                    CommissionStatus.APPROVED.value,
                    CommissionStatus.PAID.value,
                    int(employee_id),
                ),
            )
            row = fetchone(cur) or {}
        return CommissionSummary(
            employee_id=int(employee_id),
            count=int(row.get("total_count") or 0),
            total_earned=Decimal(str(row.get("earned") or 0)),
            pending=Decimal(str(row.get("pending") or 0)),
            approved=Decimal(str(row.get("approved") or 0)),
            paid=Decimal(str(row.get("paid") or 0)),
        )
