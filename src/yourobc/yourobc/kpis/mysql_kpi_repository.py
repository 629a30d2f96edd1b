from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import CommissionStatus, InvoiceStatus, InvoiceType, KpiMetric, KpiStatus, QuoteStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    insert_owned_row,
    new_public_id,
    optional_decimal,
    soft_delete_row,
    to_db,
    update_columns,
)
from .model import ActivityMetrics, Kpi, KpiTargets, PerformanceSnapshot
from .repository import KpiRepository

_KPI_COLUMNS = (
    "kpi_id, public_id, owner_id, employee_id, metric_name, metric_key, year, month, target_value, "
    "current_value, achievement_percentage, status, warning_threshold, critical_threshold, "
    "created_at, updated_at, deleted_at"
)

_KPI_WRITABLE = (
    "employee_id",
    "metric_name",
    "metric_key",
    "year",
    "month",
    "target_value",
    "current_value",
    "achievement_percentage",
    "status",
    "warning_threshold",
    "critical_threshold",
)

_TARGET_COLUMNS = (
    "target_id, public_id, owner_id, employee_id, year, month, quotes_target, orders_target, "
    "revenue_target, conversion_target, commission_target, deleted_at"
)

_TARGET_FIELDS = ("quotes_target", "orders_target", "revenue_target", "conversion_target", "commission_target")

_SNAPSHOT_COLUMNS = (
    "snapshot_id, employee_id, year, month, quotes_created, quotes_converted, orders_processed, "
    "orders_completed, order_value, average_order_value, conversion_rate, commissions_earned, "
    "commissions_paid, commissions_pending, quotes_achievement, orders_achievement, revenue_achievement, "
    "conversion_achievement, commission_achievement, `rank`, calculated_at"
)

_SNAPSHOT_FIELDS = (
    "quotes_created",
    "quotes_converted",
    "orders_processed",
    "orders_completed",
    "order_value",
    "average_order_value",
    "conversion_rate",
    "commissions_earned",
    "commissions_paid",
    "commissions_pending",
    "quotes_achievement",
    "orders_achievement",
    "revenue_achievement",
    "conversion_achievement",
    "commission_achievement",
)


def _to_kpi(r: dict) -> Kpi:
    return Kpi(
        kpi_id=int(r["kpi_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        employee_id=int(r["employee_id"]),
        metric_name=r["metric_name"],
        metric_key=KpiMetric(r["metric_key"]),
        year=int(r["year"]),
        month=int(r["month"]) if r.get("month") is not None else None,
        target_value=Decimal(str(r["target_value"])),
        current_value=Decimal(str(r["current_value"])),
        achievement_percentage=Decimal(str(r["achievement_percentage"])),
        status=KpiStatus(r["status"]),
        warning_threshold=Decimal(str(r["warning_threshold"])),
        critical_threshold=Decimal(str(r["critical_threshold"])),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


def _to_targets(r: dict) -> KpiTargets:
    return KpiTargets(
        target_id=int(r["target_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        employee_id=int(r["employee_id"]),
        year=int(r["year"]),
        month=int(r["month"]),
        quotes_target=r.get("quotes_target"),
        orders_target=r.get("orders_target"),
        revenue_target=optional_decimal(r.get("revenue_target")),
        conversion_target=optional_decimal(r.get("conversion_target")),
        commission_target=optional_decimal(r.get("commission_target")),
        deleted_at=r.get("deleted_at"),
    )


def _to_snapshot(r: dict) -> PerformanceSnapshot:
    return PerformanceSnapshot(
        snapshot_id=int(r["snapshot_id"]),
        employee_id=int(r["employee_id"]),
        year=int(r["year"]),
        month=int(r["month"]),
        quotes_created=int(r["quotes_created"]),
        quotes_converted=int(r["quotes_converted"]),
        orders_processed=int(r["orders_processed"]),
        orders_completed=int(r["orders_completed"]),
        order_value=Decimal(str(r["order_value"])),
        average_order_value=Decimal(str(r["average_order_value"])),
        conversion_rate=Decimal(str(r["conversion_rate"])),
        commissions_earned=Decimal(str(r["commissions_earned"])),
        commissions_paid=Decimal(str(r["commissions_paid"])),
        commissions_pending=Decimal(str(r["commissions_pending"])),
        quotes_achievement=optional_decimal(r.get("quotes_achievement")),
        orders_achievement=optional_decimal(r.get("orders_achievement")),
        revenue_achievement=optional_decimal(r.get("revenue_achievement")),
        conversion_achievement=optional_decimal(r.get("conversion_achievement")),
        commission_achievement=optional_decimal(r.get("commission_achievement")),
        rank=r.get("rank"),
        calculated_at=r.get("calculated_at"),
    )


class MySQLKpiRepository(KpiRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- KPI records --------
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="kpis", owner_id=owner_id, values=values, allowed=_KPI_WRITABLE)

    def get(self, kpi_id: int) -> Optional[Kpi]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_KPI_COLUMNS} FROM kpis WHERE kpi_id=%s AND deleted_at IS NULL", (int(kpi_id),))
            row = fetchone(cur)
            return _to_kpi(row) if row else None

    def list_kpis(
        self,
        *,
        employee_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        status: Optional[KpiStatus] = None,
        limit: int = 200,
    ) -> Sequence[Kpi]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []

        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))
        if month is not None:
            clauses.append("month=%s")
            params.append(int(month))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_KPI_COLUMNS}
                FROM kpis
                WHERE {where}
                ORDER BY year DESC, month DESC, metric_name
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_kpi(r) for r in fetchall(cur)]

    def update(self, kpi_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="kpis",
                id_column="kpi_id",
                row_id=kpi_id,
                changes=changes,
                allowed=_KPI_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, kpi_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="kpis", id_column="kpi_id", row_id=kpi_id, deleted_by=deleted_by)

    # -------- Targets --------
    def upsert_targets(self, *, owner_id: int, employee_id: int, year: int, month: int, values: Mapping[str, Any]) -> int:
        unknown = set(values) - set(_TARGET_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported target columns: {sorted(unknown)}")

        params = [to_db(values.get(field)) for field in _TARGET_FIELDS]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO kpi_targets(
                    public_id, owner_id, created_by, updated_by, employee_id, year, month,
                    quotes_target, orders_target, revenue_target, conversion_target, commission_target
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    quotes_target=VALUES(quotes_target),
                    orders_target=VALUES(orders_target),
                    revenue_target=VALUES(revenue_target),
                    conversion_target=VALUES(conversion_target),
                    commission_target=VALUES(commission_target),
                    updated_by=VALUES(updated_by),
                    updated_at=NOW(),
                    deleted_at=NULL,
                    deleted_by=NULL,
                    target_id=LAST_INSERT_ID(target_id)
                """,
                (
                    new_public_id(),
                    int(owner_id),
                    int(owner_id),
                    int(owner_id),
                    int(employee_id),
                    int(year),
                    int(month),
                    *params,
                ),
            )
            return int(cur.lastrowid)

    def get_targets(self, *, employee_id: int, year: int, month: int) -> Optional[KpiTargets]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TARGET_COLUMNS}
                FROM kpi_targets
                WHERE employee_id=%s AND year=%s AND month=%s AND deleted_at IS NULL
                """,
                (int(employee_id), int(year), int(month)),
            )
            row = fetchone(cur)
            return _to_targets(row) if row else None

    def soft_delete_targets(self, target_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="kpi_targets", id_column="target_id", row_id=target_id, deleted_by=deleted_by)

    # -------- Performance --------
    def collect_metrics(self, *, employee_id: int, user_id: Optional[int], start: date, end: date) -> ActivityMetrics:
        start_dt = datetime.combine(start, time.min)
        end_dt = datetime.combine(end, time.max)

        quotes = {"created": 0, "converted": 0}
        orders = {"processed": 0, "completed": 0, "value": Decimal("0.00")}
        with db_cursor(self._conn_factory) as (_, cur):
            if user_id is not None:
                cur.execute(
                    """
                    SELECT COUNT(*) AS created,
                           COALESCE(SUM(CASE WHEN status=%s THEN 1 ELSE 0 END), 0) AS converted
                    FROM quotes
                    WHERE owner_id=%s AND created_at BETWEEN %s AND %s AND deleted_at IS NULL
                    """,
                    (QuoteStatus.ACCEPTED.value, int(user_id), start_dt, end_dt),
                )
                quotes = fetchone(cur) or quotes

                cur.execute(
                    """
                    SELECT COUNT(*) AS processed,
                           COALESCE(SUM(CASE WHEN status=%s THEN 1 ELSE 0 END), 0) AS completed,
                           COALESCE(SUM(total_amount), 0) AS value
                    FROM invoices
                    WHERE owner_id=%s AND invoice_type=%s AND status<>%s
                      AND issue_date BETWEEN %s AND %s AND deleted_at IS NULL
                    """,
                    (
                        InvoiceStatus.PAID.value,
                        int(user_id),
                        InvoiceType.OUTGOING.value,
                        InvoiceStatus.CANCELLED.value,
                        start,
                        end,
                    ),
                )
                orders = fetchone(cur) or orders

            cur.execute(
                """
                SELECT COALESCE(SUM(CASE WHEN status<>%s THEN amount ELSE 0 END), 0) AS earned,
                       COALESCE(SUM(CASE WHEN status=%s THEN amount ELSE 0 END), 0) AS paid,
                       COALESCE(SUM(CASE WHEN status IN (%s, %s) THEN amount ELSE 0 END), 0) AS pending
                FROM commissions
                WHERE employee_id=%s AND created_at BETWEEN %s AND %s AND deleted_at IS NULL
                """,
                (
                    CommissionStatus.CANCELLED.value,
                    CommissionStatus.PAID.value,
                    CommissionStatus.PENDING.value,
                    CommissionStatus.APPROVED.value,
                    int(employee_id),
                    start_dt,
                    end_dt,
                ),
            )
            commissions = fetchone(cur) or {}

        return ActivityMetrics(
            quotes_created=int(quotes["created"] or 0),
            quotes_converted=int(quotes["converted"] or 0),
            orders_processed=int(orders["processed"] or 0),
            orders_completed=int(orders["completed"] or 0),
            order_value=Decimal(str(orders["value"] or 0)),
            commissions_earned=Decimal(str(commissions.get("earned") or 0)),
            commissions_paid=Decimal(str(commissions.get("paid") or 0)),
            commissions_pending=Decimal(str(commissions.get("pending") or 0)),
        )

    def save_snapshot(self, *, employee_id: int, year: int, month: int, values: Mapping[str, Any]) -> int:
        unknown = set(values) - set(_SNAPSHOT_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported snapshot columns: {sorted(unknown)}")

        fields = list(_SNAPSHOT_FIELDS)
        updates = ", ".join(f"{f}=VALUES({f})" for f in fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO performance_snapshots(employee_id, year, month, {', '.join(fields)}, calculated_at)
                VALUES(%s,%s,%s,{','.join(['%s'] * len(fields))}, NOW())
                ON DUPLICATE KEY UPDATE {updates}, calculated_at=NOW(),
                    snapshot_id=LAST_INSERT_ID(snapshot_id)
                """,
                (int(employee_id), int(year), int(month), *(to_db(values.get(f)) for f in fields)),
            )
            return int(cur.lastrowid)

    def list_snapshots(self, *, year: int, month: int) -> Sequence[PerformanceSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SNAPSHOT_COLUMNS}
                FROM performance_snapshots
                WHERE year=%s AND month=%s
                ORDER BY employee_id
                """,
                (int(year), int(month)),
            )
            return [_to_snapshot(r) for r in fetchall(cur)]

    def set_rank(self, snapshot_id: int, *, rank: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE performance_snapshots SET `rank`=%s WHERE snapshot_id=%s", (int(rank), int(snapshot_id)))
            return cur.rowcount > 0
