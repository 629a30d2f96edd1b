from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Currency, PartnerStatus, PricingModel, ServiceType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    insert_owned_row,
    load_json,
    optional_decimal,
    restore_row,
    soft_delete_row,
    update_columns,
)
from .model import Courier
from .repository import CourierRepository

_COLUMNS = (
    "courier_id, public_id, owner_id, courier_number, name, short_name, email, phone, website, "
    "service_countries, service_types, pricing_model, default_currency, max_weight_kg, is_preferred, "
    "status, reliability_score, notes, tags, created_at, updated_at, deleted_at"
)

_WRITABLE = (
    "courier_number",
    "name",
    "short_name",
    "email",
    "phone",
    "website",
    "service_countries",
    "service_types",
    "pricing_model",
    "default_currency",
    "max_weight_kg",
    "is_preferred",
    "status",
    "reliability_score",
    "notes",
    "tags",
)


def _to_courier(r: dict) -> Courier:
    return Courier(
        courier_id=int(r["courier_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        courier_number=r["courier_number"],
        name=r["name"],
        short_name=r.get("short_name"),
        email=r.get("email"),
        phone=r.get("phone"),
        website=r.get("website"),
        service_countries=tuple(load_json(r.get("service_countries"), [])),
        service_types=tuple(ServiceType(t) for t in load_json(r.get("service_types"), [])),
        pricing_model=PricingModel(r["pricing_model"]),
        default_currency=Currency(r["default_currency"]),
        max_weight_kg=optional_decimal(r.get("max_weight_kg")),
        is_preferred=bool(r.get("is_preferred")),
        status=PartnerStatus(r["status"]),
        reliability_score=r.get("reliability_score"),
        notes=r.get("notes"),
        tags=tuple(load_json(r.get("tags"), [])),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLCourierRepository(CourierRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="couriers", owner_id=owner_id, values=values, allowed=_WRITABLE)

    def get(self, courier_id: int, *, include_deleted: bool = False) -> Optional[Courier]:
        sql = f"SELECT {_COLUMNS} FROM couriers WHERE courier_id=%s"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(courier_id),))
            row = fetchone(cur)
            return _to_courier(row) if row else None

    def list_couriers(
        self,
        *,
        status: Optional[PartnerStatus] = None,
        country: Optional[str] = None,
        service_type: Optional[ServiceType] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Courier]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if country:
            clauses.append("JSON_CONTAINS(service_countries, JSON_QUOTE(%s))")
            params.append(country)
        if service_type is not None:
            clauses.append("JSON_CONTAINS(service_types, JSON_QUOTE(%s))")
            params.append(service_type.value)
        if search:
            clauses.append("(name LIKE %s OR short_name LIKE %s OR courier_number LIKE %s)")
            like = f"%{search}%"
            params.extend([like, like, like])

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM couriers
                WHERE {where}
                ORDER BY is_preferred DESC, name
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_courier(r) for r in fetchall(cur)]

    def update(self, courier_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="couriers",
                id_column="courier_id",
                row_id=courier_id,
                changes=changes,
                allowed=_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, courier_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="couriers", id_column="courier_id", row_id=courier_id, deleted_by=deleted_by)

    def restore(self, courier_id: int, *, restored_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return restore_row(cur, table="couriers", id_column="courier_id", row_id=courier_id, restored_by=restored_by)
