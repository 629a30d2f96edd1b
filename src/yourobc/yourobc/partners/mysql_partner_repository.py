from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Currency, PartnerStatus, ServiceType
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
from .model import Partner
from .repository import PartnerRepository

_COLUMNS = (
    "partner_id, public_id, owner_id, partner_code, company_name, short_name, contact_name, email, phone, "
    "quoting_email, country, city, service_type, service_countries, preferred_currency, payment_terms, "
    "ranking, commission_rate, status, notes, created_at, updated_at, deleted_at"
)

_WRITABLE = (
    "partner_code",
    "company_name",
    "short_name",
    "contact_name",
    "email",
    "phone",
    "quoting_email",
    "country",
    "city",
    "service_type",
    "service_countries",
    "preferred_currency",
    "payment_terms",
    "ranking",
    "commission_rate",
    "status",
    "notes",
)


def _to_partner(r: dict) -> Partner:
    return Partner(
        partner_id=int(r["partner_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        partner_code=r["partner_code"],
        company_name=r["company_name"],
        short_name=r.get("short_name"),
        contact_name=r.get("contact_name"),
        email=r.get("email"),
        phone=r.get("phone"),
        quoting_email=r.get("quoting_email"),
        country=r.get("country"),
        city=r.get("city"),
        service_type=ServiceType(r["service_type"]),
        service_countries=tuple(load_json(r.get("service_countries"), [])),
        preferred_currency=Currency(r["preferred_currency"]),
        payment_terms=int(r["payment_terms"]),
        ranking=r.get("ranking"),
        commission_rate=optional_decimal(r.get("commission_rate")),
        status=PartnerStatus(r["status"]),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLPartnerRepository(PartnerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="partners", owner_id=owner_id, values=values, allowed=_WRITABLE)

    def get(self, partner_id: int, *, include_deleted: bool = False) -> Optional[Partner]:
        sql = f"SELECT {_COLUMNS} FROM partners WHERE partner_id=%s"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(partner_id),))
            row = fetchone(cur)
            return _to_partner(row) if row else None

    def list_partners(
        self,
        *,
        status: Optional[PartnerStatus] = None,
        country: Optional[str] = None,
        service_type: Optional[ServiceType] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Partner]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if country:
            clauses.append("(country=%s OR JSON_CONTAINS(service_countries, JSON_QUOTE(%s)))")
            params.extend([country, country])
        if service_type is not None:
            clauses.append("(service_type=%s OR service_type=%s)")
            params.extend([service_type.value, ServiceType.BOTH.value])
        if search:
            clauses.append("(company_name LIKE %s OR short_name LIKE %s OR partner_code LIKE %s)")
            like = f"%{search}%"
            params.extend([like, like, like])

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM partners
                WHERE {where}
                ORDER BY ranking IS NULL, ranking DESC, company_name
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_partner(r) for r in fetchall(cur)]

    def update(self, partner_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="partners",
                id_column="partner_id",
                row_id=partner_id,
                changes=changes,
                allowed=_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, partner_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="partners", id_column="partner_id", row_id=partner_id, deleted_by=deleted_by)

    def restore(self, partner_id: int, *, restored_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return restore_row(cur, table="partners", id_column="partner_id", row_id=partner_id, restored_by=restored_by)
