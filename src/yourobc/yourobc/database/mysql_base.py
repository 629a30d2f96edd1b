from __future__ import annotations

import dataclasses
import json
import uuid
from contextlib import contextmanager
from decimal import Decimal
from enum import Enum
from typing import Any, Collection, Dict, List, Mapping, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def new_public_id() -> str:
    return str(uuid.uuid4())


def _json_default(value: Any):
    if isinstance(value, Decimal):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Unsupported JSON value type: {type(value)!r}")


def dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=_json_default)


def load_json(value: Any, default: Any = None) -> Any:
    """Decode a MySQL JSON column.

    mysql-connector returns JSON columns as str (pure) or bytes (C extension).
    """

    if value is None:
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value) if value else default
    return value


def to_db(value: Any) -> Any:
    """Convert a domain value into something mysql-connector can bind."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (list, tuple, dict)):
        return dump_json(value)
    return value


def optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def update_columns(
    cur,
    *,
    table: str,
    id_column: str,
    row_id: int,
    changes: Mapping[str, Any],
    allowed: Collection[str],
    updated_by: Optional[int] = None,
    only_live: bool = True,
) -> bool:
    """UPDATE a whitelisted set of columns on one row.

    Column names come from ``allowed`` only; values are always bound.
    """

    unknown = set(changes) - set(allowed)
    if unknown:
        raise ValueError(f"Unsupported columns for {table}: {sorted(unknown)}")

    assignments = [f"{column}=%s" for column in changes]
    params: list[Any] = [to_db(v) for v in changes.values()]
    if updated_by is not None:
        assignments.append("updated_by=%s")
        params.append(int(updated_by))
    assignments.append("updated_at=NOW()")

    sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE {id_column}=%s"
    if only_live:
        sql += " AND deleted_at IS NULL"
    cur.execute(sql, tuple(params + [int(row_id)]))
    return cur.rowcount > 0


def soft_delete_row(cur, *, table: str, id_column: str, row_id: int, deleted_by: int) -> bool:
    cur.execute(
        f"UPDATE {table} SET deleted_at=NOW(), deleted_by=%s WHERE {id_column}=%s AND deleted_at IS NULL",
        (int(deleted_by), int(row_id)),
    )
    return cur.rowcount > 0


def restore_row(cur, *, table: str, id_column: str, row_id: int, restored_by: int) -> bool:
    cur.execute(
        f"""
        UPDATE {table}
        SET deleted_at=NULL, deleted_by=NULL, updated_at=NOW(), updated_by=%s
        WHERE {id_column}=%s AND deleted_at IS NOT NULL
        """,
        (int(restored_by), int(row_id)),
    )
    return cur.rowcount > 0


def insert_owned_row(cur, *, table: str, owner_id: int, values: Mapping[str, Any], allowed: Collection[str]) -> int:
    """INSERT a row carrying public_id and owner/audit columns; returns the new id."""

    unknown = set(values) - set(allowed)
    if unknown:
        raise ValueError(f"Unsupported columns for {table}: {sorted(unknown)}")

    columns = ["public_id", "owner_id", "created_by", "updated_by", *values.keys()]
    params = [new_public_id(), int(owner_id), int(owner_id), int(owner_id), *(to_db(v) for v in values.values())]
    placeholders = ",".join(["%s"] * len(columns))
    cur.execute(f"INSERT INTO {table}({', '.join(columns)}) VALUES({placeholders})", tuple(params))
    return int(cur.lastrowid)
