from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import EmployeeStatus, WorkStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    insert_owned_row,
    restore_row,
    soft_delete_row,
    update_columns,
)
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = (
    "employee_id, public_id, owner_id, employee_number, full_name, status, work_status, hire_date, "
    "user_id, email, phone, department, position, is_online, last_activity, created_at, updated_at, deleted_at"
)

_WRITABLE = (
    "employee_number",
    "full_name",
    "status",
    "work_status",
    "hire_date",
    "user_id",
    "email",
    "phone",
    "department",
    "position",
)


def _to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        employee_number=r["employee_number"],
        full_name=r["full_name"],
        status=EmployeeStatus(r["status"]),
        work_status=WorkStatus(r["work_status"]),
        hire_date=r["hire_date"],
        user_id=r.get("user_id"),
        email=r.get("email"),
        phone=r.get("phone"),
        department=r.get("department"),
        position=r.get("position"),
        is_online=bool(r.get("is_online")),
        last_activity=r.get("last_activity"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="employees", owner_id=owner_id, values=values, allowed=_WRITABLE)

    def get(self, employee_id: int, *, include_deleted: bool = False) -> Optional[Employee]:
        sql = f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(employee_id),))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def get_by_user_id(self, user_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE user_id=%s AND deleted_at IS NULL",
                (int(user_id),),
            )
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def list_employees(
        self,
        *,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Employee]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if department:
            clauses.append("department=%s")
            params.append(department)
        if search:
            clauses.append("(full_name LIKE %s OR employee_number LIKE %s OR email LIKE %s)")
            like = f"%{search}%"
            params.extend([like, like, like])

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE {where} ORDER BY full_name LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def update(self, employee_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="employees",
                id_column="employee_id",
                row_id=employee_id,
                changes=changes,
                allowed=_WRITABLE,
                updated_by=updated_by,
            )

    def set_work_status(
        self,
        employee_id: int,
        *,
        work_status: WorkStatus,
        is_online: bool,
        last_activity: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET work_status=%s, is_online=%s, last_activity=COALESCE(%s, last_activity)
                WHERE employee_id=%s AND deleted_at IS NULL
                """,
                (work_status.value, 1 if is_online else 0, last_activity, int(employee_id)),
            )
            return cur.rowcount > 0

    def soft_delete(self, employee_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="employees", id_column="employee_id", row_id=employee_id, deleted_by=deleted_by)

    def restore(self, employee_id: int, *, restored_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return restore_row(cur, table="employees", id_column="employee_id", row_id=employee_id, restored_by=restored_by)
