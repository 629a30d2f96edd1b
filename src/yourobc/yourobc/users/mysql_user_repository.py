from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_public_id
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, public_id, full_name, username, password_hash, role, email, is_active, created_at, deleted_at"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        public_id=row["public_id"],
        full_name=row["full_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        email=row.get("email"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        deleted_at=row.get("deleted_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        password_hash: str,
        role: Role,
        email: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(public_id, full_name, username, password_hash, role, email, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (new_public_id(), full_name, username, password_hash, role.value, email),
            )
            return int(cur.lastrowid)

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET is_active=%s WHERE user_id=%s AND deleted_at IS NULL",
                (1 if is_active else 0, int(user_id)),
            )
            return cur.rowcount > 0

    def soft_delete(self, user_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users SET deleted_at=NOW(), deleted_by=%s, is_active=0
                WHERE user_id=%s AND deleted_at IS NULL
                """,
                (int(deleted_by), int(user_id)),
            )
            return cur.rowcount > 0

    def list_users(self, *, role: Optional[Role] = None, limit: int = 200) -> Sequence[User]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {where} ORDER BY full_name LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_user(r) for r in fetchall(cur)]
