from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import AuditEntry
from .repository import AuditLogRepository


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(
        self,
        *,
        user_id: Optional[int],
        action: str,
        entity_type: str,
        entity_id: int,
        description: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(user_id, action, entity_type, entity_id, description)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (user_id, action, entity_type, int(entity_id), description),
            )
            return int(cur.lastrowid)

    def list_for_entity(self, *, entity_type: str, entity_id: int, limit: int = 100) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT audit_id, user_id, action, entity_type, entity_id, description, created_at
                FROM audit_logs
                WHERE entity_type=%s AND entity_id=%s
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                (entity_type, int(entity_id), int(limit)),
            )
            return [
                AuditEntry(
                    audit_id=int(r["audit_id"]),
                    user_id=r.get("user_id"),
                    action=r["action"],
                    entity_type=r["entity_type"],
                    entity_id=int(r["entity_id"]),
                    description=r["description"],
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
