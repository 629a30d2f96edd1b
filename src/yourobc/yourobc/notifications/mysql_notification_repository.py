from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_db
from .model import Notification
from .repository import NotificationRepository

_COLUMNS = "notification_id, user_id, notification_type, title, message, entity_type, entity_id, is_read, read_at, created_at"

_WRITABLE = ("user_id", "notification_type", "title", "message", "entity_type", "entity_id")


def _to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        notification_type=NotificationType(r["notification_type"]),
        title=r["title"],
        message=r["message"],
        entity_type=r.get("entity_type"),
        entity_id=int(r["entity_id"]) if r.get("entity_id") is not None else None,
        is_read=bool(r.get("is_read")),
        read_at=r.get("read_at"),
        created_at=r.get("created_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, values: Mapping[str, Any]) -> int:
        unknown = set(values) - set(_WRITABLE)
        if unknown:
            raise ValueError(f"Unsupported columns for notifications: {sorted(unknown)}")
        columns = list(values.keys())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO notifications({', '.join(columns)}) VALUES({','.join(['%s'] * len(columns))})",
                tuple(to_db(v) for v in values.values()),
            )
            return int(cur.lastrowid)

    def get(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM notifications WHERE notification_id=%s", (int(notification_id),))
            row = fetchone(cur)
            return _to_notification(row) if row else None

    def list_for_user(self, *, user_id: int, unread_only: bool = False, limit: int = 100) -> Sequence[Notification]:
        sql = f"SELECT {_COLUMNS} FROM notifications WHERE user_id=%s"
        if unread_only:
            sql += " AND is_read=0"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY created_at DESC, notification_id DESC LIMIT %s", (int(user_id), int(limit)))
            return [_to_notification(r) for r in fetchall(cur)]

    def unread_count(self, *, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM notifications WHERE user_id=%s AND is_read=0", (int(user_id),))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def mark_read(self, notification_id: int, *, read_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE notification_id=%s AND is_read=0",
                (read_at, int(notification_id)),
            )
            return cur.rowcount > 0

    def mark_all_read(self, *, user_id: int, read_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET is_read=1, read_at=%s WHERE user_id=%s AND is_read=0", (read_at, int(user_id)))
            return int(cur.rowcount)

    def delete_read_before(self, *, cutoff: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM notifications WHERE is_read=1 AND created_at < %s", (cutoff,))
            return int(cur.rowcount)
