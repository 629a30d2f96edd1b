from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Priority, Recurrence, ReminderStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, insert_owned_row, soft_delete_row, update_columns
from .model import Reminder
from .repository import ReminderRepository

_COLUMNS = (
    "reminder_id, public_id, owner_id, title, description, entity_type, entity_id, due_date, reminder_date, "
    "assigned_to, priority, status, recurrence, recurrence_interval, snooze_until, is_notified, completed_at, "
    "completion_notes, created_at, updated_at, deleted_at"
)

_WRITABLE = (
    "title",
    "description",
    "entity_type",
    "entity_id",
    "due_date",
    "reminder_date",
    "assigned_to",
    "priority",
    "status",
    "recurrence",
    "recurrence_interval",
    "snooze_until",
    "is_notified",
    "completed_at",
    "completion_notes",
)


def _to_reminder(r: dict) -> Reminder:
    return Reminder(
        reminder_id=int(r["reminder_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        title=r["title"],
        description=r.get("description"),
        entity_type=r.get("entity_type"),
        entity_id=int(r["entity_id"]) if r.get("entity_id") is not None else None,
        due_date=r["due_date"],
        reminder_date=r.get("reminder_date"),
        assigned_to=int(r["assigned_to"]) if r.get("assigned_to") is not None else None,
        priority=Priority(r["priority"]),
        status=ReminderStatus(r["status"]),
        recurrence=Recurrence(r["recurrence"]) if r.get("recurrence") else None,
        recurrence_interval=int(r.get("recurrence_interval") or 1),
        snooze_until=r.get("snooze_until"),
        is_notified=bool(r.get("is_notified")),
        completed_at=r.get("completed_at"),
        completion_notes=r.get("completion_notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLReminderRepository(ReminderRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="reminders", owner_id=owner_id, values=values, allowed=_WRITABLE)

    def get(self, reminder_id: int) -> Optional[Reminder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM reminders WHERE reminder_id=%s AND deleted_at IS NULL", (int(reminder_id),))
            row = fetchone(cur)
            return _to_reminder(row) if row else None

    def list_reminders(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[ReminderStatus] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[Reminder]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if user_id is not None:
            clauses.append("(owner_id=%s OR assigned_to=%s)")
            params.extend([int(user_id), int(user_id)])
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if entity_type:
            clauses.append("entity_type=%s")
            params.append(entity_type)
        if entity_id is not None:
            clauses.append("entity_id=%s")
            params.append(int(entity_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM reminders WHERE {where} ORDER BY due_date LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_reminder(r) for r in fetchall(cur)]

    def list_due(self, *, now: datetime) -> Sequence[Reminder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM reminders
                WHERE deleted_at IS NULL
                  AND is_notified=0
                  AND (
                    (status='pending' AND COALESCE(reminder_date, due_date) <= %s)
                    OR (status='snoozed' AND snooze_until <= %s)
                  )
                ORDER BY due_date
                """,
                (now, now),
            )
            return [_to_reminder(r) for r in fetchall(cur)]

    def list_overdue(self, *, now: datetime, user_id: Optional[int] = None) -> Sequence[Reminder]:
        sql = f"SELECT {_COLUMNS} FROM reminders WHERE deleted_at IS NULL AND status='pending' AND due_date < %s"
        params: list[object] = [now]
        if user_id is not None:
            sql += " AND (owner_id=%s OR assigned_to=%s)"
            params.extend([int(user_id), int(user_id)])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY due_date", tuple(params))
            return [_to_reminder(r) for r in fetchall(cur)]

    def update(self, reminder_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="reminders",
                id_column="reminder_id",
                row_id=reminder_id,
                changes=changes,
                allowed=_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, reminder_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="reminders", id_column="reminder_id", row_id=reminder_id, deleted_by=deleted_by)
