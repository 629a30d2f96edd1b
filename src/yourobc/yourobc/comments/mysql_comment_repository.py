from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    insert_owned_row,
    load_json,
    soft_delete_row,
    update_columns,
)
from .model import Comment, Mention
from .repository import CommentRepository

_COLUMNS = (
    "comment_id, public_id, owner_id, entity_type, entity_id, content, parent_id, is_internal, mentions, "
    "is_edited, edited_at, created_at, updated_at, deleted_at"
)

_WRITABLE = ("entity_type", "entity_id", "content", "parent_id", "is_internal", "mentions", "is_edited", "edited_at")


def _to_comment(r: dict) -> Comment:
    return Comment(
        comment_id=int(r["comment_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        entity_type=r["entity_type"],
        entity_id=int(r["entity_id"]),
        content=r["content"],
        parent_id=int(r["parent_id"]) if r.get("parent_id") is not None else None,
        is_internal=bool(r.get("is_internal")),
        mentions=tuple(Mention(**m) for m in load_json(r.get("mentions"), [])),
        is_edited=bool(r.get("is_edited")),
        edited_at=r.get("edited_at"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLCommentRepository(CommentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="comments", owner_id=owner_id, values=values, allowed=_WRITABLE)

    def get(self, comment_id: int) -> Optional[Comment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM comments WHERE comment_id=%s AND deleted_at IS NULL", (int(comment_id),))
            row = fetchone(cur)
            return _to_comment(row) if row else None

    def list_for_entity(self, *, entity_type: str, entity_id: int, include_internal: bool = True) -> Sequence[Comment]:
        sql = f"SELECT {_COLUMNS} FROM comments WHERE entity_type=%s AND entity_id=%s AND deleted_at IS NULL"
        if not include_internal:
            sql += " AND is_internal=0"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY created_at, comment_id", (entity_type, int(entity_id)))
            return [_to_comment(r) for r in fetchall(cur)]

    def update(self, comment_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="comments",
                id_column="comment_id",
                row_id=comment_id,
                changes=changes,
                allowed=_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, comment_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="comments", id_column="comment_id", row_id=comment_id, deleted_by=deleted_by)
