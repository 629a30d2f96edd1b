from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.enums import WikiEntryType, WikiStatus
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
from .model import WikiEntry
from .repository import WikiRepository

_COLUMNS = (
    "entry_id, public_id, owner_id, title, slug, content, category, entry_type, status, tags, view_count, "
    "published_at, created_at, updated_at, deleted_at"
)

_WRITABLE = ("title", "slug", "content", "category", "entry_type", "status", "tags", "published_at")


def _to_entry(r: dict) -> WikiEntry:
    return WikiEntry(
        entry_id=int(r["entry_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        title=r["title"],
        slug=r["slug"],
        content=r["content"],
        category=r.get("category"),
        entry_type=WikiEntryType(r["entry_type"]),
        status=WikiStatus(r["status"]),
        tags=tuple(load_json(r.get("tags"), [])),
        view_count=int(r.get("view_count") or 0),
        published_at=r.get("published_at"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLWikiRepository(WikiRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="wiki_entries", owner_id=owner_id, values=values, allowed=_WRITABLE)

    def get(self, entry_id: int) -> Optional[WikiEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM wiki_entries WHERE entry_id=%s AND deleted_at IS NULL", (int(entry_id),))
            row = fetchone(cur)
            return _to_entry(row) if row else None

    def get_by_slug(self, slug: str) -> Optional[WikiEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM wiki_entries WHERE slug=%s AND deleted_at IS NULL", (slug,))
            row = fetchone(cur)
            return _to_entry(row) if row else None

    def slug_taken(self, slug: str, *, exclude_id: Optional[int] = None) -> bool:
        sql = "SELECT 1 FROM wiki_entries WHERE slug=%s"
        params: list[object] = [slug]
        if exclude_id is not None:
            sql += " AND entry_id<>%s"
            params.append(int(exclude_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            return fetchone(cur) is not None

    def search(
        self,
        *,
        query: Optional[str] = None,
        category: Optional[str] = None,
        entry_type: Optional[WikiEntryType] = None,
        status: Optional[WikiStatus] = None,
        limit: int = 50,
    ) -> Sequence[WikiEntry]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if query:
            clauses.append("(title LIKE %s OR content LIKE %s)")
            like = f"%{query}%"
            params.extend([like, like])
        if category:
            clauses.append("category=%s")
            params.append(category)
        if entry_type is not None:
            clauses.append("entry_type=%s")
            params.append(entry_type.value)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM wiki_entries
                WHERE {where}
                ORDER BY view_count DESC, title
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def update(self, entry_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="wiki_entries",
                id_column="entry_id",
                row_id=entry_id,
                changes=changes,
                allowed=_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, entry_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="wiki_entries", id_column="entry_id", row_id=entry_id, deleted_by=deleted_by)

    def increment_views(self, entry_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE wiki_entries SET view_count = view_count + 1 WHERE entry_id=%s", (int(entry_id),))
