from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Priority, ProjectStatus, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    insert_owned_row,
    optional_decimal,
    restore_row,
    soft_delete_row,
    update_columns,
)
from .model import Project, Task
from .repository import ProjectRepository, TaskRepository

_PROJECT_COLUMNS = (
    "project_id, public_id, owner_id, title, description, client_id, status, priority, start_date, due_date, "
    "budget, progress, created_at, updated_at, deleted_at"
)
_PROJECT_WRITABLE = (
    "title",
    "description",
    "client_id",
    "status",
    "priority",
    "start_date",
    "due_date",
    "budget",
    "progress",
)

_TASK_COLUMNS = (
    "task_id, public_id, owner_id, project_id, shipment_id, title, description, priority, status, assigned_to, "
    "due_date, started_at, completed_at, completion_notes, created_at, updated_at, deleted_at"
)
_TASK_WRITABLE = (
    "project_id",
    "shipment_id",
    "title",
    "description",
    "priority",
    "status",
    "assigned_to",
    "due_date",
    "started_at",
    "completed_at",
    "completion_notes",
)


def _to_project(r: dict) -> Project:
    return Project(
        project_id=int(r["project_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        title=r["title"],
        description=r.get("description"),
        client_id=r.get("client_id"),
        status=ProjectStatus(r["status"]),
        priority=Priority(r["priority"]),
        start_date=r.get("start_date"),
        due_date=r.get("due_date"),
        budget=optional_decimal(r.get("budget")),
        progress=int(r.get("progress") or 0),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


def _to_task(r: dict) -> Task:
    return Task(
        task_id=int(r["task_id"]),
        public_id=r["public_id"],
        owner_id=int(r["owner_id"]),
        project_id=r.get("project_id"),
        shipment_id=r.get("shipment_id"),
        title=r["title"],
        description=r.get("description"),
        priority=Priority(r["priority"]),
        status=TaskStatus(r["status"]),
        assigned_to=r.get("assigned_to"),
        due_date=r.get("due_date"),
        started_at=r.get("started_at"),
        completed_at=r.get("completed_at"),
        completion_notes=r.get("completion_notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="projects", owner_id=owner_id, values=values, allowed=_PROJECT_WRITABLE)

    def get(self, project_id: int, *, include_deleted: bool = False) -> Optional[Project]:
        sql = f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE project_id=%s"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(project_id),))
            row = fetchone(cur)
            return _to_project(row) if row else None

    def list_projects(
        self,
        *,
        owner_id: Optional[int] = None,
        status: Optional[ProjectStatus] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Project]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if owner_id is not None:
            clauses.append("owner_id=%s")
            params.append(int(owner_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if search:
            clauses.append("(title LIKE %s OR description LIKE %s)")
            like = f"%{search}%"
            params.extend([like, like])

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PROJECT_COLUMNS}
                FROM projects
                WHERE {where}
                ORDER BY due_date IS NULL, due_date, project_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_project(r) for r in fetchall(cur)]

    def update(self, project_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="projects",
                id_column="project_id",
                row_id=project_id,
                changes=changes,
                allowed=_PROJECT_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, project_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="projects", id_column="project_id", row_id=project_id, deleted_by=deleted_by)

    def restore(self, project_id: int, *, restored_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return restore_row(cur, table="projects", id_column="project_id", row_id=project_id, restored_by=restored_by)


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_owned_row(cur, table="tasks", owner_id=owner_id, values=values, allowed=_TASK_WRITABLE)

    def get(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id=%s AND deleted_at IS NULL", (int(task_id),))
            row = fetchone(cur)
            return _to_task(row) if row else None

    def list_tasks(
        self,
        *,
        project_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        due_before: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[Task]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(int(project_id))
        if assigned_to is not None:
            clauses.append("assigned_to=%s")
            params.append(int(assigned_to))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if due_before is not None:
            clauses.append("due_date < %s AND status IN (%s, %s)")
            params.extend([due_before, TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value])

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TASK_COLUMNS}
                FROM tasks
                WHERE {where}
                ORDER BY due_date IS NULL, due_date, task_id
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_task(r) for r in fetchall(cur)]

    def update(self, task_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_columns(
                cur,
                table="tasks",
                id_column="task_id",
                row_id=task_id,
                changes=changes,
                allowed=_TASK_WRITABLE,
                updated_by=updated_by,
            )

    def soft_delete(self, task_id: int, *, deleted_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return soft_delete_row(cur, table="tasks", id_column="task_id", row_id=task_id, deleted_by=deleted_by)

    def progress_counts(self, project_id: int) -> tuple[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS counted,
                       COALESCE(SUM(CASE WHEN status=%s THEN 1 ELSE 0 END), 0) AS completed
                FROM tasks
                WHERE project_id=%s AND status<>%s AND deleted_at IS NULL
                """,
                (TaskStatus.COMPLETED.value, int(project_id), TaskStatus.CANCELLED.value),
            )
            row = fetchone(cur) or {}
            return int(row.get("counted") or 0), int(row.get("completed") or 0)
