from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.permissions import Actor, can_edit, require_edit
from ..common.validators import optional_text, require_decimal, require_max_length, require_non_empty
from ..core.constants import MAX_TITLE_LENGTH
from ..core.enums import Priority, ProjectStatus, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Project, Task
from .repository import ProjectRepository, TaskRepository

logger = logging.getLogger(__name__)

_PROJECT_FIELDS = ("title", "description", "client_id", "status", "priority", "start_date", "due_date", "budget")
_TASK_FIELDS = ("title", "description", "priority", "due_date", "project_id", "shipment_id")


def _title(value: str) -> str:
    return require_max_length(require_non_empty(value, "Title"), "Title", MAX_TITLE_LENGTH)


def _check_dates(start: Optional[date], due: Optional[date]) -> None:
    if start and due and due < start:
        raise ValidationError("Due date cannot be before start date")


def _budget(value):
    if value is None:
        return None
    budget = require_decimal(value, "Budget")
    if budget < 0:
        raise ValidationError("Budget cannot be negative")
    return budget


def progress_percentage(counted: int, completed: int) -> int:
    if counted <= 0:
        return 0
    return int(completed * 100 // counted)


class ProjectService:
    """Projects and their tasks; project progress follows task completion."""

    def __init__(self, projects: ProjectRepository, tasks: TaskRepository, *, audit: Optional[AuditLogRepository] = None):
        self._projects = projects
        self._tasks = tasks
        self._audit = audit

    # -------- Projects --------
    def get_project(self, project_id: int) -> Project:
        project = self._projects.get(int(project_id))
        if not project:
            raise NotFoundError("Project not found")
        return project

    def list_projects(
        self,
        *,
        owner_id: Optional[int] = None,
        status: Optional[ProjectStatus] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Project]:
        return self._projects.list_projects(owner_id=owner_id, status=status, search=optional_text(search), limit=limit)

    def create_project(
        self,
        *,
        actor: Actor,
        title: str,
        description: Optional[str] = None,
        client_id: Optional[int] = None,
        status: ProjectStatus = ProjectStatus.PLANNING,
        priority: Priority = Priority.MEDIUM,
        start_date: Optional[date] = None,
        due_date: Optional[date] = None,
        budget=None,
    ) -> int:
        _check_dates(start_date, due_date)
        project_id = self._projects.create(
            owner_id=actor.user_id,
            values={
                "title": _title(title),
                "description": optional_text(description),
                "client_id": client_id,
                "status": status,
                "priority": priority,
                "start_date": start_date,
                "due_date": due_date,
                "budget": _budget(budget),
                "progress": 0,
            },
        )
        trail.record(
            self._audit,
            actor,
            action="project.created",
            entity_type="project",
            entity_id=project_id,
            description=f"Created project {title.strip()}",
        )
        return project_id

    def update_project(self, *, actor: Actor, project_id: int, changes: Mapping[str, Any]) -> Project:
        project = self.get_project(project_id)
        require_edit(actor, project.owner_id)
        unknown = set(changes) - set(_PROJECT_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = dict(changes)
        if "title" in patch:
            patch["title"] = _title(patch["title"])
        if "description" in patch:
            patch["description"] = optional_text(patch["description"])
        if "budget" in patch:
            patch["budget"] = _budget(patch["budget"])
        _check_dates(patch.get("start_date", project.start_date), patch.get("due_date", project.due_date))

        if patch and not self._projects.update(project.project_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating project failed")
        trail.record(
            self._audit,
            actor,
            action="project.updated",
            entity_type="project",
            entity_id=project.project_id,
            description=f"Updated {', '.join(sorted(patch)) or 'nothing'}",
        )
        return self.get_project(project.project_id)

    def delete_project(self, *, actor: Actor, project_id: int) -> None:
        project = self.get_project(project_id)
        require_edit(actor, project.owner_id)
        if not self._projects.soft_delete(project.project_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting project failed")
        trail.record(
            self._audit,
            actor,
            action="project.deleted",
            entity_type="project",
            entity_id=project.project_id,
            description=f"Deleted project {project.title}",
        )

    def restore_project(self, *, actor: Actor, project_id: int) -> None:
        project = self._projects.get(int(project_id), include_deleted=True)
        if not project:
            raise NotFoundError("Project not found")
        require_edit(actor, project.owner_id)
        if project.deleted_at is None:
            raise ValidationError("Project is not deleted")
        if not self._projects.restore(project.project_id, restored_by=actor.user_id):
            raise ValidationError("Restoring project failed")
        trail.record(
            self._audit,
            actor,
            action="project.restored",
            entity_type="project",
            entity_id=project.project_id,
            description=f"Restored project {project.title}",
        )

    def refresh_progress(self, project_id: Optional[int]) -> Optional[int]:
        if project_id is None:
            return None
        counted, completed = self._tasks.progress_counts(int(project_id))
        progress = progress_percentage(counted, completed)
        self._projects.update(int(project_id), changes={"progress": progress}, updated_by=None)
        return progress

    # -------- Tasks --------
    def get_task(self, task_id: int) -> Task:
        task = self._tasks.get(int(task_id))
        if not task:
            raise NotFoundError("Task not found")
        return task

    def list_tasks(
        self,
        *,
        project_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        overdue_only: bool = False,
        today: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[Task]:
        due_before = (today or now_local().date()) if overdue_only else None
        return self._tasks.list_tasks(
            project_id=project_id,
            assigned_to=assigned_to,
            status=status,
            due_before=due_before,
            limit=limit,
        )

    def create_task(
        self,
        *,
        actor: Actor,
        title: str,
        project_id: Optional[int] = None,
        shipment_id: Optional[int] = None,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        assigned_to: Optional[int] = None,
        due_date: Optional[date] = None,
    ) -> int:
        if project_id is not None:
            self.get_project(project_id)
        task_id = self._tasks.create(
            owner_id=actor.user_id,
            values={
                "project_id": project_id,
                "shipment_id": shipment_id,
                "title": _title(title),
                "description": optional_text(description),
                "priority": priority,
                "status": TaskStatus.PENDING,
                "assigned_to": assigned_to,
                "due_date": due_date,
            },
        )
        self.refresh_progress(project_id)
        trail.record(
            self._audit,
            actor,
            action="task.created",
            entity_type="task",
            entity_id=task_id,
            description=f"Created task {title.strip()}",
        )
        return task_id

    def _require_task_actor(self, actor: Actor, task: Task) -> None:
        if can_edit(actor, task.owner_id) or task.assigned_to == actor.user_id:
            return
        raise AuthorizationError("No edit permission")

    def update_task(self, *, actor: Actor, task_id: int, changes: Mapping[str, Any]) -> Task:
        task = self.get_task(task_id)
        require_edit(actor, task.owner_id)
        unknown = set(changes) - set(_TASK_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = dict(changes)
        if "title" in patch:
            patch["title"] = _title(patch["title"])
        if "description" in patch:
            patch["description"] = optional_text(patch["description"])
        if patch.get("project_id") is not None:
            self.get_project(patch["project_id"])

        if patch and not self._tasks.update(task.task_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating task failed")
        if "project_id" in patch and patch["project_id"] != task.project_id:
            self.refresh_progress(task.project_id)
            self.refresh_progress(patch["project_id"])
        return self.get_task(task.task_id)

    def assign_task(self, *, actor: Actor, task_id: int, user_id: int) -> None:
        task = self.get_task(task_id)
        require_edit(actor, task.owner_id)
        if task.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED):
            raise ValidationError("Closed tasks cannot be reassigned")
        self._tasks.update(task.task_id, changes={"assigned_to": int(user_id)}, updated_by=actor.user_id)
        trail.record(
            self._audit,
            actor,
            action="task.assigned",
            entity_type="task",
            entity_id=task.task_id,
            description=f"Assigned to user {user_id}",
        )

    def unassign_task(self, *, actor: Actor, task_id: int) -> None:
        task = self.get_task(task_id)
        require_edit(actor, task.owner_id)
        self._tasks.update(task.task_id, changes={"assigned_to": None}, updated_by=actor.user_id)

    def _set_status(self, actor: Actor, task: Task, changes: dict[str, Any]) -> None:
        if not self._tasks.update(task.task_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Updating task status failed")
        self.refresh_progress(task.project_id)
        trail.record(
            self._audit,
            actor,
            action="task.status_changed",
            entity_type="task",
            entity_id=task.task_id,
            description=f"{task.status.value} -> {changes['status'].value}",
        )

    def start_task(self, *, actor: Actor, task_id: int, now: Optional[datetime] = None) -> None:
        task = self.get_task(task_id)
        self._require_task_actor(actor, task)
        if task.status != TaskStatus.PENDING:
            raise ValidationError("Only pending tasks can be started")
        self._set_status(actor, task, {"status": TaskStatus.IN_PROGRESS, "started_at": now or now_local()})

    def complete_task(
        self,
        *,
        actor: Actor,
        task_id: int,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        task = self.get_task(task_id)
        self._require_task_actor(actor, task)
        if task.status == TaskStatus.CANCELLED:
            raise ValidationError("Cancelled tasks cannot be completed")
        if task.status == TaskStatus.COMPLETED:
            raise ValidationError("Task is already completed")
        self._set_status(
            actor,
            task,
            {"status": TaskStatus.COMPLETED, "completed_at": now or now_local(), "completion_notes": optional_text(notes)},
        )

    def cancel_task(self, *, actor: Actor, task_id: int) -> None:
        task = self.get_task(task_id)
        self._require_task_actor(actor, task)
        if task.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED):
            raise ValidationError("Task is already closed")
        self._set_status(actor, task, {"status": TaskStatus.CANCELLED})

    def delete_task(self, *, actor: Actor, task_id: int) -> None:
        task = self.get_task(task_id)
        require_edit(actor, task.owner_id)
        if not self._tasks.soft_delete(task.task_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting task failed")
        self.refresh_progress(task.project_id)
        trail.record(
            self._audit,
            actor,
            action="task.deleted",
            entity_type="task",
            entity_id=task.task_id,
            description=f"Deleted task {task.title}",
        )
