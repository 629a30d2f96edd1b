from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import ProjectStatus, TaskStatus
from .model import Project, Task


class ProjectRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, project_id: int, *, include_deleted: bool = False) -> Optional[Project]:
        raise NotImplementedError

    def list_projects(
        self,
        *,
        owner_id: Optional[int] = None,
        status: Optional[ProjectStatus] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Project]:
        raise NotImplementedError

    def update(self, project_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, project_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    def restore(self, project_id: int, *, restored_by: int) -> bool:
        raise NotImplementedError


class TaskRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def list_tasks(
        self,
        *,
        project_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        due_before: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[Task]:
        """Live tasks; ``due_before`` keeps only open tasks due before that day."""

        raise NotImplementedError

    def update(self, task_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, task_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    def progress_counts(self, project_id: int) -> tuple[int, int]:
        """(counted, completed) over live, non-cancelled tasks of a project."""

        raise NotImplementedError
