from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import Priority, ProjectStatus, TaskStatus


@dataclass(frozen=True)
class Project:
    project_id: int
    public_id: str
    owner_id: int
    title: str
    status: ProjectStatus
    priority: Priority
    description: Optional[str] = None
    client_id: Optional[int] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    budget: Optional[Decimal] = None
    progress: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Task:
    task_id: int
    public_id: str
    owner_id: int
    title: str
    status: TaskStatus
    priority: Priority
    project_id: Optional[int] = None
    shipment_id: Optional[int] = None
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    due_date: Optional[date] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completion_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    def is_overdue(self, today: date) -> bool:
        if self.due_date is None:
            return False
        return self.due_date < today and self.status not in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)
