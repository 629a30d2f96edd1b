from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Priority, Recurrence, ReminderStatus


@dataclass(frozen=True)
class Reminder:
    reminder_id: int
    public_id: str
    owner_id: int
    title: str
    due_date: datetime
    status: ReminderStatus
    priority: Priority = Priority.MEDIUM
    description: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    reminder_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    recurrence: Optional[Recurrence] = None
    recurrence_interval: int = 1
    snooze_until: Optional[datetime] = None
    is_notified: bool = False
    completed_at: Optional[datetime] = None
    completion_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def recipient_id(self) -> int:
        return self.assigned_to if self.assigned_to is not None else self.owner_id

    def is_overdue(self, now: datetime) -> bool:
        return self.status == ReminderStatus.PENDING and self.due_date < now
