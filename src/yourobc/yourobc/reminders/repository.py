from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import ReminderStatus
from .model import Reminder


class ReminderRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, reminder_id: int) -> Optional[Reminder]:
        raise NotImplementedError

    def list_reminders(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[ReminderStatus] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[Reminder]:
        """``user_id`` matches the owner or the assignee."""

        raise NotImplementedError

    def list_due(self, *, now: datetime) -> Sequence[Reminder]:
        """Un-notified reminders whose alert time has passed.

        The alert time is ``snooze_until`` for snoozed reminders and
        ``reminder_date`` (falling back to ``due_date``) for pending ones.
        """

        raise NotImplementedError

    def list_overdue(self, *, now: datetime, user_id: Optional[int] = None) -> Sequence[Reminder]:
        raise NotImplementedError

    def update(self, reminder_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, reminder_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError
