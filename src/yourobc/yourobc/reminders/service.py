from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import add_months, now_local
from ..common.permissions import Actor, can_edit, require_edit
from ..common.validators import optional_text, require_max_length, require_non_empty
from ..core.constants import MAX_TITLE_LENGTH
from ..core.enums import Priority, Recurrence, ReminderStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Reminder
from .repository import ReminderRepository

logger = logging.getLogger(__name__)

_ENTITY = "reminder"
_EDITABLE_FIELDS = ("title", "description", "due_date", "reminder_date", "assigned_to", "priority")
_OPEN_STATUSES = (ReminderStatus.PENDING, ReminderStatus.SNOOZED)


def next_occurrence(value: datetime, recurrence: Recurrence, interval: int = 1) -> datetime:
    if recurrence == Recurrence.DAILY:
        return value + timedelta(days=interval)
    if recurrence == Recurrence.WEEKLY:
        return value + timedelta(weeks=interval)
    if recurrence == Recurrence.MONTHLY:
        return add_months(value, interval)
    return add_months(value, 12 * interval)


def _check_dates(due_date: datetime, reminder_date: Optional[datetime], now: datetime) -> None:
    if due_date <= now:
        raise ValidationError("Due date must be in the future")
    if reminder_date is not None and reminder_date >= due_date:
        raise ValidationError("Reminder date must be before the due date")


class ReminderService:
    def __init__(self, reminders: ReminderRepository, *, audit: Optional[AuditLogRepository] = None):
        self._reminders = reminders
        self._audit = audit

    def get_reminder(self, reminder_id: int) -> Reminder:
        reminder = self._reminders.get(int(reminder_id))
        if not reminder:
            raise NotFoundError("Reminder not found")
        return reminder

    def _require_participant(self, actor: Actor, reminder: Reminder) -> None:
        if reminder.assigned_to == actor.user_id:
            return
        if not can_edit(actor, reminder.owner_id):
            raise AuthorizationError("No edit permission")

    def _require_open(self, reminder: Reminder) -> None:
        if reminder.status not in _OPEN_STATUSES:
            raise ValidationError(f"Reminder is already {reminder.status.value}")

    def list_reminders(
        self,
        *,
        actor: Actor,
        status: Optional[ReminderStatus] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[Reminder]:
        return self._reminders.list_reminders(
            user_id=None if actor.is_admin else actor.user_id,
            status=status,
            entity_type=optional_text(entity_type),
            entity_id=entity_id,
            limit=limit,
        )

    def list_due(self, *, now: Optional[datetime] = None) -> Sequence[Reminder]:
        return self._reminders.list_due(now=now or now_local())

    def list_overdue(self, *, actor: Optional[Actor] = None, now: Optional[datetime] = None) -> Sequence[Reminder]:
        user_id = None if actor is None or actor.is_admin else actor.user_id
        return self._reminders.list_overdue(now=now or now_local(), user_id=user_id)

    def create_reminder(
        self,
        *,
        actor: Actor,
        title: str,
        due_date: datetime,
        description: Optional[str] = None,
        reminder_date: Optional[datetime] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        priority: Priority = Priority.MEDIUM,
        recurrence: Optional[Recurrence] = None,
        recurrence_interval: int = 1,
        now: Optional[datetime] = None,
    ) -> int:
        title = require_max_length(require_non_empty(title, "Title"), "Title", MAX_TITLE_LENGTH)
        _check_dates(due_date, reminder_date, now or now_local())
        if int(recurrence_interval) < 1:
            raise ValidationError("Recurrence interval must be greater than 0")
        if (entity_type is None) != (entity_id is None):
            raise ValidationError("Entity type and id must be given together")

        reminder_id = self._reminders.create(
            owner_id=actor.user_id,
            values={
                "title": title,
                "description": optional_text(description),
                "entity_type": optional_text(entity_type),
                "entity_id": entity_id,
                "due_date": due_date,
                "reminder_date": reminder_date,
                "assigned_to": assigned_to,
                "priority": priority,
                "status": ReminderStatus.PENDING,
                "recurrence": recurrence,
                "recurrence_interval": int(recurrence_interval),
            },
        )
        trail.record(self._audit, actor, action="reminder.created", entity_type=_ENTITY, entity_id=reminder_id, description=title)
        return reminder_id

    def update_reminder(
        self,
        *,
        actor: Actor,
        reminder_id: int,
        changes: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> Reminder:
        reminder = self.get_reminder(reminder_id)
        require_edit(actor, reminder.owner_id)
        self._require_open(reminder)
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = dict(changes)
        if "title" in patch:
            patch["title"] = require_max_length(require_non_empty(patch["title"], "Title"), "Title", MAX_TITLE_LENGTH)
        if "description" in patch:
            patch["description"] = optional_text(patch["description"])
        if "due_date" in patch or "reminder_date" in patch:
            due_date = patch.get("due_date", reminder.due_date)
            reminder_date = patch.get("reminder_date", reminder.reminder_date)
            _check_dates(due_date, reminder_date, now or now_local())
            patch["is_notified"] = False

        if patch and not self._reminders.update(reminder.reminder_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating reminder failed")
        trail.record(self._audit, actor, action="reminder.updated", entity_type=_ENTITY, entity_id=reminder.reminder_id, description=reminder.title)
        return self.get_reminder(reminder.reminder_id)

    def complete_reminder(
        self,
        *,
        actor: Actor,
        reminder_id: int,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        """Complete a reminder; for a recurring one, returns the id of the next occurrence."""
        reminder = self.get_reminder(reminder_id)
        self._require_participant(actor, reminder)
        self._require_open(reminder)
        now = now or now_local()

        self._reminders.update(
            reminder.reminder_id,
            changes={
                "status": ReminderStatus.COMPLETED,
                "completed_at": now,
                "completion_notes": require_max_length(optional_text(notes), "Completion notes", 1000),
                "snooze_until": None,
            },
            updated_by=actor.user_id,
        )
        trail.record(self._audit, actor, action="reminder.completed", entity_type=_ENTITY, entity_id=reminder.reminder_id, description=reminder.title)

        if reminder.recurrence is None:
            return None

        due_date = next_occurrence(reminder.due_date, reminder.recurrence, reminder.recurrence_interval)
        reminder_date = None
        if reminder.reminder_date is not None:
            reminder_date = due_date - (reminder.due_date - reminder.reminder_date)
        next_id = self._reminders.create(
            owner_id=reminder.owner_id,
            values={
                "title": reminder.title,
                "description": reminder.description,
                "entity_type": reminder.entity_type,
                "entity_id": reminder.entity_id,
                "due_date": due_date,
                "reminder_date": reminder_date,
                "assigned_to": reminder.assigned_to,
                "priority": reminder.priority,
                "status": ReminderStatus.PENDING,
                "recurrence": reminder.recurrence,
                "recurrence_interval": reminder.recurrence_interval,
            },
        )
        logger.info("Reminder %s recurs as %s on %s", reminder.reminder_id, next_id, due_date.isoformat())
        return next_id

    def snooze_reminder(self, *, actor: Actor, reminder_id: int, until: datetime, now: Optional[datetime] = None) -> None:
        reminder = self.get_reminder(reminder_id)
        self._require_participant(actor, reminder)
        self._require_open(reminder)
        if until <= (now or now_local()):
            raise ValidationError("Snooze time must be in the future")
        self._reminders.update(
            reminder.reminder_id,
            changes={"status": ReminderStatus.SNOOZED, "snooze_until": until, "is_notified": False},
            updated_by=actor.user_id,
        )
        trail.record(
            self._audit,
            actor,
            action="reminder.snoozed",
            entity_type=_ENTITY,
            entity_id=reminder.reminder_id,
            description=f"Until {until.isoformat()}",
        )

    def cancel_reminder(self, *, actor: Actor, reminder_id: int) -> None:
        reminder = self.get_reminder(reminder_id)
        require_edit(actor, reminder.owner_id)
        self._require_open(reminder)
        self._reminders.update(
            reminder.reminder_id,
            changes={"status": ReminderStatus.CANCELLED, "snooze_until": None},
            updated_by=actor.user_id,
        )
        trail.record(self._audit, actor, action="reminder.cancelled", entity_type=_ENTITY, entity_id=reminder.reminder_id, description=reminder.title)

    def delete_reminder(self, *, actor: Actor, reminder_id: int) -> None:
        reminder = self.get_reminder(reminder_id)
        require_edit(actor, reminder.owner_id)
        if not self._reminders.soft_delete(reminder.reminder_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting reminder failed")
        trail.record(self._audit, actor, action="reminder.deleted", entity_type=_ENTITY, entity_id=reminder.reminder_id, description=reminder.title)

    def mark_notified(self, reminder: Reminder) -> None:
        """Called by the scheduler once the alert went out; a woken snooze goes back to pending."""
        changes: dict[str, Any] = {"is_notified": True}
        if reminder.status == ReminderStatus.SNOOZED:
            changes.update(status=ReminderStatus.PENDING, snooze_until=None)
        self._reminders.update(reminder.reminder_id, changes=changes, updated_by=None)
