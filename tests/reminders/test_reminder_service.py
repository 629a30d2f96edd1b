from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from src.yourobc.yourobc.core.enums import Recurrence, ReminderStatus
from src.yourobc.yourobc.core.exceptions import AuthorizationError, ValidationError
from src.yourobc.yourobc.reminders.model import Reminder
from src.yourobc.yourobc.reminders.service import ReminderService, next_occurrence


class FakeReminders:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Reminder] = {}

    def create(self, *, owner_id, values):
        reminder_id = self._next_id
        self._next_id += 1
        self.rows[reminder_id] = Reminder(reminder_id=reminder_id, public_id=f"rem-{reminder_id}", owner_id=owner_id, **values)
        return reminder_id

    def get(self, reminder_id):
        reminder = self.rows.get(int(reminder_id))
        return reminder if reminder and reminder.deleted_at is None else None

    def _live(self):
        return [r for r in self.rows.values() if r.deleted_at is None]

    def list_reminders(self, *, user_id=None, status=None, entity_type=None, entity_id=None, limit=200):
        return [r for r in self._live() if user_id is None or user_id in (r.owner_id, r.assigned_to)]

    def list_due(self, *, now):
        due = []
        for r in self._live():
            if r.is_notified:
                continue
            if r.status == ReminderStatus.PENDING and (r.reminder_date or r.due_date) <= now:
                due.append(r)
            elif r.status == ReminderStatus.SNOOZED and r.snooze_until <= now:
                due.append(r)
        return due

    def list_overdue(self, *, now, user_id=None):
        return [
            r for r in self._live() if r.is_overdue(now) and (user_id is None or user_id in (r.owner_id, r.assigned_to))
        ]

    def update(self, reminder_id, *, changes, updated_by):
        self.rows[reminder_id] = replace(self.rows[reminder_id], **changes)
        return True

    def soft_delete(self, reminder_id, *, deleted_by):
        self.rows[reminder_id] = replace(self.rows[reminder_id], deleted_at=datetime(2026, 10, 16))
        return True


@pytest.fixture
def reminders():
    return FakeReminders()


@pytest.fixture
def svc(reminders, audit):
    return ReminderService(reminders, audit=audit)


def _create(svc, actor, now, **overrides):
    kwargs = dict(actor=actor, title="Call customs broker", due_date=now + timedelta(days=2), now=now)
    kwargs.update(overrides)
    return svc.create_reminder(**kwargs)


@pytest.mark.parametrize(
    "recurrence, interval, expected",
    [
        (Recurrence.DAILY, 3, datetime(2026, 2, 1, 9, 0)),
        (Recurrence.WEEKLY, 1, datetime(2026, 2, 5, 9, 0)),
        (Recurrence.MONTHLY, 1, datetime(2026, 2, 28, 9, 0)),
        (Recurrence.YEARLY, 2, datetime(2028, 1, 29, 9, 0)),
    ],
)
def test_next_occurrence(recurrence, interval, expected):
    assert next_occurrence(datetime(2026, 1, 29, 9, 0), recurrence, interval) == expected


def test_create_reminder_validation(svc, staff, now):
    with pytest.raises(ValidationError, match="future"):
        _create(svc, staff, now, due_date=now - timedelta(minutes=1))
    with pytest.raises(ValidationError, match="before the due date"):
        _create(svc, staff, now, reminder_date=now + timedelta(days=3))
    with pytest.raises(ValidationError):
        _create(svc, staff, now, entity_type="invoice")
    with pytest.raises(ValidationError):
        _create(svc, staff, now, recurrence=Recurrence.DAILY, recurrence_interval=0)


def test_assignee_can_complete_but_not_edit(svc, staff, other_staff, now):
    reminder_id = _create(svc, staff, now, assigned_to=other_staff.user_id)

    with pytest.raises(AuthorizationError):
        svc.update_reminder(actor=other_staff, reminder_id=reminder_id, changes={"title": "Mine"}, now=now)
    assert svc.complete_reminder(actor=other_staff, reminder_id=reminder_id, notes="done", now=now) is None

    reminder = svc.get_reminder(reminder_id)
    assert reminder.status == ReminderStatus.COMPLETED
    assert reminder.completed_at == now
    with pytest.raises(ValidationError, match="already completed"):
        svc.cancel_reminder(actor=staff, reminder_id=reminder_id)


def test_outsider_cannot_complete(svc, staff, other_staff, now):
    reminder_id = _create(svc, staff, now)

    with pytest.raises(AuthorizationError):
        svc.complete_reminder(actor=other_staff, reminder_id=reminder_id, now=now)


def test_completing_recurring_reminder_schedules_next(svc, reminders, staff, now):
    due = datetime(2026, 10, 31, 10, 0)
    reminder_id = _create(
        svc,
        staff,
        now,
        due_date=due,
        reminder_date=due - timedelta(hours=4),
        recurrence=Recurrence.MONTHLY,
    )

    next_id = svc.complete_reminder(actor=staff, reminder_id=reminder_id, now=now)

    upcoming = reminders.rows[next_id]
    assert upcoming.status == ReminderStatus.PENDING
    assert upcoming.due_date == datetime(2026, 11, 30, 10, 0)
    assert upcoming.reminder_date == datetime(2026, 11, 30, 6, 0)
    assert upcoming.recurrence == Recurrence.MONTHLY


def test_snooze_then_due_then_notified(svc, staff, now):
    reminder_id = _create(svc, staff, now, reminder_date=now + timedelta(hours=1))

    later = now + timedelta(hours=2)
    assert [r.reminder_id for r in svc.list_due(now=later)] == [reminder_id]

    with pytest.raises(ValidationError):
        svc.snooze_reminder(actor=staff, reminder_id=reminder_id, until=now, now=now)
    svc.snooze_reminder(actor=staff, reminder_id=reminder_id, until=now + timedelta(hours=3), now=now)

    snoozed = svc.get_reminder(reminder_id)
    assert snoozed.status == ReminderStatus.SNOOZED
    assert svc.list_due(now=later) == []

    woken = svc.list_due(now=now + timedelta(hours=3))
    assert [r.reminder_id for r in woken] == [reminder_id]
    svc.mark_notified(woken[0])

    reminder = svc.get_reminder(reminder_id)
    assert reminder.status == ReminderStatus.PENDING
    assert reminder.is_notified is True
    assert reminder.snooze_until is None
    assert svc.list_due(now=now + timedelta(hours=4)) == []


def test_rescheduling_resets_notified(svc, staff, now):
    reminder_id = _create(svc, staff, now)
    svc.mark_notified(svc.get_reminder(reminder_id))

    updated = svc.update_reminder(
        actor=staff, reminder_id=reminder_id, changes={"due_date": now + timedelta(days=5)}, now=now
    )

    assert updated.is_notified is False


def test_overdue_listing_is_scoped(svc, staff, other_staff, admin, now):
    mine = _create(svc, staff, now)
    _create(svc, other_staff, now)
    later = now + timedelta(days=3)

    assert [r.reminder_id for r in svc.list_overdue(actor=staff, now=later)] == [mine]
    assert len(svc.list_overdue(actor=admin, now=later)) == 2
    assert len(svc.list_reminders(actor=other_staff)) == 1
