from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from src.yourobc.yourobc.core.enums import NotificationType
from src.yourobc.yourobc.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.yourobc.yourobc.notifications.model import Notification
from src.yourobc.yourobc.notifications.service import NotificationService


class FakeNotifications:
    def __init__(self, clock):
        self.clock = clock
        self.rows: dict[int, Notification] = {}

    def create(self, *, values):
        notification_id = len(self.rows) + 1
        self.rows[notification_id] = Notification(notification_id=notification_id, created_at=self.clock, **values)
        return notification_id

    def get(self, notification_id):
        return self.rows.get(int(notification_id))

    def list_for_user(self, *, user_id, unread_only=False, limit=100):
        return [n for n in self.rows.values() if n.user_id == user_id and not (unread_only and n.is_read)][:limit]

    def unread_count(self, *, user_id):
        return len(self.list_for_user(user_id=user_id, unread_only=True))

    def mark_read(self, notification_id, *, read_at):
        self.rows[notification_id] = replace(self.rows[notification_id], is_read=True, read_at=read_at)
        return True

    def mark_all_read(self, *, user_id, read_at):
        unread = self.list_for_user(user_id=user_id, unread_only=True)
        for n in unread:
            self.mark_read(n.notification_id, read_at=read_at)
        return len(unread)

    def delete_read_before(self, *, cutoff):
        old = [n.notification_id for n in self.rows.values() if n.is_read and n.created_at < cutoff]
        for notification_id in old:
            del self.rows[notification_id]
        return len(old)


@pytest.fixture
def repo(now):
    return FakeNotifications(now)


@pytest.fixture
def svc(repo):
    return NotificationService(repo, retention_days=90)


def test_notify_and_unread_count(svc, staff):
    svc.notify(user_id=staff.user_id, title="Invoice overdue", message="26100013 is overdue", notification_type=NotificationType.INVOICE)
    svc.notify(user_id=staff.user_id, title="Hello", message="Welcome")
    svc.notify(user_id=99, title="Other", message="Not yours")

    assert svc.unread_count(actor=staff) == 2
    assert svc.list_for_user(actor=staff)[0].notification_type == NotificationType.INVOICE


def test_notify_validates_text(svc, staff):
    with pytest.raises(ValidationError):
        svc.notify(user_id=staff.user_id, title=" ", message="x")
    with pytest.raises(ValidationError):
        svc.notify(user_id=staff.user_id, title="x", message="m" * 1001)


def test_mark_read_only_for_recipient(svc, staff, other_staff, now):
    notification_id = svc.notify(user_id=staff.user_id, title="Hello", message="Welcome")

    with pytest.raises(AuthorizationError):
        svc.mark_read(actor=other_staff, notification_id=notification_id)
    with pytest.raises(NotFoundError):
        svc.mark_read(actor=staff, notification_id=404)

    svc.mark_read(actor=staff, notification_id=notification_id, now=now)
    assert svc.unread_count(actor=staff) == 0


def test_mark_all_read(svc, staff, now):
    for n in range(3):
        svc.notify(user_id=staff.user_id, title=f"N{n}", message="x")

    assert svc.mark_all_read(actor=staff, now=now) == 3
    assert svc.list_for_user(actor=staff, unread_only=True) == []


def test_purge_removes_only_old_read(svc, repo, staff, now):
    repo.clock = now - timedelta(days=120)
    old_read = svc.notify(user_id=staff.user_id, title="Old read", message="x")
    old_unread = svc.notify(user_id=staff.user_id, title="Old unread", message="x")
    repo.clock = now - timedelta(days=10)
    recent_read = svc.notify(user_id=staff.user_id, title="Recent read", message="x")
    for notification_id in (old_read, recent_read):
        svc.mark_read(actor=staff, notification_id=notification_id, now=now)

    assert svc.purge_old(now=now) == 1
    assert set(repo.rows) == {old_unread, recent_read}
