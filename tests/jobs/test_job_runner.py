from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from src.yourobc.yourobc.core.enums import EmployeeStatus, NotificationType
from src.yourobc.yourobc.core.exceptions import NotFoundError
from src.yourobc.yourobc.jobs.runner import JobRunner
from src.yourobc.yourobc.sessions.model import SessionSweep


class FakeEmployees:
    def __init__(self, ids):
        self.ids = ids
        self.calls = []

    def list_employees(self, *, status=None, limit=200):
        self.calls.append(status)
        return [SimpleNamespace(employee_id=i) for i in self.ids]


class FakeKpis:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def calculate_performance(self, *, employee_id, year, month):
        self.calls.append((employee_id, year, month))
        if employee_id in self.failing:
            raise NotFoundError("Employee not found")


class FakeReminders:
    def __init__(self, due):
        self.due = due
        self.notified = []

    def list_due(self, *, now):
        return list(self.due)

    def mark_notified(self, reminder):
        self.notified.append(reminder.reminder_id)


class FakeNotifications:
    def __init__(self):
        self.sent = []
        self.purged_at = None

    def notify(self, **kwargs):
        self.sent.append(kwargs)
        return len(self.sent)

    def purge_old(self, *, now):
        self.purged_at = now
        return 4


class FakeInvoices:
    def mark_overdue_invoices(self, *, today):
        self.today = today
        return 2


class FakeQuotes:
    def expire_quotes(self, *, today):
        return 1


class FakeSessions:
    def close_inactive_sessions(self, *, now):
        return SessionSweep(ended=3, marked_away=5)


def _runner(**overrides):
    parts = dict(
        employees=FakeEmployees([1, 2, 3]),
        kpis=FakeKpis(),
        reminders=FakeReminders([]),
        notifications=FakeNotifications(),
        invoices=FakeInvoices(),
        quotes=FakeQuotes(),
        sessions=FakeSessions(),
    )
    parts.update(overrides)
    return JobRunner(**parts), parts


def test_aggregate_defaults_to_previous_month():
    runner, parts = _runner()

    result = runner.aggregate_analytics(now=datetime(2026, 1, 5, 2, 0))

    assert (result.year, result.month, result.processed, result.failed) == (2025, 12, 3, 0)
    assert parts["employees"].calls == [EmployeeStatus.ACTIVE]
    assert parts["kpis"].calls[0] == (1, 2025, 12)


def test_aggregate_keeps_going_after_failures():
    runner, _ = _runner(kpis=FakeKpis(failing={2}))

    result = runner.aggregate_analytics(year=2026, month=9)

    assert (result.processed, result.failed) == (2, 1)


def test_process_scheduled_runs_every_sweep(now):
    due = [
        SimpleNamespace(reminder_id=7, recipient_id=4, title="Call broker", due_date=datetime(2026, 10, 15, 10, 0), entity_type=None, entity_id=None),
        SimpleNamespace(reminder_id=8, recipient_id=3, title="Chase invoice", due_date=datetime(2026, 10, 16, 8, 0), entity_type="invoice", entity_id=12),
    ]
    runner, parts = _runner(reminders=FakeReminders(due))

    result = runner.process_scheduled(now=now)

    assert result.reminders_notified == 2
    assert result.invoices_overdue == 2
    assert result.quotes_expired == 1
    assert (result.sessions_ended, result.employees_away) == (3, 5)
    assert result.notifications_purged == 4
    assert parts["reminders"].notified == [7, 8]
    assert parts["invoices"].today == now.date()

    first, second = parts["notifications"].sent
    assert first["user_id"] == 4
    assert first["notification_type"] == NotificationType.REMINDER
    assert (first["entity_type"], first["entity_id"]) == ("reminder", 7)
    assert (second["entity_type"], second["entity_id"]) == ("invoice", 12)
    assert second["message"] == "Due 2026-10-16 08:00"


@pytest.mark.parametrize("name", ["aggregate-analytics", "process-scheduled"])
def test_run_job_dispatches(name):
    from src.yourobc.yourobc.jobs.cli import run_job

    calls = []
    runner = SimpleNamespace(
        aggregate_analytics=lambda **kw: calls.append(("aggregate-analytics", kw)),
        process_scheduled=lambda: calls.append(("process-scheduled", {})),
    )

    run_job(SimpleNamespace(job_runner=runner), name, year=2026, month=9)

    assert calls[0][0] == name


def test_run_job_rejects_unknown_name():
    from src.yourobc.yourobc.jobs.cli import run_job

    with pytest.raises(ValueError):
        run_job(SimpleNamespace(job_runner=None), "rebuild-everything")
