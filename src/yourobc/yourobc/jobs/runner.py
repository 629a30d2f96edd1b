"""Cron-style maintenance jobs.

Each job is safe to re-run: analytics snapshots are upserts and the
scheduled sweep only touches rows that still need processing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local, previous_month
from ..core.enums import EmployeeStatus, NotificationType
from ..core.exceptions import DomainError
from ..employees.service import EmployeeService
from ..invoices.service import InvoiceService
from ..kpis.service import KpiService
from ..notifications.service import NotificationService
from ..quotes.service import QuoteService
from ..reminders.service import ReminderService
from ..sessions.service import SessionService

logger = logging.getLogger(__name__)

_ALL_EMPLOYEES = 10000


@dataclass(frozen=True)
class AnalyticsResult:
    year: int
    month: int
    processed: int
    failed: int


@dataclass(frozen=True)
class ScheduledResult:
    reminders_notified: int
    invoices_overdue: int
    quotes_expired: int
    sessions_ended: int
    employees_away: int
    notifications_purged: int


class JobRunner:
    def __init__(
        self,
        *,
        employees: EmployeeService,
        kpis: KpiService,
        reminders: ReminderService,
        notifications: NotificationService,
        invoices: InvoiceService,
        quotes: QuoteService,
        sessions: SessionService,
    ):
        self._employees = employees
        self._kpis = kpis
        self._reminders = reminders
        self._notifications = notifications
        self._invoices = invoices
        self._quotes = quotes
        self._sessions = sessions

    def aggregate_analytics(
        self,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsResult:
        """Snapshot every active employee's month (default: the previous month)."""
        if year is None or month is None:
            year, month = previous_month((now or now_local()).date())

        processed = 0
        failed = 0
        for employee in self._employees.list_employees(status=EmployeeStatus.ACTIVE, limit=_ALL_EMPLOYEES):
            try:
                self._kpis.calculate_performance(employee_id=employee.employee_id, year=year, month=month)
                processed += 1
            except DomainError as exc:
                failed += 1
                logger.warning("Performance for employee %s failed: %s", employee.employee_id, exc)

        result = AnalyticsResult(year=year, month=month, processed=processed, failed=failed)
        logger.info("aggregate-analytics %04d-%02d: processed=%s failed=%s", year, month, processed, failed)
        return result

    def _notify_due_reminders(self, now: datetime) -> int:
        sent = 0
        for reminder in self._reminders.list_due(now=now):
            self._notifications.notify(
                user_id=reminder.recipient_id,
                title=reminder.title,
                message=f"Due {reminder.due_date:%Y-%m-%d %H:%M}",
                notification_type=NotificationType.REMINDER,
                entity_type=reminder.entity_type or "reminder",
                entity_id=reminder.entity_id if reminder.entity_id is not None else reminder.reminder_id,
            )
            self._reminders.mark_notified(reminder)
            sent += 1
        return sent

    def process_scheduled(self, *, now: Optional[datetime] = None) -> ScheduledResult:
        now = now or now_local()
        today = now.date()

        notified = self._notify_due_reminders(now)
        overdue = self._invoices.mark_overdue_invoices(today=today)
        expired = self._quotes.expire_quotes(today=today)
        sweep = self._sessions.close_inactive_sessions(now=now)
        purged = self._notifications.purge_old(now=now)

        result = ScheduledResult(
            reminders_notified=notified,
            invoices_overdue=overdue,
            quotes_expired=expired,
            sessions_ended=sweep.ended,
            employees_away=sweep.marked_away,
            notifications_purged=purged,
        )
        logger.info(
            "process-scheduled: reminders=%s overdue_invoices=%s expired_quotes=%s sessions_ended=%s purged=%s",
            notified,
            overdue,
            expired,
            sweep.ended,
            purged,
        )
        return result
