from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional

from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .comments.mysql_comment_repository import MySQLCommentRepository
from .comments.service import CommentService
from .commissions.factory import CommissionStrategyFactory
from .commissions.mysql_commission_repository import MySQLCommissionRepository, MySQLCommissionRuleRepository
from .commissions.service import CommissionService
from .core.constants import (
    ANNUAL_VACATION_DAYS,
    INVOICE_NUMBER_INCREMENT,
    INVOICE_NUMBER_START,
    KPI_CRITICAL_THRESHOLD,
    KPI_WARNING_THRESHOLD,
    MAX_CARRYOVER_DAYS,
    SESSION_AUTO_LOGOUT_HOURS,
    SESSION_INACTIVITY_MINUTES,
)
from .counters.mysql_counter_repository import MySQLCounterRepository
from .counters.service import CounterService
from .couriers.mysql_courier_repository import MySQLCourierRepository
from .couriers.service import CourierService
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.service import EmployeeService
from .exchange_rates.mysql_exchange_rate_repository import MySQLExchangeRateRepository
from .exchange_rates.service import ExchangeRateService
from .invoices.mysql_invoice_repository import MySQLInvoiceRepository
from .invoices.service import InvoiceService
from .jobs.runner import JobRunner
from .kpis.calculator.threshold_evaluator import ThresholdKpiEvaluator
from .kpis.mysql_kpi_repository import MySQLKpiRepository
from .kpis.service import KpiService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .partners.mysql_partner_repository import MySQLPartnerRepository
from .partners.service import PartnerService
from .projects.mysql_project_repository import MySQLProjectRepository, MySQLTaskRepository
from .projects.service import ProjectService
from .quotes.mysql_quote_repository import MySQLQuoteRepository
from .quotes.service import QuoteService
from .reminders.mysql_reminder_repository import MySQLReminderRepository
from .reminders.service import ReminderService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.service import SessionService, WorkHoursReportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService
from .vacations.mysql_vacation_repository import MySQLVacationRepository
from .vacations.service import VacationService
from .wiki.mysql_wiki_repository import MySQLWikiRepository
from .wiki.service import WikiService


@dataclass(frozen=True)
class Settings:
    """Business tunables read from the active settings module."""

    invoice_number_prefix: str = ""
    invoice_number_start: int = INVOICE_NUMBER_START
    invoice_number_increment: int = INVOICE_NUMBER_INCREMENT
    kpi_warning_threshold: Decimal = KPI_WARNING_THRESHOLD
    kpi_critical_threshold: Decimal = KPI_CRITICAL_THRESHOLD
    session_inactivity_minutes: int = SESSION_INACTIVITY_MINUTES
    session_auto_logout_hours: int = SESSION_AUTO_LOGOUT_HOURS
    annual_vacation_days: int = ANNUAL_VACATION_DAYS
    max_carryover_days: int = MAX_CARRYOVER_DAYS

    @classmethod
    def from_module(cls, settings: Any) -> "Settings":
        defaults = cls()
        return cls(
            invoice_number_prefix=str(getattr(settings, "INVOICE_NUMBER_PREFIX", defaults.invoice_number_prefix)),
            invoice_number_start=int(getattr(settings, "INVOICE_NUMBER_START", defaults.invoice_number_start)),
            invoice_number_increment=int(getattr(settings, "INVOICE_NUMBER_INCREMENT", defaults.invoice_number_increment)),
            kpi_warning_threshold=Decimal(str(getattr(settings, "KPI_WARNING_THRESHOLD", defaults.kpi_warning_threshold))),
            kpi_critical_threshold=Decimal(str(getattr(settings, "KPI_CRITICAL_THRESHOLD", defaults.kpi_critical_threshold))),
            session_inactivity_minutes=int(getattr(settings, "SESSION_INACTIVITY_MINUTES", defaults.session_inactivity_minutes)),
            session_auto_logout_hours=int(getattr(settings, "SESSION_AUTO_LOGOUT_HOURS", defaults.session_auto_logout_hours)),
            annual_vacation_days=int(getattr(settings, "ANNUAL_VACATION_DAYS", defaults.annual_vacation_days)),
            max_carryover_days=int(getattr(settings, "MAX_CARRYOVER_DAYS", defaults.max_carryover_days)),
        )


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    audit_repo: MySQLAuditLogRepository

    auth_service: AuthService
    user_service: UserService
    counter_service: CounterService
    invoice_service: InvoiceService
    employee_service: EmployeeService
    session_service: SessionService
    work_hours_report_service: WorkHoursReportService
    vacation_service: VacationService
    kpi_service: KpiService
    commission_service: CommissionService
    project_service: ProjectService
    courier_service: CourierService
    partner_service: PartnerService
    quote_service: QuoteService
    exchange_rate_service: ExchangeRateService
    wiki_service: WikiService
    comment_service: CommentService
    reminder_service: ReminderService
    notification_service: NotificationService
    job_runner: JobRunner

    settings: Settings = field(default_factory=Settings)


def build_container(*, db_config: Mapping[str, Any], settings: Optional[Settings] = None) -> Container:
    settings = settings or Settings()
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(dict(db_config)))

    audit_repo = MySQLAuditLogRepository(conn)
    users_repo = MySQLUserRepository(conn)
    employees_repo = MySQLEmployeeRepository(conn)
    invoices_repo = MySQLInvoiceRepository(conn)

    counter_service = CounterService(
        MySQLCounterRepository(conn),
        invoice_prefix=settings.invoice_number_prefix,
        invoice_start=settings.invoice_number_start,
        invoice_increment=settings.invoice_number_increment,
    )
    invoice_service = InvoiceService(invoices_repo, counter_service, audit=audit_repo)
    employee_service = EmployeeService(employees_repo, counter_service, audit=audit_repo)

    sessions_repo = MySQLSessionRepository(conn)
    session_service = SessionService(
        sessions_repo,
        employees_repo,
        inactivity_minutes=settings.session_inactivity_minutes,
        auto_logout_hours=settings.session_auto_logout_hours,
    )
    vacation_service = VacationService(
        MySQLVacationRepository(conn),
        employees_repo,
        annual_days=settings.annual_vacation_days,
        max_carryover=settings.max_carryover_days,
        audit=audit_repo,
    )
    kpi_service = KpiService(
        MySQLKpiRepository(conn),
        employees_repo,
        evaluator=ThresholdKpiEvaluator(),
        warning_threshold=settings.kpi_warning_threshold,
        critical_threshold=settings.kpi_critical_threshold,
        audit=audit_repo,
    )
    commission_service = CommissionService(
        MySQLCommissionRuleRepository(conn),
        MySQLCommissionRepository(conn),
        employees_repo,
        invoices=invoices_repo,
        factory=CommissionStrategyFactory(),
        audit=audit_repo,
    )
    quote_service = QuoteService(MySQLQuoteRepository(conn), counter_service, audit=audit_repo)
    reminder_service = ReminderService(MySQLReminderRepository(conn), audit=audit_repo)
    notification_service = NotificationService(MySQLNotificationRepository(conn))

    return Container(
        conn=conn,
        audit_repo=audit_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        counter_service=counter_service,
        invoice_service=invoice_service,
        employee_service=employee_service,
        session_service=session_service,
        work_hours_report_service=WorkHoursReportService(sessions_repo),
        vacation_service=vacation_service,
        kpi_service=kpi_service,
        commission_service=commission_service,
        project_service=ProjectService(MySQLProjectRepository(conn), MySQLTaskRepository(conn), audit=audit_repo),
        courier_service=CourierService(MySQLCourierRepository(conn), counter_service, audit=audit_repo),
        partner_service=PartnerService(MySQLPartnerRepository(conn), counter_service, audit=audit_repo),
        quote_service=quote_service,
        exchange_rate_service=ExchangeRateService(MySQLExchangeRateRepository(conn), audit=audit_repo),
        wiki_service=WikiService(MySQLWikiRepository(conn), audit=audit_repo),
        comment_service=CommentService(MySQLCommentRepository(conn), audit=audit_repo),
        reminder_service=reminder_service,
        notification_service=notification_service,
        job_runner=JobRunner(
            employees=employee_service,
            kpis=kpi_service,
            reminders=reminder_service,
            notifications=notification_service,
            invoices=invoice_service,
            quotes=quote_service,
            sessions=session_service,
        ),
        settings=settings,
    )
