from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class Currency(str, Enum):
    EUR = "EUR"
    USD = "USD"


class CounterType(str, Enum):
    """Scope of a sequence counter."""

    INVOICE = "invoice"
    QUOTE = "quote"
    EMPLOYEE = "employee"
    COURIER = "courier"
    PARTNER = "partner"
    CUSTOMER = "customer"


class InvoiceType(str, Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    OVERDUE = "overdue"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    PAYPAL = "paypal"
    OTHER = "other"


class CollectionMethod(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    LETTER = "letter"
    LEGAL_NOTICE = "legal_notice"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    PROBATION = "probation"
    ON_LEAVE = "on_leave"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class WorkStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    AWAY = "away"
    OFFLINE = "offline"


class SessionType(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class VacationType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    UNPAID = "unpaid"
    PARENTAL = "parental"
    OTHER = "other"


class RequestStatus(str, Enum):
    """Approval workflow state (vacation requests)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class KpiStatus(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BEHIND = "behind"
    ACHIEVED = "achieved"


class KpiMetric(str, Enum):
    QUOTES_CREATED = "quotes_created"
    QUOTES_CONVERTED = "quotes_converted"
    ORDERS_PROCESSED = "orders_processed"
    ORDERS_COMPLETED = "orders_completed"
    REVENUE = "revenue"
    CONVERSION_RATE = "conversion_rate"
    COMMISSIONS_EARNED = "commissions_earned"
    CUSTOM = "custom"


class RankingMetric(str, Enum):
    ORDERS = "orders"
    REVENUE = "revenue"
    CONVERSION = "conversion"
    COMMISSIONS = "commissions"


class CommissionType(str, Enum):
    MARGIN_PERCENTAGE = "margin_percentage"
    REVENUE_PERCENTAGE = "revenue_percentage"
    FIXED_AMOUNT = "fixed_amount"
    TIERED = "tiered"


class CommissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceType(str, Enum):
    OBC = "obc"
    NFO = "nfo"
    EXPRESS = "express"
    STANDARD = "standard"
    BOTH = "both"


class PricingModel(str, Enum):
    FLAT = "flat"
    WEIGHT_BASED = "weight_based"
    DISTANCE_BASED = "distance_based"
    CUSTOM = "custom"


class PartnerStatus(str, Enum):
    """Shared by partners and couriers."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class WikiEntryType(str, Enum):
    GUIDE = "guide"
    FAQ = "faq"
    PROCEDURE = "procedure"
    REFERENCE = "reference"


class WikiStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ReminderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SNOOZED = "snoozed"
    CANCELLED = "cancelled"


class Recurrence(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class NotificationType(str, Enum):
    INFO = "info"
    REMINDER = "reminder"
    INVOICE = "invoice"
    VACATION = "vacation"
    COMMISSION = "commission"
    SYSTEM = "system"
