from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import KpiMetric, KpiStatus


@dataclass(frozen=True)
class Kpi:
    kpi_id: int
    public_id: str
    owner_id: int
    employee_id: int
    metric_name: str
    metric_key: KpiMetric
    year: int
    month: Optional[int]
    target_value: Decimal
    current_value: Decimal
    achievement_percentage: Decimal
    status: KpiStatus
    warning_threshold: Decimal
    critical_threshold: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class KpiTargets:
    """Monthly targets for one employee; a missing target is None."""

    target_id: int
    public_id: str
    owner_id: int
    employee_id: int
    year: int
    month: int
    quotes_target: Optional[int] = None
    orders_target: Optional[int] = None
    revenue_target: Optional[Decimal] = None
    conversion_target: Optional[Decimal] = None
    commission_target: Optional[Decimal] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class ActivityMetrics:
    quotes_created: int = 0
    quotes_converted: int = 0
    orders_processed: int = 0
    orders_completed: int = 0
    order_value: Decimal = Decimal("0.00")
    commissions_earned: Decimal = Decimal("0.00")
    commissions_paid: Decimal = Decimal("0.00")
    commissions_pending: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class PerformanceSnapshot:
    snapshot_id: int
    employee_id: int
    year: int
    month: int
    quotes_created: int
    quotes_converted: int
    orders_processed: int
    orders_completed: int
    order_value: Decimal
    average_order_value: Decimal
    conversion_rate: Decimal
    commissions_earned: Decimal
    commissions_paid: Decimal
    commissions_pending: Decimal
    quotes_achievement: Optional[Decimal] = None
    orders_achievement: Optional[Decimal] = None
    revenue_achievement: Optional[Decimal] = None
    conversion_achievement: Optional[Decimal] = None
    commission_achievement: Optional[Decimal] = None
    rank: Optional[int] = None
    calculated_at: Optional[datetime] = None


@dataclass(frozen=True)
class RankingEntry:
    rank: int
    employee_id: int
    value: Decimal
