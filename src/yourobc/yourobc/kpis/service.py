from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import month_bounds
from ..common.permissions import Actor, require_edit, require_manager
from ..common.validators import require_decimal, require_max_length, require_non_empty, require_positive
from ..core.constants import KPI_CRITICAL_THRESHOLD, KPI_WARNING_THRESHOLD
from ..core.enums import KpiMetric, KpiStatus, RankingMetric
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .calculator.base import KpiEvaluator
from .calculator.threshold_evaluator import ThresholdKpiEvaluator, achievement_percentage
from .model import ActivityMetrics, Kpi, KpiTargets, PerformanceSnapshot, RankingEntry
from .repository import KpiRepository

logger = logging.getLogger(__name__)

_ENTITY = "kpi"
_ZERO = Decimal("0.00")
_CENT = Decimal("0.01")


def validate_thresholds(warning, critical) -> tuple[Decimal, Decimal]:
    warning = require_decimal(warning, "Warning threshold")
    critical = require_decimal(critical, "Critical threshold")
    if not (Decimal(0) <= critical <= warning <= Decimal(100)):
        raise ValidationError("Thresholds must satisfy 0 <= critical <= warning <= 100")
    return warning, critical


def _validate_period(year: int, month: Optional[int]) -> None:
    if year < 2000 or year > 2100:
        raise ValidationError("Year is out of range")
    if month is not None and not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")


def _current_value(value) -> Decimal:
    number = require_decimal(value, "Current value")
    if number < 0:
        raise ValidationError("Current value cannot be negative")
    return number


def metric_values(metrics: ActivityMetrics) -> dict[KpiMetric, Decimal]:
    """Current values for every metric key that can be derived from activity."""
    conversion = _ZERO
    if metrics.quotes_created:
        conversion = (Decimal(metrics.quotes_converted) / Decimal(metrics.quotes_created) * 100).quantize(
            _CENT, rounding=ROUND_HALF_UP
        )
    return {
        KpiMetric.QUOTES_CREATED: Decimal(metrics.quotes_created),
        KpiMetric.QUOTES_CONVERTED: Decimal(metrics.quotes_converted),
        KpiMetric.ORDERS_PROCESSED: Decimal(metrics.orders_processed),
        KpiMetric.ORDERS_COMPLETED: Decimal(metrics.orders_completed),
        KpiMetric.REVENUE: metrics.order_value,
        KpiMetric.CONVERSION_RATE: conversion,
        KpiMetric.COMMISSIONS_EARNED: metrics.commissions_earned,
    }


def _target_achievement(current, target) -> Optional[Decimal]:
    if target is None or Decimal(str(target)) <= 0:
        return None
    return achievement_percentage(current, target)


_RANK_KEYS = {
    RankingMetric.ORDERS: lambda s: Decimal(s.orders_processed),
    RankingMetric.REVENUE: lambda s: s.order_value,
    RankingMetric.CONVERSION: lambda s: s.conversion_rate,
    RankingMetric.COMMISSIONS: lambda s: s.commissions_earned,
}


class KpiService:
    def __init__(
        self,
        kpis: KpiRepository,
        employees: EmployeeRepository,
        *,
        evaluator: Optional[KpiEvaluator] = None,
        warning_threshold=KPI_WARNING_THRESHOLD,
        critical_threshold=KPI_CRITICAL_THRESHOLD,
        audit: Optional[AuditLogRepository] = None,
    ):
        self._kpis = kpis
        self._employees = employees
        self._evaluator = evaluator or ThresholdKpiEvaluator()
        self._default_warning, self._default_critical = validate_thresholds(warning_threshold, critical_threshold)
        self._audit = audit

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _evaluate(self, *, current: Decimal, target: Decimal, warning: Decimal, critical: Decimal) -> dict[str, Any]:
        result = self._evaluator.evaluate(
            current_value=current,
            target_value=target,
            warning_threshold=warning,
            critical_threshold=critical,
        )
        return {"achievement_percentage": result.achievement_percentage, "status": result.status}

    # -------- KPI records --------
    def get_kpi(self, kpi_id: int) -> Kpi:
        kpi = self._kpis.get(int(kpi_id))
        if not kpi:
            raise NotFoundError("KPI not found")
        return kpi

    def list_kpis(
        self,
        *,
        employee_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        status: Optional[KpiStatus] = None,
        limit: int = 200,
    ) -> Sequence[Kpi]:
        return self._kpis.list_kpis(employee_id=employee_id, year=year, month=month, status=status, limit=limit)

    def create_kpi(
        self,
        *,
        actor: Actor,
        employee_id: int,
        metric_name: str,
        metric_key: KpiMetric,
        year: int,
        month: Optional[int],
        target_value,
        current_value=0,
        warning_threshold=None,
        critical_threshold=None,
    ) -> int:
        require_manager(actor)
        employee = self._employee(employee_id)
        _validate_period(int(year), month)
        target = require_positive(target_value, "Target value")
        current = _current_value(current_value)
        warning, critical = validate_thresholds(
            self._default_warning if warning_threshold is None else warning_threshold,
            self._default_critical if critical_threshold is None else critical_threshold,
        )

        kpi_id = self._kpis.create(
            owner_id=actor.user_id,
            values={
                "employee_id": employee.employee_id,
                "metric_name": require_max_length(require_non_empty(metric_name, "Metric name"), "Metric name", 100),
                "metric_key": metric_key,
                "year": int(year),
                "month": month,
                "target_value": target,
                "current_value": current,
                "warning_threshold": warning,
                "critical_threshold": critical,
                **self._evaluate(current=current, target=target, warning=warning, critical=critical),
            },
        )
        trail.record(
            self._audit,
            actor,
            action="kpi.created",
            entity_type=_ENTITY,
            entity_id=kpi_id,
            description=f"{metric_key.value} target {target} for employee {employee.employee_id}",
        )
        return kpi_id

    def update_kpi(
        self,
        *,
        actor: Actor,
        kpi_id: int,
        target_value=None,
        warning_threshold=None,
        critical_threshold=None,
    ) -> Kpi:
        kpi = self.get_kpi(kpi_id)
        require_edit(actor, kpi.owner_id)

        target = kpi.target_value if target_value is None else require_positive(target_value, "Target value")
        warning, critical = validate_thresholds(
            kpi.warning_threshold if warning_threshold is None else warning_threshold,
            kpi.critical_threshold if critical_threshold is None else critical_threshold,
        )
        changes = {
            "target_value": target,
            "warning_threshold": warning,
            "critical_threshold": critical,
            **self._evaluate(current=kpi.current_value, target=target, warning=warning, critical=critical),
        }
        if not self._kpis.update(kpi.kpi_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Updating KPI failed")
        trail.record(
            self._audit,
            actor,
            action="kpi.updated",
            entity_type=_ENTITY,
            entity_id=kpi.kpi_id,
            description=f"Target {target}, thresholds {warning}/{critical}",
        )
        return self.get_kpi(kpi.kpi_id)

    def update_kpi_value(self, *, actor: Actor, kpi_id: int, current_value) -> Kpi:
        kpi = self.get_kpi(kpi_id)
        require_edit(actor, kpi.owner_id)
        current = _current_value(current_value)
        changes = {
            "current_value": current,
            **self._evaluate(
                current=current,
                target=kpi.target_value,
                warning=kpi.warning_threshold,
                critical=kpi.critical_threshold,
            ),
        }
        if not self._kpis.update(kpi.kpi_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Updating KPI value failed")
        return self.get_kpi(kpi.kpi_id)

    def delete_kpi(self, *, actor: Actor, kpi_id: int) -> None:
        kpi = self.get_kpi(kpi_id)
        require_edit(actor, kpi.owner_id)
        if not self._kpis.soft_delete(kpi.kpi_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting KPI failed")
        trail.record(
            self._audit,
            actor,
            action="kpi.deleted",
            entity_type=_ENTITY,
            entity_id=kpi.kpi_id,
            description=f"Deleted KPI {kpi.metric_name}",
        )

    # -------- Targets --------
    def set_targets(
        self,
        *,
        actor: Actor,
        employee_id: int,
        year: int,
        month: int,
        quotes_target: Optional[int] = None,
        orders_target: Optional[int] = None,
        revenue_target=None,
        conversion_target=None,
        commission_target=None,
    ) -> int:
        require_manager(actor)
        employee = self._employee(employee_id)
        _validate_period(int(year), int(month))

        for label, value in (("Quotes target", quotes_target), ("Orders target", orders_target)):
            if value is not None and int(value) < 0:
                raise ValidationError(f"{label} cannot be negative")
        revenue = None if revenue_target is None else require_decimal(revenue_target, "Revenue target")
        conversion = None if conversion_target is None else require_decimal(conversion_target, "Conversion target")
        commission = None if commission_target is None else require_decimal(commission_target, "Commission target")
        if conversion is not None and not Decimal(0) <= conversion <= Decimal(100):
            raise ValidationError("Conversion target must be between 0 and 100")
        if (revenue is not None and revenue < 0) or (commission is not None and commission < 0):
            raise ValidationError("Targets cannot be negative")

        target_id = self._kpis.upsert_targets(
            owner_id=actor.user_id,
            employee_id=employee.employee_id,
            year=int(year),
            month=int(month),
            values={
                "quotes_target": None if quotes_target is None else int(quotes_target),
                "orders_target": None if orders_target is None else int(orders_target),
                "revenue_target": revenue,
                "conversion_target": conversion,
                "commission_target": commission,
            },
        )
        trail.record(
            self._audit,
            actor,
            action="kpi_targets.saved",
            entity_type="kpi_targets",
            entity_id=target_id,
            description=f"Targets {year}-{int(month):02d} for employee {employee.employee_id}",
        )
        return target_id

    def get_targets(self, *, employee_id: int, year: int, month: int) -> KpiTargets:
        targets = self._kpis.get_targets(employee_id=int(employee_id), year=int(year), month=int(month))
        if not targets:
            raise NotFoundError("Targets not found")
        return targets

    def delete_targets(self, *, actor: Actor, employee_id: int, year: int, month: int) -> None:
        targets = self.get_targets(employee_id=employee_id, year=year, month=month)
        require_edit(actor, targets.owner_id)
        if not self._kpis.soft_delete_targets(targets.target_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting targets failed")

    # -------- Performance --------
    def calculate_performance(self, *, employee_id: int, year: int, month: int, actor: Optional[Actor] = None) -> int:
        """Aggregate one employee's month into a snapshot and refresh matching KPI values."""
        if actor is not None:
            require_manager(actor)
        employee = self._employee(employee_id)
        _validate_period(int(year), int(month))
        start, end = month_bounds(int(year), int(month))

        metrics = self._kpis.collect_metrics(
            employee_id=employee.employee_id,
            user_id=employee.user_id,
            start=start,
            end=end,
        )
        values = metric_values(metrics)
        average = _ZERO
        if metrics.orders_processed:
            average = (metrics.order_value / Decimal(metrics.orders_processed)).quantize(_CENT, rounding=ROUND_HALF_UP)

        targets = self._kpis.get_targets(employee_id=employee.employee_id, year=int(year), month=int(month))
        snapshot_id = self._kpis.save_snapshot(
            employee_id=employee.employee_id,
            year=int(year),
            month=int(month),
            values={
                "quotes_created": metrics.quotes_created,
                "quotes_converted": metrics.quotes_converted,
                "orders_processed": metrics.orders_processed,
                "orders_completed": metrics.orders_completed,
                "order_value": metrics.order_value,
                "average_order_value": average,
                "conversion_rate": values[KpiMetric.CONVERSION_RATE],
                "commissions_earned": metrics.commissions_earned,
                "commissions_paid": metrics.commissions_paid,
                "commissions_pending": metrics.commissions_pending,
                "quotes_achievement": _target_achievement(metrics.quotes_created, targets and targets.quotes_target),
                "orders_achievement": _target_achievement(metrics.orders_processed, targets and targets.orders_target),
                "revenue_achievement": _target_achievement(metrics.order_value, targets and targets.revenue_target),
                "conversion_achievement": _target_achievement(
                    values[KpiMetric.CONVERSION_RATE], targets and targets.conversion_target
                ),
                "commission_achievement": _target_achievement(
                    metrics.commissions_earned, targets and targets.commission_target
                ),
            },
        )

        refreshed = 0
        for kpi in self._kpis.list_kpis(employee_id=employee.employee_id, year=int(year), month=int(month)):
            current = values.get(kpi.metric_key)
            if current is None:
                continue
            changes = {
                "current_value": current,
                **self._evaluate(
                    current=current,
                    target=kpi.target_value,
                    warning=kpi.warning_threshold,
                    critical=kpi.critical_threshold,
                ),
            }
            if self._kpis.update(kpi.kpi_id, changes=changes, updated_by=actor.user_id if actor else None):
                refreshed += 1

        logger.info(
            "Performance %s-%02d employee=%s snapshot=%s kpis_refreshed=%s",
            year,
            int(month),
            employee.employee_id,
            snapshot_id,
            refreshed,
        )
        return snapshot_id

    def rankings(self, *, year: int, month: int, by: RankingMetric = RankingMetric.REVENUE) -> list[RankingEntry]:
        """Rank the month's snapshots by ``by``, highest first, and store the ranks."""
        key = _RANK_KEYS[by]
        snapshots: list[PerformanceSnapshot] = sorted(
            self._kpis.list_snapshots(year=int(year), month=int(month)),
            key=lambda s: (-key(s), s.employee_id),
        )
        entries: list[RankingEntry] = []
        for rank, snapshot in enumerate(snapshots, start=1):
            if snapshot.rank != rank:
                self._kpis.set_rank(snapshot.snapshot_id, rank=rank)
            entries.append(RankingEntry(rank=rank, employee_id=snapshot.employee_id, value=key(snapshot)))
        return entries
