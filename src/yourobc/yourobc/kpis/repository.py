from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import KpiStatus
from .model import ActivityMetrics, Kpi, KpiTargets, PerformanceSnapshot


class KpiRepository(Protocol):
    # KPI records
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, kpi_id: int) -> Optional[Kpi]:
        raise NotImplementedError

    def list_kpis(
        self,
        *,
        employee_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        status: Optional[KpiStatus] = None,
        limit: int = 200,
    ) -> Sequence[Kpi]:
        raise NotImplementedError

    def update(self, kpi_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, kpi_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    # Monthly targets
    def upsert_targets(self, *, owner_id: int, employee_id: int, year: int, month: int, values: Mapping[str, Any]) -> int:
        """Insert or replace the (employee, year, month) targets, reviving a deleted row."""

        raise NotImplementedError

    def get_targets(self, *, employee_id: int, year: int, month: int) -> Optional[KpiTargets]:
        raise NotImplementedError

    def soft_delete_targets(self, target_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    # Performance
    def collect_metrics(self, *, employee_id: int, user_id: Optional[int], start: date, end: date) -> ActivityMetrics:
        """Aggregate quotes, invoices and commissions dated within [start, end]."""

        raise NotImplementedError

    def save_snapshot(self, *, employee_id: int, year: int, month: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def list_snapshots(self, *, year: int, month: int) -> Sequence[PerformanceSnapshot]:
        raise NotImplementedError

    def set_rank(self, snapshot_id: int, *, rank: int) -> bool:
        raise NotImplementedError
