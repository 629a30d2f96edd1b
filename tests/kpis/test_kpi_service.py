from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from src.yourobc.yourobc.core.enums import EmployeeStatus, KpiMetric, KpiStatus, RankingMetric, WorkStatus
from src.yourobc.yourobc.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.yourobc.yourobc.employees.model import Employee
from src.yourobc.yourobc.kpis.model import ActivityMetrics, Kpi, KpiTargets, PerformanceSnapshot
from src.yourobc.yourobc.kpis.service import KpiService


class FakeEmployees:
    def __init__(self, *employees):
        self.rows = {e.employee_id: e for e in employees}

    def get(self, employee_id, *, include_deleted=False):
        return self.rows.get(int(employee_id))


class FakeKpiRepo:
    def __init__(self):
        self._next_id = 1
        self.kpis: dict[int, Kpi] = {}
        self.targets: dict[tuple, KpiTargets] = {}
        self.snapshots: dict[int, PerformanceSnapshot] = {}
        self.metrics: dict[int, ActivityMetrics] = {}
        self.collected: list[dict] = []

    def _id(self):
        value = self._next_id
        self._next_id += 1
        return value

    def create(self, *, owner_id, values):
        kpi_id = self._id()
        self.kpis[kpi_id] = Kpi(kpi_id=kpi_id, public_id=f"kpi-{kpi_id}", owner_id=owner_id, **values)
        return kpi_id

    def get(self, kpi_id):
        kpi = self.kpis.get(int(kpi_id))
        return kpi if kpi and kpi.deleted_at is None else None

    def list_kpis(self, *, employee_id=None, year=None, month=None, status=None, limit=200):
        return [
            k
            for k in self.kpis.values()
            if k.deleted_at is None
            and (employee_id is None or k.employee_id == employee_id)
            and (year is None or k.year == year)
            and (month is None or k.month == month)
        ]

    def update(self, kpi_id, *, changes, updated_by):
        self.kpis[kpi_id] = replace(self.kpis[kpi_id], **changes)
        return True

    def soft_delete(self, kpi_id, *, deleted_by):
        self.kpis[kpi_id] = replace(self.kpis[kpi_id], deleted_at=datetime(2026, 10, 16))
        return True

    def upsert_targets(self, *, owner_id, employee_id, year, month, values):
        key = (employee_id, year, month)
        existing = self.targets.get(key)
        target_id = existing.target_id if existing else self._id()
        self.targets[key] = KpiTargets(
            target_id=target_id, public_id=f"tgt-{target_id}", owner_id=owner_id, employee_id=employee_id, year=year, month=month, **values
        )
        return target_id

    def get_targets(self, *, employee_id, year, month):
        return self.targets.get((employee_id, year, month))

    def soft_delete_targets(self, target_id, *, deleted_by):
        for key, targets in list(self.targets.items()):
            if targets.target_id == target_id:
                del self.targets[key]
                return True
        return False

    def collect_metrics(self, *, employee_id, user_id, start, end):
        self.collected.append({"employee_id": employee_id, "user_id": user_id, "start": start, "end": end})
        return self.metrics.get(employee_id, ActivityMetrics())

    def save_snapshot(self, *, employee_id, year, month, values):
        existing = next(
            (s for s in self.snapshots.values() if (s.employee_id, s.year, s.month) == (employee_id, year, month)), None
        )
        snapshot_id = existing.snapshot_id if existing else self._id()
        self.snapshots[snapshot_id] = PerformanceSnapshot(
            snapshot_id=snapshot_id, employee_id=employee_id, year=year, month=month, **values
        )
        return snapshot_id

    def list_snapshots(self, *, year, month):
        return [s for s in self.snapshots.values() if (s.year, s.month) == (year, month)]

    def set_rank(self, snapshot_id, *, rank):
        self.snapshots[snapshot_id] = replace(self.snapshots[snapshot_id], rank=rank)
        return True


def _employee(employee_id, user_id):
    return Employee(
        employee_id=employee_id,
        public_id=f"emp-{employee_id}",
        owner_id=2,
        employee_number=f"EMP-2026-00000{employee_id}",
        full_name=f"Employee {employee_id}",
        status=EmployeeStatus.ACTIVE,
        work_status=WorkStatus.OFFLINE,
        hire_date=date(2025, 1, 1),
        user_id=user_id,
    )


@pytest.fixture
def repo():
    return FakeKpiRepo()


@pytest.fixture
def svc(repo, audit):
    return KpiService(repo, FakeEmployees(_employee(1, 3), _employee(2, 4), _employee(3, None)), audit=audit)


def _create(svc, actor, **overrides):
    kwargs = dict(
        actor=actor,
        employee_id=1,
        metric_name="Monthly revenue",
        metric_key=KpiMetric.REVENUE,
        year=2026,
        month=10,
        target_value="10000",
    )
    kwargs.update(overrides)
    return svc.create_kpi(**kwargs)


def test_create_kpi_uses_default_thresholds(svc, manager, audit):
    kpi = svc.get_kpi(_create(svc, manager, current_value="8500"))

    assert kpi.warning_threshold == Decimal("80")
    assert kpi.critical_threshold == Decimal("50")
    assert kpi.achievement_percentage == Decimal("85.00")
    assert kpi.status == KpiStatus.ON_TRACK
    assert audit.actions() == ["kpi.created"]


def test_create_kpi_validation(svc, manager, staff):
    with pytest.raises(AuthorizationError):
        _create(svc, staff)
    with pytest.raises(ValidationError):
        _create(svc, manager, target_value="0")
    with pytest.raises(ValidationError):
        _create(svc, manager, year=1999)
    with pytest.raises(ValidationError):
        _create(svc, manager, month=13)
    with pytest.raises(ValidationError):
        _create(svc, manager, current_value="-1")
    with pytest.raises(NotFoundError):
        _create(svc, manager, employee_id=99)


def test_value_update_reevaluates_status(svc, manager):
    kpi_id = _create(svc, manager)

    assert svc.update_kpi_value(actor=manager, kpi_id=kpi_id, current_value="4000").status == KpiStatus.BEHIND
    assert svc.update_kpi_value(actor=manager, kpi_id=kpi_id, current_value="10000").status == KpiStatus.ACHIEVED

    lowered = svc.update_kpi(actor=manager, kpi_id=kpi_id, target_value="20000")
    assert lowered.achievement_percentage == Decimal("50.00")
    assert lowered.status == KpiStatus.AT_RISK


def test_only_owner_or_admin_updates(svc, manager, staff, admin):
    kpi_id = _create(svc, manager)

    with pytest.raises(AuthorizationError):
        svc.update_kpi_value(actor=staff, kpi_id=kpi_id, current_value="1")
    svc.delete_kpi(actor=admin, kpi_id=kpi_id)
    with pytest.raises(NotFoundError):
        svc.get_kpi(kpi_id)


def test_targets_validation_and_replace(svc, manager):
    with pytest.raises(ValidationError):
        svc.set_targets(actor=manager, employee_id=1, year=2026, month=10, conversion_target="101")
    with pytest.raises(ValidationError):
        svc.set_targets(actor=manager, employee_id=1, year=2026, month=10, quotes_target=-1)

    first = svc.set_targets(actor=manager, employee_id=1, year=2026, month=10, quotes_target=10)
    second = svc.set_targets(actor=manager, employee_id=1, year=2026, month=10, quotes_target=20)

    assert first == second
    assert svc.get_targets(employee_id=1, year=2026, month=10).quotes_target == 20

    svc.delete_targets(actor=manager, employee_id=1, year=2026, month=10)
    with pytest.raises(NotFoundError):
        svc.get_targets(employee_id=1, year=2026, month=10)


def test_calculate_performance_builds_snapshot_and_refreshes_kpis(svc, repo, manager):
    repo.metrics[1] = ActivityMetrics(
        quotes_created=8,
        quotes_converted=2,
        orders_processed=4,
        orders_completed=3,
        order_value=Decimal("9000.00"),
        commissions_earned=Decimal("450.00"),
    )
    svc.set_targets(actor=manager, employee_id=1, year=2026, month=10, quotes_target=10, revenue_target="12000")
    revenue_kpi = _create(svc, manager)
    custom_kpi = _create(svc, manager, metric_key=KpiMetric.CUSTOM, metric_name="Calls", current_value="3")

    snapshot_id = svc.calculate_performance(employee_id=1, year=2026, month=10)

    snapshot = repo.snapshots[snapshot_id]
    assert snapshot.conversion_rate == Decimal("25.00")
    assert snapshot.average_order_value == Decimal("2250.00")
    assert snapshot.quotes_achievement == Decimal("80.00")
    assert snapshot.revenue_achievement == Decimal("75.00")
    assert snapshot.orders_achievement is None
    assert repo.collected[0] == {"employee_id": 1, "user_id": 3, "start": date(2026, 10, 1), "end": date(2026, 10, 31)}

    assert svc.get_kpi(revenue_kpi).current_value == Decimal("9000.00")
    assert svc.get_kpi(revenue_kpi).status == KpiStatus.ON_TRACK
    assert svc.get_kpi(custom_kpi).current_value == Decimal("3")


def test_rankings_are_ordered_and_persisted(svc, repo):
    repo.metrics[1] = ActivityMetrics(orders_processed=2, order_value=Decimal("500.00"))
    repo.metrics[2] = ActivityMetrics(orders_processed=5, order_value=Decimal("300.00"))
    repo.metrics[3] = ActivityMetrics(orders_processed=1, order_value=Decimal("500.00"))
    for employee_id in (1, 2, 3):
        svc.calculate_performance(employee_id=employee_id, year=2026, month=10)

    by_revenue = svc.rankings(year=2026, month=10)
    assert [(e.rank, e.employee_id) for e in by_revenue] == [(1, 1), (2, 3), (3, 2)]
    assert {s.employee_id: s.rank for s in repo.snapshots.values()} == {1: 1, 3: 2, 2: 3}

    by_orders = svc.rankings(year=2026, month=10, by=RankingMetric.ORDERS)
    assert by_orders[0].employee_id == 2
    assert by_orders[0].value == Decimal(5)
