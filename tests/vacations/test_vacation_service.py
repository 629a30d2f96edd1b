from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from src.yourobc.yourobc.core.enums import EmployeeStatus, RequestStatus, VacationType, WorkStatus
from src.yourobc.yourobc.core.exceptions import AuthorizationError, ConflictError, ValidationError
from src.yourobc.yourobc.employees.model import Employee
from src.yourobc.yourobc.vacations.model import VacationBalance, VacationRequest
from src.yourobc.yourobc.vacations.service import VacationService, entitlement_for


class FakeEmployees:
    def __init__(self, *employees):
        self.rows = {e.employee_id: e for e in employees}

    def get(self, employee_id, *, include_deleted=False):
        return self.rows.get(int(employee_id))

    def get_by_user_id(self, user_id):
        return next((e for e in self.rows.values() if e.user_id == user_id), None)


class FakeVacations:
    def __init__(self):
        self._next_id = 1
        self.balances: dict[int, VacationBalance] = {}
        self.requests: dict[int, VacationRequest] = {}

    def _id(self):
        value = self._next_id
        self._next_id += 1
        return value

    def get_balance(self, *, employee_id, year):
        return next((b for b in self.balances.values() if b.employee_id == employee_id and b.year == year), None)

    def create_balance(self, *, employee_id, year, annual_entitlement, carryover_days=0):
        balance_id = self._id()
        self.balances[balance_id] = VacationBalance(
            balance_id=balance_id,
            employee_id=employee_id,
            year=year,
            annual_entitlement=annual_entitlement,
            carryover_days=carryover_days,
        )
        return balance_id

    def adjust_balance(self, balance_id, *, used_delta=0, pending_delta=0):
        b = self.balances[balance_id]
        self.balances[balance_id] = replace(b, used=b.used + used_delta, pending=b.pending + pending_delta)
        return True

    def set_carryover(self, balance_id, *, carryover_days):
        self.balances[balance_id] = replace(self.balances[balance_id], carryover_days=carryover_days)
        return True

    def create_request(self, *, employee_id, year, start_date, end_date, days, vacation_type, requested_by, reason):
        request_id = self._id()
        self.requests[request_id] = VacationRequest(
            request_id=request_id,
            public_id=f"vac-{request_id}",
            employee_id=employee_id,
            year=year,
            start_date=start_date,
            end_date=end_date,
            days=days,
            vacation_type=vacation_type,
            status=RequestStatus.PENDING,
            requested_by=requested_by,
            reason=reason,
        )
        return request_id

    def get_request(self, request_id):
        return self.requests.get(int(request_id))

    def list_requests(self, *, employee_id=None, status=None, year=None, limit=200):
        return [r for r in self.requests.values() if employee_id is None or r.employee_id == employee_id]

    def decide(self, request_id, *, from_status, status, decided_by, note=None):
        req = self.requests[request_id]
        if req.status != from_status:
            return False
        self.requests[request_id] = replace(req, status=status, decided_by=decided_by, decision_note=note)
        return True


def _employee(employee_id=1, *, user_id=3, hire_date=date(2020, 1, 1), status=EmployeeStatus.ACTIVE):
    return Employee(
        employee_id=employee_id,
        public_id=f"emp-{employee_id}",
        owner_id=2,
        employee_number=f"EMP-2020-00000{employee_id}",
        full_name="Anna Schmidt",
        status=status,
        work_status=WorkStatus.OFFLINE,
        hire_date=hire_date,
        user_id=user_id,
    )


@pytest.fixture
def vacations():
    return FakeVacations()


@pytest.fixture
def svc(vacations, audit):
    employees = FakeEmployees(
        _employee(1, user_id=3),
        _employee(2, user_id=4, status=EmployeeStatus.TERMINATED),
    )
    return VacationService(vacations, employees, audit=audit)


def _balance(svc, actor, year=2026):
    return svc.get_balance(actor=actor, employee_id=1, year=year)


@pytest.mark.parametrize(
    "hire_date, expected",
    [(date(2020, 5, 1), 25), (date(2026, 1, 10), 25), (date(2026, 4, 1), 19), (date(2026, 7, 1), 13), (date(2026, 8, 1), 10)],
)
def test_entitlement_is_prorated_in_hire_year(hire_date, expected):
    assert entitlement_for(_employee(hire_date=hire_date), 2026) == expected


def test_request_counts_business_days_and_reserves_pending(svc, staff, audit):
    svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 10, 19), end_date=date(2026, 10, 25))

    balance = _balance(svc, staff)
    assert balance.pending == 5
    assert balance.remaining == 20
    assert audit.actions() == ["vacation.requested"]


def test_request_validation(svc, staff, other_staff):
    with pytest.raises(ValidationError, match="span multiple years"):
        svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 12, 28), end_date=date(2027, 1, 2))
    with pytest.raises(ValidationError, match="at least one business day"):
        svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 10, 24), end_date=date(2026, 10, 25))
    with pytest.raises(AuthorizationError):
        svc.request_vacation(actor=other_staff, employee_id=1, start_date=date(2026, 10, 19), end_date=date(2026, 10, 19))
    with pytest.raises(ValidationError, match="cannot request vacation"):
        svc.request_vacation(actor=other_staff, employee_id=2, start_date=date(2026, 10, 19), end_date=date(2026, 10, 19))


def test_annual_leave_cannot_exceed_remaining(svc, staff):
    with pytest.raises(ValidationError, match="Insufficient vacation days"):
        svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 6, 1), end_date=date(2026, 7, 31))

    sick = svc.request_vacation(
        actor=staff,
        employee_id=1,
        start_date=date(2026, 6, 1),
        end_date=date(2026, 7, 31),
        vacation_type=VacationType.SICK,
    )
    assert sick


def test_approve_moves_pending_to_used(svc, staff, manager):
    request_id = svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 10, 19), end_date=date(2026, 10, 21))

    with pytest.raises(AuthorizationError):
        svc.approve_vacation(actor=staff, request_id=request_id)
    svc.approve_vacation(actor=manager, request_id=request_id)

    balance = _balance(svc, staff)
    assert (balance.used, balance.pending) == (3, 0)
    with pytest.raises(ValidationError):
        svc.approve_vacation(actor=manager, request_id=request_id)


def test_reject_requires_reason_and_releases_days(svc, staff, manager):
    request_id = svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 10, 19), end_date=date(2026, 10, 20))

    with pytest.raises(ValidationError):
        svc.reject_vacation(actor=manager, request_id=request_id, reason="  ")
    svc.reject_vacation(actor=manager, request_id=request_id, reason="Peak season")

    assert _balance(svc, staff).pending == 0


def test_cancel_approved_returns_used_days(svc, staff, manager, other_staff):
    request_id = svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 10, 19), end_date=date(2026, 10, 20))
    svc.approve_vacation(actor=manager, request_id=request_id)

    with pytest.raises(AuthorizationError):
        svc.cancel_vacation(actor=other_staff, request_id=request_id)
    svc.cancel_vacation(actor=staff, request_id=request_id)

    balance = _balance(svc, staff)
    assert (balance.used, balance.pending) == (0, 0)
    assert svc.list_requests(actor=staff)[0].status == RequestStatus.CANCELLED


def test_staff_only_sees_own_requests(svc, staff, other_staff):
    svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 10, 19), end_date=date(2026, 10, 19))

    assert len(svc.list_requests(actor=staff)) == 1
    with pytest.raises(AuthorizationError):
        svc.list_requests(actor=other_staff, employee_id=1)


def test_initialize_balance_is_admin_only_and_unique(svc, admin, manager):
    with pytest.raises(AuthorizationError):
        svc.initialize_balance(actor=manager, employee_id=1, year=2027)
    with pytest.raises(ValidationError):
        svc.initialize_balance(actor=admin, employee_id=1, year=2027, carryover_days=6)

    svc.initialize_balance(actor=admin, employee_id=1, year=2027, carryover_days=2)
    with pytest.raises(ConflictError):
        svc.initialize_balance(actor=admin, employee_id=1, year=2027)


def test_carry_over_is_capped(svc, staff, manager):
    svc.request_vacation(actor=staff, employee_id=1, start_date=date(2026, 10, 19), end_date=date(2026, 10, 23))

    assert svc.carry_over(actor=manager, employee_id=1, from_year=2026) == 5
    assert _balance(svc, manager, year=2027).available == 30
