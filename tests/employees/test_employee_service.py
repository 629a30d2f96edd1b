from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.yourobc.yourobc.core.enums import EmployeeStatus, WorkStatus
from src.yourobc.yourobc.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.yourobc.yourobc.employees.model import Employee
from src.yourobc.yourobc.employees.service import EmployeeService, can_request_vacation, validate_name


class FakeEmployeeRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Employee] = {}

    def create(self, *, owner_id, values):
        employee_id = self._next_id
        self._next_id += 1
        self.rows[employee_id] = Employee(employee_id=employee_id, public_id=f"emp-{employee_id}", owner_id=owner_id, **values)
        return employee_id

    def get(self, employee_id, *, include_deleted=False):
        employee = self.rows.get(int(employee_id))
        if employee and employee.deleted_at is not None and not include_deleted:
            return None
        return employee

    def get_by_user_id(self, user_id):
        return next((e for e in self.rows.values() if e.user_id == user_id and e.deleted_at is None), None)

    def list_employees(self, *, status=None, department=None, search=None, limit=200):
        return [e for e in self.rows.values() if status is None or e.status == status][:limit]

    def update(self, employee_id, *, changes, updated_by):
        self.rows[employee_id] = replace(self.rows[employee_id], **changes)
        return True

    def set_work_status(self, employee_id, *, work_status, is_online, last_activity=None):
        employee = self.rows[employee_id]
        self.rows[employee_id] = replace(
            employee, work_status=work_status, is_online=is_online, last_activity=last_activity or employee.last_activity
        )
        return True

    def soft_delete(self, employee_id, *, deleted_by):
        self.rows[employee_id] = replace(self.rows[employee_id], deleted_at=datetime(2026, 10, 16))
        return True

    def restore(self, employee_id, *, restored_by):
        self.rows[employee_id] = replace(self.rows[employee_id], deleted_at=None)
        return True


@pytest.fixture
def repo():
    return FakeEmployeeRepo()


@pytest.fixture
def svc(repo, counter_service, audit):
    return EmployeeService(repo, counter_service, audit=audit)


def test_create_employee_assigns_yearly_number(svc, manager, audit):
    first = svc.create_employee(actor=manager, full_name="  Anna   Schmidt ", hire_date=date(2026, 3, 1), email="Anna@Example.com")
    second = svc.create_employee(actor=manager, full_name="Jean-Luc O'Neil", hire_date=date(2026, 4, 1))

    anna = svc.get_employee(first)
    assert anna.employee_number == "EMP-2026-000001"
    assert anna.full_name == "Anna Schmidt"
    assert anna.email == "anna@example.com"
    assert anna.work_status == WorkStatus.OFFLINE
    assert svc.get_employee(second).employee_number == "EMP-2026-000002"
    assert audit.actions() == ["employee.created", "employee.created"]


def test_staff_cannot_create_employees(svc, staff):
    with pytest.raises(AuthorizationError):
        svc.create_employee(actor=staff, full_name="Anna Schmidt")


@pytest.mark.parametrize("name", ["A", "R2D2", "x" * 101])
def test_invalid_names_are_rejected(name):
    with pytest.raises(ValidationError):
        validate_name(name)


def test_user_can_only_link_one_employee(svc, manager):
    svc.create_employee(actor=manager, full_name="Anna Schmidt", user_id=3)

    with pytest.raises(ConflictError):
        svc.create_employee(actor=manager, full_name="Ben Meyer", user_id=3)


def test_update_rejects_unknown_fields_and_terminated(svc, manager):
    employee_id = svc.create_employee(actor=manager, full_name="Anna Schmidt")

    with pytest.raises(ValidationError, match="Fields cannot be updated"):
        svc.update_employee(actor=manager, employee_id=employee_id, changes={"employee_number": "X"})

    svc.update_employee(actor=manager, employee_id=employee_id, changes={"department": " Ops "})
    assert svc.get_employee(employee_id).department == "Ops"

    svc.change_status(actor=manager, employee_id=employee_id, status=EmployeeStatus.TERMINATED)
    with pytest.raises(ValidationError):
        svc.update_employee(actor=manager, employee_id=employee_id, changes={"department": "Sales"})


def test_vacation_eligibility_follows_status(svc, repo, manager):
    employee_id = svc.create_employee(actor=manager, full_name="Anna Schmidt", status=EmployeeStatus.PROBATION)
    assert can_request_vacation(svc.get_employee(employee_id))

    svc.change_status(actor=manager, employee_id=employee_id, status=EmployeeStatus.INACTIVE)
    assert not can_request_vacation(svc.get_employee(employee_id))


def test_delete_requires_admin_and_restore(svc, manager, admin):
    employee_id = svc.create_employee(actor=manager, full_name="Anna Schmidt")

    with pytest.raises(AuthorizationError):
        svc.delete_employee(actor=manager, employee_id=employee_id)

    svc.delete_employee(actor=admin, employee_id=employee_id)
    with pytest.raises(NotFoundError):
        svc.get_employee(employee_id)

    svc.restore_employee(actor=admin, employee_id=employee_id)
    assert svc.get_employee(employee_id).deleted_at is None
