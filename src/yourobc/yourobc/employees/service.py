from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.permissions import Actor, require_admin, require_edit, require_manager
from ..common.validators import optional_text, require_email, require_max_length, require_non_empty
from ..core.enums import CounterType, EmployeeStatus, WorkStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..counters.service import CounterService
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

_ENTITY = "employee"
_EDITABLE_FIELDS = ("full_name", "email", "phone", "department", "position", "hire_date", "user_id")


def validate_name(value: str) -> str:
    name = " ".join(require_non_empty(value, "Name").split())
    if len(name) < 2 or len(name) > 100:
        raise ValidationError("Name must be between 2 and 100 characters")
    if not all(ch.isalpha() or ch in " '-" for ch in name):
        raise ValidationError("Name can only contain letters, spaces, apostrophes and hyphens")
    return name


def can_request_vacation(employee: Employee) -> bool:
    if employee.deleted_at is not None:
        return False
    return employee.status in (EmployeeStatus.ACTIVE, EmployeeStatus.PROBATION)


class EmployeeService:
    def __init__(self, employees: EmployeeRepository, counters: CounterService, *, audit: Optional[AuditLogRepository] = None):
        self._employees = employees
        self._counters = counters
        self._audit = audit

    def get_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def get_for_user(self, user_id: int) -> Optional[Employee]:
        return self._employees.get_by_user_id(int(user_id))

    def list_employees(
        self,
        *,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Employee]:
        return self._employees.list_employees(
            status=status,
            department=optional_text(department),
            search=optional_text(search),
            limit=limit,
        )

    def _check_user_link(self, user_id: Optional[int], *, employee_id: Optional[int] = None) -> None:
        if user_id is None:
            return
        existing = self._employees.get_by_user_id(int(user_id))
        if existing and existing.employee_id != employee_id:
            raise ConflictError("User is already linked to another employee")

    def create_employee(
        self,
        *,
        actor: Actor,
        full_name: str,
        hire_date: Optional[date] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        user_id: Optional[int] = None,
    ) -> int:
        require_manager(actor)
        hire_date = hire_date or now_local().date()
        self._check_user_link(user_id)

        employee_number = self._counters.next_sequence_number(CounterType.EMPLOYEE, year=hire_date.year)
        employee_id = self._employees.create(
            owner_id=actor.user_id,
            values={
                "employee_number": employee_number,
                "full_name": validate_name(full_name),
                "status": status,
                "work_status": WorkStatus.OFFLINE,
                "hire_date": hire_date,
                "user_id": user_id,
                "email": require_email(email),
                "phone": require_max_length(optional_text(phone), "Phone", 50),
                "department": require_max_length(optional_text(department), "Department", 100),
                "position": require_max_length(optional_text(position), "Position", 100),
            },
        )
        trail.record(
            self._audit,
            actor,
            action="employee.created",
            entity_type=_ENTITY,
            entity_id=employee_id,
            description=f"Created employee {employee_number}",
        )
        return employee_id

    def update_employee(self, *, actor: Actor, employee_id: int, changes: Mapping[str, Any]) -> None:
        employee = self.get_employee(employee_id)
        require_edit(actor, employee.owner_id)
        if employee.status == EmployeeStatus.TERMINATED:
            raise ValidationError("Terminated employees cannot be edited")

        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = dict(changes)
        if "full_name" in patch:
            patch["full_name"] = validate_name(patch["full_name"])
        if "email" in patch:
            patch["email"] = require_email(patch["email"])
        for field in ("phone", "department", "position"):
            if field in patch:
                patch[field] = require_max_length(optional_text(patch[field]), field.capitalize(), 100)
        if "user_id" in patch:
            self._check_user_link(patch["user_id"], employee_id=employee.employee_id)

        if patch and not self._employees.update(employee.employee_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating employee failed")
        trail.record(
            self._audit,
            actor,
            action="employee.updated",
            entity_type=_ENTITY,
            entity_id=employee.employee_id,
            description=f"Updated employee {employee.employee_number}",
        )

    def change_status(self, *, actor: Actor, employee_id: int, status: EmployeeStatus) -> None:
        require_manager(actor)
        employee = self.get_employee(employee_id)
        if employee.status == status:
            return
        changes: dict[str, Any] = {"status": status}
        if status == EmployeeStatus.TERMINATED:
            changes["work_status"] = WorkStatus.OFFLINE
        if not self._employees.update(employee.employee_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Updating employee status failed")
        trail.record(
            self._audit,
            actor,
            action="employee.status_changed",
            entity_type=_ENTITY,
            entity_id=employee.employee_id,
            description=f"{employee.employee_number}: {employee.status.value} -> {status.value}",
        )

    def delete_employee(self, *, actor: Actor, employee_id: int) -> None:
        require_admin(actor)
        employee = self.get_employee(employee_id)
        if not self._employees.soft_delete(employee.employee_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting employee failed")
        trail.record(
            self._audit,
            actor,
            action="employee.deleted",
            entity_type=_ENTITY,
            entity_id=employee.employee_id,
            description=f"Deleted employee {employee.employee_number}",
        )

    def restore_employee(self, *, actor: Actor, employee_id: int) -> None:
        require_admin(actor)
        employee = self._employees.get(int(employee_id), include_deleted=True)
        if not employee:
            raise NotFoundError("Employee not found")
        if employee.deleted_at is None:
            raise ValidationError("Employee is not deleted")
        if not self._employees.restore(employee.employee_id, restored_by=actor.user_id):
            raise ValidationError("Restoring employee failed")
        trail.record(
            self._audit,
            actor,
            action="employee.restored",
            entity_type=_ENTITY,
            entity_id=employee.employee_id,
            description=f"Restored employee {employee.employee_number}",
        )
