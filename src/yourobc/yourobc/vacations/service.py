from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import business_days_between
from ..common.permissions import Actor, require_admin, require_manager
from ..common.validators import optional_text, require_max_length, require_non_empty
from ..core.constants import ANNUAL_VACATION_DAYS, MAX_CARRYOVER_DAYS
from ..core.enums import RequestStatus, VacationType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..employees.service import can_request_vacation
from .model import VacationBalance, VacationRequest
from .repository import VacationRepository

logger = logging.getLogger(__name__)

_ENTITY = "vacation_request"


def entitlement_for(employee: Employee, year: int, *, annual_days: int = ANNUAL_VACATION_DAYS) -> int:
    """Annual entitlement, pro-rated by remaining months in the hire year."""
    if employee.hire_date is None or employee.hire_date.year != int(year):
        return int(annual_days)
    months_left = 12 - (employee.hire_date.month - 1)
    prorated = Decimal(int(annual_days)) / Decimal(12) * Decimal(months_left)
    return int(prorated.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class VacationService:
    def __init__(
        self,
        vacations: VacationRepository,
        employees: EmployeeRepository,
        *,
        annual_days: int = ANNUAL_VACATION_DAYS,
        max_carryover: int = MAX_CARRYOVER_DAYS,
        audit: Optional[AuditLogRepository] = None,
    ):
        self._vacations = vacations
        self._employees = employees
        self._annual_days = int(annual_days)
        self._max_carryover = int(max_carryover)
        self._audit = audit

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _request(self, request_id: int) -> VacationRequest:
        req = self._vacations.get_request(int(request_id))
        if not req:
            raise NotFoundError("Vacation request not found")
        return req

    def ensure_balance(self, employee: Employee, year: int) -> VacationBalance:
        balance = self._vacations.get_balance(employee_id=employee.employee_id, year=int(year))
        if balance:
            return balance
        self._vacations.create_balance(
            employee_id=employee.employee_id,
            year=int(year),
            annual_entitlement=entitlement_for(employee, year, annual_days=self._annual_days),
        )
        balance = self._vacations.get_balance(employee_id=employee.employee_id, year=int(year))
        if not balance:
            raise ValidationError("Creating vacation balance failed")
        return balance

    def get_balance(self, *, actor: Actor, employee_id: int, year: int) -> VacationBalance:
        employee = self._employee(employee_id)
        if not actor.is_manager and employee.user_id != actor.user_id:
            raise AuthorizationError("You can only view your own vacation balance")
        return self.ensure_balance(employee, year)

    def list_requests(
        self,
        *,
        actor: Actor,
        employee_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        year: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[VacationRequest]:
        if not actor.is_manager:
            own = self._employees.get_by_user_id(actor.user_id)
            if not own:
                return []
            if employee_id is not None and int(employee_id) != own.employee_id:
                raise AuthorizationError("You can only view your own vacation requests")
            employee_id = own.employee_id
        return self._vacations.list_requests(employee_id=employee_id, status=status, year=year, limit=limit)

    def request_vacation(
        self,
        *,
        actor: Actor,
        employee_id: int,
        start_date: date,
        end_date: date,
        vacation_type: VacationType = VacationType.ANNUAL,
        reason: Optional[str] = None,
    ) -> int:
        employee = self._employee(employee_id)
        if not actor.is_manager and employee.user_id != actor.user_id:
            raise AuthorizationError("You can only request vacation for yourself")
        if not can_request_vacation(employee):
            raise ValidationError("Employee cannot request vacation")
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")
        if start_date.year != end_date.year:
            raise ValidationError("Vacation cannot span multiple years")

        days = business_days_between(start_date, end_date)
        if days < 1:
            raise ValidationError("Vacation must include at least one business day")

        balance = self.ensure_balance(employee, start_date.year)
        if vacation_type == VacationType.ANNUAL and balance.remaining < days:
            raise ValidationError(f"Insufficient vacation days. Remaining: {balance.remaining}, Requested: {days}")

        request_id = self._vacations.create_request(
            employee_id=employee.employee_id,
            year=start_date.year,
            start_date=start_date,
            end_date=end_date,
            days=days,
            vacation_type=vacation_type,
            requested_by=actor.user_id,
            reason=require_max_length(optional_text(reason), "Reason", 500),
        )
        self._vacations.adjust_balance(balance.balance_id, pending_delta=days)
        trail.record(
            self._audit,
            actor,
            action="vacation.requested",
            entity_type=_ENTITY,
            entity_id=request_id,
            description=f"{employee.employee_number}: {days} day(s) {vacation_type.value} from {start_date.isoformat()}",
        )
        return request_id

    def _balance_for(self, req: VacationRequest) -> VacationBalance:
        balance = self._vacations.get_balance(employee_id=req.employee_id, year=req.year)
        if not balance:
            raise NotFoundError("Vacation balance not found")
        return balance

    def approve_vacation(self, *, actor: Actor, request_id: int, note: Optional[str] = None) -> None:
        require_manager(actor)
        req = self._request(request_id)
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Only pending requests can be approved")
        if not self._vacations.decide(
            req.request_id,
            from_status=RequestStatus.PENDING,
            status=RequestStatus.APPROVED,
            decided_by=actor.user_id,
            note=optional_text(note),
        ):
            raise ConflictError("Vacation request was already decided")

        balance = self._balance_for(req)
        self._vacations.adjust_balance(balance.balance_id, used_delta=req.days, pending_delta=-req.days)
        trail.record(
            self._audit,
            actor,
            action="vacation.approved",
            entity_type=_ENTITY,
            entity_id=req.request_id,
            description=f"Approved {req.days} day(s) for employee {req.employee_id}",
        )

    def reject_vacation(self, *, actor: Actor, request_id: int, reason: str) -> None:
        require_manager(actor)
        reason = require_non_empty(reason, "Rejection reason")
        req = self._request(request_id)
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Only pending requests can be rejected")
        if not self._vacations.decide(
            req.request_id,
            from_status=RequestStatus.PENDING,
            status=RequestStatus.REJECTED,
            decided_by=actor.user_id,
            note=reason,
        ):
            raise ConflictError("Vacation request was already decided")

        balance = self._balance_for(req)
        self._vacations.adjust_balance(balance.balance_id, pending_delta=-req.days)
        trail.record(
            self._audit,
            actor,
            action="vacation.rejected",
            entity_type=_ENTITY,
            entity_id=req.request_id,
            description=f"Rejected: {reason}",
        )

    def cancel_vacation(self, *, actor: Actor, request_id: int, note: Optional[str] = None) -> None:
        req = self._request(request_id)
        if not actor.is_manager and req.requested_by != actor.user_id:
            raise AuthorizationError("Only the requester can cancel this request")
        if req.status not in (RequestStatus.PENDING, RequestStatus.APPROVED):
            raise ValidationError("Only pending or approved requests can be cancelled")
        if not self._vacations.decide(
            req.request_id,
            from_status=req.status,
            status=RequestStatus.CANCELLED,
            decided_by=actor.user_id,
            note=optional_text(note),
        ):
            raise ConflictError("Vacation request was changed concurrently")

        balance = self._balance_for(req)
        if req.status == RequestStatus.PENDING:
            self._vacations.adjust_balance(balance.balance_id, pending_delta=-req.days)
        else:
            self._vacations.adjust_balance(balance.balance_id, used_delta=-req.days)
        trail.record(
            self._audit,
            actor,
            action="vacation.cancelled",
            entity_type=_ENTITY,
            entity_id=req.request_id,
            description=f"Cancelled {req.status.value} request of {req.days} day(s)",
        )

    def initialize_balance(self, *, actor: Actor, employee_id: int, year: int, carryover_days: int = 0) -> int:
        require_admin(actor)
        employee = self._employee(employee_id)
        if carryover_days < 0 or carryover_days > self._max_carryover:
            raise ValidationError(f"Carryover must be between 0 and {self._max_carryover} days")
        if self._vacations.get_balance(employee_id=employee.employee_id, year=int(year)):
            raise ConflictError("Vacation balance already exists for this year")
        balance_id = self._vacations.create_balance(
            employee_id=employee.employee_id,
            year=int(year),
            annual_entitlement=entitlement_for(employee, year, annual_days=self._annual_days),
            carryover_days=int(carryover_days),
        )
        logger.info("Initialized %s vacation balance for employee %s", year, employee.employee_id)
        return balance_id

    def carry_over(self, *, actor: Actor, employee_id: int, from_year: int) -> int:
        """Move up to the carryover cap of unused days into the next year; returns days carried."""
        require_manager(actor)
        employee = self._employee(employee_id)
        source = self._vacations.get_balance(employee_id=employee.employee_id, year=int(from_year))
        if not source:
            raise NotFoundError("Vacation balance not found")

        days = max(min(source.remaining, self._max_carryover), 0)
        target = self.ensure_balance(employee, int(from_year) + 1)
        self._vacations.set_carryover(target.balance_id, carryover_days=days)
        trail.record(
            self._audit,
            actor,
            action="vacation.carried_over",
            entity_type="vacation_balance",
            entity_id=target.balance_id,
            description=f"Carried {days} day(s) from {from_year} for {employee.employee_number}",
        )
        return days
