from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, VacationType
from .model import VacationBalance, VacationRequest


class VacationRepository(Protocol):
    # Balances
    def get_balance(self, *, employee_id: int, year: int) -> Optional[VacationBalance]:
        raise NotImplementedError

    def create_balance(self, *, employee_id: int, year: int, annual_entitlement: int, carryover_days: int = 0) -> int:
        raise NotImplementedError

    def adjust_balance(self, balance_id: int, *, used_delta: int = 0, pending_delta: int = 0) -> bool:
        """Apply relative changes in one UPDATE so concurrent adjustments add up."""

        raise NotImplementedError

    def set_carryover(self, balance_id: int, *, carryover_days: int) -> bool:
        raise NotImplementedError

    # Requests
    def create_request(
        self,
        *,
        employee_id: int,
        year: int,
        start_date: date,
        end_date: date,
        days: int,
        vacation_type: VacationType,
        requested_by: int,
        reason: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get_request(self, request_id: int) -> Optional[VacationRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        year: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[VacationRequest]:
        raise NotImplementedError

    def decide(
        self,
        request_id: int,
        *,
        from_status: RequestStatus,
        status: RequestStatus,
        decided_by: int,
        note: Optional[str] = None,
    ) -> bool:
        """Conditional status change; False when the request is no longer in ``from_status``."""

        raise NotImplementedError
