from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import RequestStatus, VacationType


@dataclass(frozen=True)
class VacationBalance:
    balance_id: int
    employee_id: int
    year: int
    annual_entitlement: int
    carryover_days: int = 0
    used: int = 0
    pending: int = 0

    @property
    def available(self) -> int:
        return self.annual_entitlement + self.carryover_days

    @property
    def remaining(self) -> int:
        return self.available - self.used - self.pending


@dataclass(frozen=True)
class VacationRequest:
    request_id: int
    public_id: str
    employee_id: int
    year: int
    start_date: date
    end_date: date
    days: int
    vacation_type: VacationType
    status: RequestStatus
    requested_by: int
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    decision_note: Optional[str] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
