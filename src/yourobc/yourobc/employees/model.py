from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import EmployeeStatus, WorkStatus


@dataclass(frozen=True)
class Employee:
    employee_id: int
    public_id: str
    owner_id: int
    employee_number: str
    full_name: str
    status: EmployeeStatus
    work_status: WorkStatus
    hire_date: date
    user_id: Optional[int] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    is_online: bool = False
    last_activity: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None and self.status in (EmployeeStatus.ACTIVE, EmployeeStatus.PROBATION)
