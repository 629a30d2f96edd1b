from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import EmployeeStatus, WorkStatus
from .model import Employee


class EmployeeRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, employee_id: int, *, include_deleted: bool = False) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_employees(
        self,
        *,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Employee]:
        raise NotImplementedError

    def update(self, employee_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def set_work_status(
        self,
        employee_id: int,
        *,
        work_status: WorkStatus,
        is_online: bool,
        last_activity: Optional[datetime] = None,
    ) -> bool:
        raise NotImplementedError

    def soft_delete(self, employee_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    def restore(self, employee_id: int, *, restored_by: int) -> bool:
        raise NotImplementedError
