from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SessionType
from .model import SessionReportRow, WorkSession


class SessionRepository(Protocol):
    def create(
        self,
        *,
        employee_id: int,
        login_time: datetime,
        session_type: SessionType,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def list_active(self, *, employee_id: int) -> Sequence[WorkSession]:
        raise NotImplementedError

    def end(self, session_id: int, *, logout_time: datetime, duration_minutes: int) -> bool:
        raise NotImplementedError

    def touch(self, session_id: int, *, last_activity: datetime) -> bool:
        raise NotImplementedError

    def list_idle(self, *, idle_since: datetime) -> Sequence[WorkSession]:
        """Active sessions whose last activity is before ``idle_since``."""

        raise NotImplementedError

    def report_rows(self, *, start: date, end: date, employee_id: Optional[int] = None) -> Sequence[SessionReportRow]:
        raise NotImplementedError
