from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SessionType


@dataclass(frozen=True)
class WorkSession:
    session_id: int
    employee_id: int
    login_time: datetime
    last_activity: datetime
    session_type: SessionType
    is_active: bool = True
    logout_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class SessionReportRow:
    """Session joined with employee for reports."""

    session_id: int
    employee_id: int
    employee_number: str
    full_name: str
    department: Optional[str]
    login_time: datetime
    logout_time: Optional[datetime]
    session_type: SessionType


@dataclass(frozen=True)
class SessionSweep:
    ended: int
    marked_away: int
