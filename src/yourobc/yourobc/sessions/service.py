from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import format_minutes, now_local
from ..common.permissions import Actor
from ..core.constants import SESSION_AUTO_LOGOUT_HOURS, SESSION_INACTIVITY_MINUTES
from ..core.enums import SessionType, WorkStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import SessionReportRow, SessionSweep, WorkSession
from .repository import SessionRepository

logger = logging.getLogger(__name__)


def session_minutes(login_time: datetime, logout_time: datetime) -> int:
    return max(int((logout_time - login_time).total_seconds() // 60), 0)


def worked_minutes(row: SessionReportRow) -> int:
    """Open sessions count 0 until they are ended."""
    if not row.logout_time:
        return 0
    return session_minutes(row.login_time, row.logout_time)


class SessionService:
    """Tracks employee work sessions (login, heartbeat, logout)."""

    def __init__(
        self,
        sessions: SessionRepository,
        employees: EmployeeRepository,
        *,
        inactivity_minutes: int = SESSION_INACTIVITY_MINUTES,
        auto_logout_hours: int = SESSION_AUTO_LOGOUT_HOURS,
    ):
        self._sessions = sessions
        self._employees = employees
        self._inactivity = timedelta(minutes=int(inactivity_minutes))
        self._auto_logout = timedelta(hours=int(auto_logout_hours))

    def _employee_for(self, actor: Actor, employee_id: int) -> Employee:
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        if not actor.is_manager and employee.user_id != actor.user_id:
            raise AuthorizationError("You can only track your own sessions")
        return employee

    def _end_all(self, employee_id: int, now: datetime) -> int:
        ended = 0
        for active in self._sessions.list_active(employee_id=employee_id):
            if self._sessions.end(active.session_id, logout_time=now, duration_minutes=session_minutes(active.login_time, now)):
                ended += 1
        return ended

    def start_session(
        self,
        *,
        actor: Actor,
        employee_id: int,
        now: Optional[datetime] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        session_type: SessionType = SessionType.MANUAL,
    ) -> int:
        employee = self._employee_for(actor, employee_id)
        now = now or now_local()

        self._end_all(employee.employee_id, now)
        session_id = self._sessions.create(
            employee_id=employee.employee_id,
            login_time=now,
            session_type=session_type,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._employees.set_work_status(employee.employee_id, work_status=WorkStatus.AVAILABLE, is_online=True, last_activity=now)
        logger.info("Started session %s for employee %s", session_id, employee.employee_id)
        return session_id

    def end_session(self, *, actor: Actor, employee_id: int, now: Optional[datetime] = None) -> Optional[int]:
        """End the active session; returns its duration in minutes, or None if none was active."""
        employee = self._employee_for(actor, employee_id)
        now = now or now_local()

        active = self._sessions.list_active(employee_id=employee.employee_id)
        if not active:
            return None

        current = active[0]
        duration = session_minutes(current.login_time, now)
        if not self._sessions.end(current.session_id, logout_time=now, duration_minutes=duration):
            raise ValidationError("Ending session failed")
        for stale in active[1:]:
            self._sessions.end(stale.session_id, logout_time=now, duration_minutes=session_minutes(stale.login_time, now))

        self._employees.set_work_status(employee.employee_id, work_status=WorkStatus.OFFLINE, is_online=False, last_activity=now)
        logger.info("Ended session %s for employee %s (%s min)", current.session_id, employee.employee_id, duration)
        return duration

    def record_activity(self, *, actor: Actor, employee_id: int, now: Optional[datetime] = None) -> int:
        """Heartbeat: keep the active session alive, or open an automatic one."""
        employee = self._employee_for(actor, employee_id)
        now = now or now_local()

        active = self._sessions.list_active(employee_id=employee.employee_id)
        if not active:
            return self.start_session(
                actor=actor,
                employee_id=employee.employee_id,
                now=now,
                session_type=SessionType.AUTOMATIC,
            )

        current: WorkSession = active[0]
        self._sessions.touch(current.session_id, last_activity=now)
        if now - current.last_activity > self._inactivity or employee.work_status in (WorkStatus.AWAY, WorkStatus.OFFLINE):
            self._employees.set_work_status(employee.employee_id, work_status=WorkStatus.AVAILABLE, is_online=True, last_activity=now)
        return current.session_id

    def close_inactive_sessions(self, *, now: Optional[datetime] = None) -> SessionSweep:
        """End sessions idle past the auto-logout limit and mark briefly idle employees away."""
        now = now or now_local()
        ended = 0
        marked_away = 0
        away_employees: set[int] = set()

        for idle in self._sessions.list_idle(idle_since=now - self._inactivity):
            if now - idle.last_activity >= self._auto_logout:
                minutes = session_minutes(idle.login_time, idle.last_activity)
                if self._sessions.end(idle.session_id, logout_time=idle.last_activity, duration_minutes=minutes):
                    ended += 1
                    self._employees.set_work_status(idle.employee_id, work_status=WorkStatus.OFFLINE, is_online=False)
            elif idle.employee_id not in away_employees:
                away_employees.add(idle.employee_id)
                if self._employees.set_work_status(idle.employee_id, work_status=WorkStatus.AWAY, is_online=True):
                    marked_away += 1

        if ended or marked_away:
            logger.info("Session sweep: ended=%s away=%s", ended, marked_away)
        return SessionSweep(ended=ended, marked_away=marked_away)


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class WorkHoursReportService:
    def __init__(self, sessions: SessionRepository):
        self._sessions = sessions

    def build_report(self, *, start: date, end: date, employee_id: Optional[int] = None) -> ReportData:
        if end < start:
            raise ValidationError("End date cannot be before start date")

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for r in self._sessions.report_rows(start=start, end=end, employee_id=employee_id):
            minutes = worked_minutes(r)
            out_rows.append(
                {
                    "employee_id": r.employee_id,
                    "employee_number": r.employee_number,
                    "full_name": r.full_name,
                    "department": r.department or "-",
                    "work_date": r.login_time.strftime("%Y-%m-%d"),
                    "login": r.login_time.strftime("%H:%M"),
                    "logout": r.logout_time.strftime("%H:%M") if r.logout_time else "-",
                    "worked_hours": format_minutes(minutes),
                    "session_type": r.session_type.value,
                }
            )

            s = summary_map.get(r.employee_id)
            if not s:
                s = {
                    "employee_id": r.employee_id,
                    "employee_number": r.employee_number,
                    "full_name": r.full_name,
                    "total_minutes": 0,
                }
                summary_map[r.employee_id] = s
            s["total_minutes"] += minutes

        summary = sorted(summary_map.values(), key=lambda x: x["total_minutes"], reverse=True)
        for s in summary:
            s["total_hours"] = format_minutes(int(s["total_minutes"]))
        return ReportData(rows=out_rows, summary=summary)
