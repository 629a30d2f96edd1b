from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..core.enums import SessionType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import SessionReportRow, WorkSession
from .repository import SessionRepository

_COLUMNS = (
    "session_id, employee_id, login_time, last_activity, session_type, is_active, "
    "logout_time, duration_minutes, ip_address, user_agent"
)


def _to_session(r: dict) -> WorkSession:
    return WorkSession(
        session_id=int(r["session_id"]),
        employee_id=int(r["employee_id"]),
        login_time=r["login_time"],
        last_activity=r["last_activity"],
        session_type=SessionType(r["session_type"]),
        is_active=bool(r["is_active"]),
        logout_time=r.get("logout_time"),
        duration_minutes=r.get("duration_minutes"),
        ip_address=r.get("ip_address"),
        user_agent=r.get("user_agent"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        login_time: datetime,
        session_type: SessionType,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_sessions(
                    employee_id, login_time, last_activity, session_type, is_active, ip_address, user_agent
                )
                VALUES(%s,%s,%s,%s,1,%s,%s)
                """,
                (int(employee_id), login_time, login_time, session_type.value, ip_address, user_agent),
            )
            return int(cur.lastrowid)

    def list_active(self, *, employee_id: int) -> Sequence[WorkSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM employee_sessions
                WHERE employee_id=%s AND is_active=1
                ORDER BY login_time DESC
                """,
                (int(employee_id),),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def end(self, session_id: int, *, logout_time: datetime, duration_minutes: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employee_sessions
                SET is_active=0, logout_time=%s, duration_minutes=%s
                WHERE session_id=%s AND is_active=1
                """,
                (logout_time, int(duration_minutes), int(session_id)),
            )
            return cur.rowcount > 0

    def touch(self, session_id: int, *, last_activity: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employee_sessions SET last_activity=%s WHERE session_id=%s AND is_active=1",
                (last_activity, int(session_id)),
            )
            return cur.rowcount > 0

    def list_idle(self, *, idle_since: datetime) -> Sequence[WorkSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM employee_sessions
                WHERE is_active=1 AND last_activity < %s
                ORDER BY last_activity
                """,
                (idle_since,),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def report_rows(self, *, start: date, end: date, employee_id: Optional[int] = None) -> Sequence[SessionReportRow]:
        clauses = ["s.login_time >= %s", "s.login_time < %s", "e.deleted_at IS NULL"]
        params: list[object] = [start, end + timedelta(days=1)]
        if employee_id is not None:
            clauses.append("s.employee_id=%s")
            params.append(int(employee_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT s.session_id, s.employee_id, e.employee_number, e.full_name, e.department,
                       s.login_time, s.logout_time, s.session_type
                FROM employee_sessions s
                JOIN employees e ON e.employee_id = s.employee_id
                WHERE {where}
                ORDER BY s.login_time
                """,
                tuple(params),
            )
            return [
                SessionReportRow(
                    session_id=int(r["session_id"]),
                    employee_id=int(r["employee_id"]),
                    employee_number=r["employee_number"],
                    full_name=r["full_name"],
                    department=r.get("department"),
                    login_time=r["login_time"],
                    logout_time=r.get("logout_time"),
                    session_type=SessionType(r["session_type"]),
                )
                for r in fetchall(cur)
            ]
