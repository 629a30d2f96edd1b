from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from src.yourobc.yourobc.core.enums import EmployeeStatus, SessionType, WorkStatus
from src.yourobc.yourobc.core.exceptions import AuthorizationError, ValidationError
from src.yourobc.yourobc.employees.model import Employee
from src.yourobc.yourobc.sessions.model import SessionReportRow, WorkSession
from src.yourobc.yourobc.sessions.service import SessionService, WorkHoursReportService, session_minutes, worked_minutes


class FakeEmployees:
    def __init__(self, *employees):
        self.rows = {e.employee_id: e for e in employees}

    def get(self, employee_id, *, include_deleted=False):
        return self.rows.get(int(employee_id))

    def set_work_status(self, employee_id, *, work_status, is_online, last_activity=None):
        self.rows[employee_id] = replace(self.rows[employee_id], work_status=work_status, is_online=is_online)
        return True


class FakeSessions:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, WorkSession] = {}
        self.report: list[SessionReportRow] = []

    def create(self, *, employee_id, login_time, session_type, ip_address=None, user_agent=None):
        session_id = self._next_id
        self._next_id += 1
        self.rows[session_id] = WorkSession(
            session_id=session_id,
            employee_id=employee_id,
            login_time=login_time,
            last_activity=login_time,
            session_type=session_type,
        )
        return session_id

    def list_active(self, *, employee_id):
        return [s for s in self.rows.values() if s.is_active and s.employee_id == employee_id]

    def end(self, session_id, *, logout_time, duration_minutes):
        session = self.rows[session_id]
        if not session.is_active:
            return False
        self.rows[session_id] = replace(session, is_active=False, logout_time=logout_time, duration_minutes=duration_minutes)
        return True

    def touch(self, session_id, *, last_activity):
        self.rows[session_id] = replace(self.rows[session_id], last_activity=last_activity)
        return True

    def list_idle(self, *, idle_since):
        return [s for s in self.rows.values() if s.is_active and s.last_activity < idle_since]

    def report_rows(self, *, start, end, employee_id=None):
        return self.report


def _employee(employee_id=1, user_id=3):
    return Employee(
        employee_id=employee_id,
        public_id=f"emp-{employee_id}",
        owner_id=2,
        employee_number=f"EMP-2026-00000{employee_id}",
        full_name="Anna Schmidt",
        status=EmployeeStatus.ACTIVE,
        work_status=WorkStatus.OFFLINE,
        hire_date=date(2026, 1, 1),
        user_id=user_id,
    )


@pytest.fixture
def employees():
    return FakeEmployees(_employee(1, user_id=3), _employee(2, user_id=4))


@pytest.fixture
def sessions():
    return FakeSessions()


@pytest.fixture
def svc(sessions, employees):
    return SessionService(sessions, employees, inactivity_minutes=15, auto_logout_hours=8)


def test_start_session_ends_previous_one(svc, sessions, employees, staff, now):
    first = svc.start_session(actor=staff, employee_id=1, now=now)
    second = svc.start_session(actor=staff, employee_id=1, now=now + timedelta(minutes=45))

    assert not sessions.rows[first].is_active
    assert sessions.rows[first].duration_minutes == 45
    assert sessions.rows[second].is_active
    assert employees.rows[1].work_status == WorkStatus.AVAILABLE


def test_staff_cannot_track_someone_else(svc, staff):
    with pytest.raises(AuthorizationError):
        svc.start_session(actor=staff, employee_id=2)


def test_end_session_returns_minutes(svc, employees, staff, now):
    assert svc.end_session(actor=staff, employee_id=1, now=now) is None

    svc.start_session(actor=staff, employee_id=1, now=now)
    assert svc.end_session(actor=staff, employee_id=1, now=now + timedelta(hours=2, minutes=5)) == 125
    assert employees.rows[1].work_status == WorkStatus.OFFLINE


def test_activity_without_session_opens_automatic_one(svc, sessions, staff, now):
    session_id = svc.record_activity(actor=staff, employee_id=1, now=now)

    assert sessions.rows[session_id].session_type == SessionType.AUTOMATIC
    assert svc.record_activity(actor=staff, employee_id=1, now=now + timedelta(minutes=5)) == session_id
    assert sessions.rows[session_id].last_activity == now + timedelta(minutes=5)


def test_sweep_marks_idle_away_and_logs_out_stale(svc, sessions, employees, staff, manager, now):
    stale = svc.start_session(actor=staff, employee_id=1, now=now - timedelta(hours=9))
    svc.start_session(actor=manager, employee_id=2, now=now - timedelta(minutes=30))

    sweep = svc.close_inactive_sessions(now=now)

    assert sweep.ended == 1
    assert sweep.marked_away == 1
    assert sessions.rows[stale].logout_time == now - timedelta(hours=9)
    assert employees.rows[1].work_status == WorkStatus.OFFLINE
    assert employees.rows[2].work_status == WorkStatus.AWAY


def test_session_minutes_never_negative(now):
    assert session_minutes(now, now - timedelta(minutes=5)) == 0


def _row(employee_id, login, logout):
    return SessionReportRow(
        session_id=employee_id * 10,
        employee_id=employee_id,
        employee_number=f"EMP-2026-00000{employee_id}",
        full_name=f"Employee {employee_id}",
        department=None,
        login_time=login,
        logout_time=logout,
        session_type=SessionType.MANUAL,
    )


def test_open_sessions_count_zero_minutes():
    assert worked_minutes(_row(1, datetime(2026, 10, 1, 8), None)) == 0
    assert worked_minutes(_row(1, datetime(2026, 10, 1, 8), datetime(2026, 10, 1, 16, 30))) == 510


def test_report_summary_sorted_by_total(sessions):
    sessions.report = [
        _row(1, datetime(2026, 10, 1, 8), datetime(2026, 10, 1, 12)),
        _row(2, datetime(2026, 10, 1, 8), datetime(2026, 10, 1, 17)),
        _row(1, datetime(2026, 10, 2, 8), datetime(2026, 10, 2, 9, 15)),
    ]
    report = WorkHoursReportService(sessions).build_report(start=date(2026, 10, 1), end=date(2026, 10, 31))

    assert [s["employee_id"] for s in report.summary] == [2, 1]
    assert report.summary[1]["total_hours"] == "05:15"
    assert report.rows[0]["department"] == "-"
    assert report.rows[0]["logout"] == "12:00"


def test_report_rejects_inverted_range(sessions):
    with pytest.raises(ValidationError):
        WorkHoursReportService(sessions).build_report(start=date(2026, 10, 2), end=date(2026, 10, 1))
