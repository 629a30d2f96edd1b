from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import RequestStatus, VacationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_public_id
from .model import VacationBalance, VacationRequest
from .repository import VacationRepository

_REQUEST_COLUMNS = (
    "request_id, public_id, employee_id, year, start_date, end_date, days, vacation_type, status, "
    "requested_by, reason, created_at, decided_by, decided_at, decision_note, cancelled_by, cancelled_at"
)


def _to_balance(r: dict) -> VacationBalance:
    return VacationBalance(
        balance_id=int(r["balance_id"]),
        employee_id=int(r["employee_id"]),
        year=int(r["year"]),
        annual_entitlement=int(r["annual_entitlement"]),
        carryover_days=int(r["carryover_days"]),
        used=int(r["used"]),
        pending=int(r["pending"]),
    )


def _to_request(r: dict) -> VacationRequest:
    return VacationRequest(
        request_id=int(r["request_id"]),
        public_id=r["public_id"],
        employee_id=int(r["employee_id"]),
        year=int(r["year"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days=int(r["days"]),
        vacation_type=VacationType(r["vacation_type"]),
        status=RequestStatus(r["status"]),
        requested_by=int(r["requested_by"]),
        reason=r.get("reason"),
        created_at=r.get("created_at"),
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        decision_note=r.get("decision_note"),
        cancelled_by=r.get("cancelled_by"),
        cancelled_at=r.get("cancelled_at"),
    )


class MySQLVacationRepository(VacationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Balances --------
    def get_balance(self, *, employee_id: int, year: int) -> Optional[VacationBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT balance_id, employee_id, year, annual_entitlement, carryover_days, used, pending
                FROM vacation_balances
                WHERE employee_id=%s AND year=%s
                """,
                (int(employee_id), int(year)),
            )
            row = fetchone(cur)
            return _to_balance(row) if row else None

    def create_balance(self, *, employee_id: int, year: int, annual_entitlement: int, carryover_days: int = 0) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO vacation_balances(employee_id, year, annual_entitlement, carryover_days, used, pending)
                VALUES(%s,%s,%s,%s,0,0)
                """,
                (int(employee_id), int(year), int(annual_entitlement), int(carryover_days)),
            )
            return int(cur.lastrowid)

    def adjust_balance(self, balance_id: int, *, used_delta: int = 0, pending_delta: int = 0) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE vacation_balances
                SET used = used + %s, pending = pending + %s, updated_at = NOW()
                WHERE balance_id=%s
                """,
                (int(used_delta), int(pending_delta), int(balance_id)),
            )
            return cur.rowcount > 0

    def set_carryover(self, balance_id: int, *, carryover_days: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE vacation_balances SET carryover_days=%s, updated_at=NOW() WHERE balance_id=%s",
                (int(carryover_days), int(balance_id)),
            )
            return cur.rowcount > 0

    # -------- Requests --------
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO vacation_requests(
                    public_id, employee_id, year, start_date, end_date, days, vacation_type, status, requested_by, reason
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    new_public_id(),
                    int(employee_id),
                    int(year),
                    start_date,
                    end_date,
                    int(days),
                    vacation_type.value,
                    RequestStatus.PENDING.value,
                    int(requested_by),
                    reason,
                ),
            )
            return int(cur.lastrowid)

    def get_request(self, request_id: int) -> Optional[VacationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM vacation_requests WHERE request_id=%s", (int(request_id),))
            row = fetchone(cur)
            return _to_request(row) if row else None

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        year: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[VacationRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM vacation_requests
                WHERE {where}
                ORDER BY start_date DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        request_id: int,
        *,
        from_status: RequestStatus,
        status: RequestStatus,
        decided_by: int,
        note: Optional[str] = None,
    ) -> bool:
        if status == RequestStatus.CANCELLED:
            sql = """
                UPDATE vacation_requests
                SET status=%s, cancelled_by=%s, cancelled_at=NOW(), decision_note=COALESCE(%s, decision_note)
                WHERE request_id=%s AND status=%s
            """
        else:
            sql = """
                UPDATE vacation_requests
                SET status=%s, decided_by=%s, decided_at=NOW(), decision_note=%s
                WHERE request_id=%s AND status=%s
            """
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (status.value, int(decided_by), note, int(request_id), from_status.value))
            return cur.rowcount > 0
