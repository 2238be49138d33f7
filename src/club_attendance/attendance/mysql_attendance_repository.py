from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

_RECORD_COLUMNS = """
    a.attendance_id, a.user_id, a.session_id, a.status, a.method, a.check_in_time,
    a.check_out_time, a.marked_by, a.notes, a.created_at, a.updated_at
"""

_REPORT_COLUMNS = f"""
    {_RECORD_COLUMNS},
    u.name AS user_name, u.email AS user_email, u.batch AS user_batch,
    s.title AS session_title, s.session_date, s.start_time, s.end_time
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        session_id=int(r["session_id"]),
        status=AttendanceStatus(r["status"]),
        method=CheckInMethod(r["method"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        marked_by=int(r["marked_by"]) if r.get("marked_by") is not None else None,
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _to_report_row(r: dict) -> AttendanceReportRow:
    return AttendanceReportRow(
        record=_to_record(r),
        user_name=r["user_name"],
        user_email=r["user_email"],
        user_batch=r.get("user_batch"),
        session_title=r["session_title"],
        session_date=r["session_date"],
        session_start_time=str(r["start_time"]),
        session_end_time=str(r["end_time"]),
    )


def _status_counts(rows: Sequence[dict]) -> dict[AttendanceStatus, int]:
    return {AttendanceStatus(r["status"]): int(r["n"]) for r in rows}


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_session(self, user_id: int, session_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records a
                WHERE a.user_id=%s AND a.session_id=%s
                """,
                (int(user_id), int(session_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def upsert_mark(
        self,
        *,
        user_id: int,
        session_id: int,
        status: AttendanceStatus,
        marked_by: int,
        notes: Optional[str],
        now: datetime,
    ) -> None:
        check_in_time = now if status.is_attended else None
        with db_cursor(self._conn_factory) as (_, cur):
            # An existing check_in_time is never replaced by a manual mark.
            cur.execute(
                """
                INSERT INTO attendance_records(user_id, session_id, status, method, marked_by, notes, check_in_time)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    check_in_time=COALESCE(check_in_time, VALUES(check_in_time)),
                    status=VALUES(status),
                    method=VALUES(method),
                    marked_by=VALUES(marked_by),
                    notes=VALUES(notes)
                """,
                (
                    int(user_id),
                    int(session_id),
                    status.value,
                    CheckInMethod.MANUAL.value,
                    int(marked_by),
                    notes,
                    check_in_time,
                ),
            )

    def upsert_check_in(
        self,
        *,
        user_id: int,
        session_id: int,
        status: AttendanceStatus,
        method: CheckInMethod,
        check_in_time: datetime,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(user_id, session_id, status, method, check_in_time)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    method=VALUES(method),
                    check_in_time=VALUES(check_in_time)
                """,
                (int(user_id), int(session_id), status.value, method.value, check_in_time),
            )

    def seed_absent(self, *, session_id: int, user_ids: Sequence[int], marked_by: int) -> int:
        if not user_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_records(user_id, session_id, status, method, marked_by)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE attendance_id=attendance_id
                """,
                [
                    (int(uid), int(session_id), AttendanceStatus.ABSENT.value, CheckInMethod.AUTO.value, int(marked_by))
                    for uid in user_ids
                ],
            )
            return max(int(cur.rowcount), 0)

    def count_by_status(
        self,
        *,
        session_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> dict[AttendanceStatus, int]:
        clauses: list[str] = []
        params: list[object] = []
        if session_id is not None:
            clauses.append("session_id=%s")
            params.append(int(session_id))
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT status, COUNT(*) AS n FROM attendance_records {where} GROUP BY status",
                tuple(params),
            )
            return _status_counts(fetchall(cur))

    def count_by_session_and_status(self, session_ids: Sequence[int]) -> dict[int, dict[AttendanceStatus, int]]:
        if not session_ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT session_id, status, COUNT(*) AS n
                FROM attendance_records
                WHERE session_id IN ({in_clause(session_ids)})
                GROUP BY session_id, status
                """,
                tuple(int(sid) for sid in session_ids),
            )
            out: dict[int, dict[AttendanceStatus, int]] = {}
            for r in fetchall(cur):
                out.setdefault(int(r["session_id"]), {})[AttendanceStatus(r["status"])] = int(r["n"])
            return out

    def trends_by_month(self) -> list[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT YEAR(s.session_date) AS year, MONTH(s.session_date) AS month, a.status, COUNT(*) AS n
                FROM attendance_records a
                JOIN sessions s ON s.session_id = a.session_id
                GROUP BY YEAR(s.session_date), MONTH(s.session_date), a.status
                ORDER BY year ASC, month ASC, a.status ASC
                """
            )
            return [
                {"year": int(r["year"]), "month": int(r["month"]), "status": r["status"], "count": int(r["n"])}
                for r in fetchall(cur)
            ]

    def list_for_session(self, session_id: int) -> Sequence[AttendanceReportRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REPORT_COLUMNS}
                FROM attendance_records a
                JOIN users u ON u.user_id = a.user_id
                JOIN sessions s ON s.session_id = a.session_id
                WHERE a.session_id=%s
                ORDER BY u.name ASC, a.user_id ASC
                """,
                (int(session_id),),
            )
            return [_to_report_row(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[AttendanceReportRow]:
        sql = f"""
            SELECT {_REPORT_COLUMNS}
            FROM attendance_records a
            JOIN users u ON u.user_id = a.user_id
            JOIN sessions s ON s.session_id = a.session_id
            WHERE a.user_id=%s
            ORDER BY s.session_date DESC, s.start_time DESC
        """
        params: tuple = (int(user_id),)
        if limit is not None:
            sql += " LIMIT %s"
            params += (int(limit),)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_to_report_row(r) for r in fetchall(cur)]
