from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import SessionType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Session
from .repository import SessionRepository

_SESSION_COLUMNS = """
    session_id, title, description, session_date, start_time, end_time, location,
    session_type, created_by, max_capacity, is_active, created_at
"""

# model field -> column
_UPDATABLE_COLUMNS = {
    "title": "title",
    "description": "description",
    "date": "session_date",
    "start_time": "start_time",
    "end_time": "end_time",
    "location": "location",
    "type": "session_type",
    "max_capacity": "max_capacity",
    "is_active": "is_active",
}


def _to_session(row: dict, registered: Sequence[int] = ()) -> Session:
    return Session(
        session_id=int(row["session_id"]),
        title=row["title"],
        description=row.get("description"),
        date=row["session_date"],
        start_time=str(row["start_time"]),
        end_time=str(row["end_time"]),
        location=row.get("location"),
        type=SessionType(row["session_type"]),
        created_by=int(row["created_by"]),
        max_capacity=int(row["max_capacity"]),
        is_active=bool(row["is_active"]),
        registered_users=tuple(registered),
        created_at=row.get("created_at"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _registrations(self, cur, session_ids: Sequence[int]) -> dict[int, list[int]]:
        out: dict[int, list[int]] = {int(sid): [] for sid in session_ids}
        if not session_ids:
            return out
        cur.execute(
            f"""
            SELECT session_id, user_id
            FROM session_registrations
            WHERE session_id IN ({in_clause(session_ids)})
            ORDER BY registered_at ASC
            """,
            tuple(session_ids),
        )
        for r in fetchall(cur):
            out[int(r["session_id"])].append(int(r["user_id"]))
        return out

    def _hydrate(self, cur, rows: Sequence[dict]) -> list[Session]:
        regs = self._registrations(cur, [int(r["session_id"]) for r in rows])
        return [_to_session(r, regs[int(r["session_id"])]) for r in rows]

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE session_id=%s", (int(session_id),))
            row = fetchone(cur)
            if not row:
                return None
            return self._hydrate(cur, [row])[0]

    def create(
        self,
        *,
        title: str,
        date: date,
        start_time: str,
        end_time: str,
        created_by: int,
        type: SessionType,
        description: Optional[str],
        location: Optional[str],
        max_capacity: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sessions(
                    title, description, session_date, start_time, end_time, location,
                    session_type, created_by, max_capacity, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (title, description, date, start_time, end_time, location, type.value, int(created_by), int(max_capacity)),
            )
            return int(cur.lastrowid)

    def update(self, session_id: int, fields: Mapping[str, Any]) -> bool:
        assignments: list[str] = []
        params: list[object] = []
        for name, value in fields.items():
            column = _UPDATABLE_COLUMNS.get(name)
            if column is None:
                continue
            if isinstance(value, SessionType):
                value = value.value
            elif isinstance(value, bool):
                value = 1 if value else 0
            assignments.append(f"{column}=%s")
            params.append(value)

        if not assignments:
            return False

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE sessions SET {', '.join(assignments)} WHERE session_id=%s",
                tuple(params) + (int(session_id),),
            )
            return cur.rowcount > 0

    def list_page(
        self,
        *,
        type: Optional[SessionType] = None,
        upcoming: Optional[bool] = None,
        today: Optional[date] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Session], int]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if type is not None:
            clauses.append("session_type=%s")
            params.append(type.value)
        if upcoming is True:
            clauses.append("session_date >= %s")
            params.append(today or date.today())
        elif upcoming is False:
            clauses.append("session_date < %s")
            params.append(today or date.today())

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM sessions WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM sessions
                WHERE {where}
                ORDER BY session_date DESC, start_time DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            return self._hydrate(cur, fetchall(cur)), total

    def list_active_in_range(self, *, start: Optional[date] = None, end: Optional[date] = None) -> Sequence[Session]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if start is not None:
            clauses.append("session_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("session_date <= %s")
            params.append(end)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE {where} ORDER BY session_date DESC",
                tuple(params),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_upcoming(self, *, today: date, limit: int) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM sessions
                WHERE is_active=1 AND session_date >= %s
                ORDER BY session_date ASC, start_time ASC
                LIMIT %s
                """,
                (today, int(limit)),
            )
            return self._hydrate(cur, fetchall(cur))

    def add_registration(self, session_id: int, user_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO session_registrations(session_id, user_id) VALUES(%s,%s)",
                    (int(session_id), int(user_id)),
                )
                return True
        except IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                return False
            raise

    def remove_registration(self, session_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM session_registrations WHERE session_id=%s AND user_id=%s",
                (int(session_id), int(user_id)),
            )
            return cur.rowcount > 0
