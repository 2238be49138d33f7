from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "user_id, name, email, password_hash, role, batch, is_active, created_at"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        batch=row.get("batch"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        batch: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, batch, is_active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (name, email, password_hash, role.value, batch),
            )
            return int(cur.lastrowid)

    def update_profile(self, user_id: int, *, name: Optional[str], batch: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET name=COALESCE(%s, name), batch=COALESCE(%s, batch)
                WHERE user_id=%s
                """,
                (name, batch, int(user_id)),
            )
            return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def get_refresh_token(self, user_id: int) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT refresh_token FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return row["refresh_token"] if row else None

    def set_refresh_token(self, user_id: int, token: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET refresh_token=%s WHERE user_id=%s", (token, int(user_id)))

    def list_active_ids_by_role(self, role: Role) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM users WHERE role=%s AND is_active=1", (role.value,))
            return [int(r["user_id"]) for r in fetchall(cur)]

    def list_page(
        self,
        *,
        role: Optional[Role] = None,
        batch: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[User], int]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if batch:
            clauses.append("batch=%s")
            params.append(batch)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM users WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE {where} ORDER BY name ASC LIMIT %s OFFSET %s",
                tuple(params) + (int(limit), int(offset)),
            )
            return [_to_user(r) for r in fetchall(cur)], total

    def count_active_by_role(self) -> dict[Role, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role, COUNT(*) AS n FROM users WHERE is_active=1 GROUP BY role")
            counts = {role: 0 for role in Role}
            for r in fetchall(cur):
                counts[Role(r["role"])] = int(r["n"])
            return counts

    def growth_by_month(self, *, start: Optional[date] = None, end: Optional[date] = None) -> Sequence[dict]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if start is not None:
            clauses.append("DATE(created_at) >= %s")
            params.append(start)
        if end is not None:
            clauses.append("DATE(created_at) <= %s")
            params.append(end)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT YEAR(created_at) AS y, MONTH(created_at) AS m, COUNT(*) AS n
                FROM users
                WHERE {where}
                GROUP BY y, m
                ORDER BY y ASC, m ASC
                """,
                tuple(params),
            )
            return [{"year": int(r["y"]), "month": int(r["m"]), "count": int(r["n"])} for r in fetchall(cur)]
