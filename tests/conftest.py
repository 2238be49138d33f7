from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from club_attendance import create_app
from club_attendance.attendance.model import AttendanceRecord, AttendanceReportRow
from club_attendance.container import wire
from club_attendance.core.enums import AttendanceStatus, CheckInMethod, Role, SessionType
from club_attendance.sessions.model import Session
from club_attendance.users.model import Actor, User

PASSWORD = "secret123"
QR_TOKEN = "TEST_CHECKIN"


class InMemoryUsers:
    def __init__(self):
        self.users: dict[int, User] = {}
        self.refresh_tokens: dict[int, Optional[str]] = {}
        self._next_id = 1

    def add(self, name: str, email: str, role: Role, *, batch=None, is_active=True, created_at=None, password_hash="x") -> User:
        user = User(
            user_id=self._next_id,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            batch=batch,
            is_active=is_active,
            created_at=created_at or datetime(2026, 1, 10, 9, 0),
        )
        self.users[user.user_id] = user
        self._next_id += 1
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def create_user(self, *, name, email, password_hash, role, batch=None) -> int:
        return self.add(name, email, role, batch=batch, password_hash=password_hash).user_id

    def update_profile(self, user_id: int, *, name, batch) -> bool:
        user = self.users[user_id]
        self.users[user_id] = replace(user, name=name or user.name, batch=batch if batch is not None else user.batch)
        return True

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        self.users[user_id] = replace(self.users[user_id], is_active=is_active)
        return True

    def get_refresh_token(self, user_id: int) -> Optional[str]:
        return self.refresh_tokens.get(user_id)

    def set_refresh_token(self, user_id: int, token: Optional[str]) -> None:
        self.refresh_tokens[user_id] = token

    def list_active_ids_by_role(self, role: Role) -> Sequence[int]:
        return [u.user_id for u in self.users.values() if u.role == role and u.is_active]

    def list_page(self, *, role=None, batch=None, offset=0, limit=20):
        items = [
            u
            for u in self.users.values()
            if u.is_active and (role is None or u.role == role) and (not batch or u.batch == batch)
        ]
        items.sort(key=lambda u: u.name)
        return items[offset : offset + limit], len(items)

    def count_active_by_role(self) -> dict[Role, int]:
        out: dict[Role, int] = {}
        for u in self.users.values():
            if u.is_active:
                out[u.role] = out.get(u.role, 0) + 1
        return out

    def growth_by_month(self, *, start=None, end=None):
        counts: dict[tuple[int, int], int] = {}
        for u in self.users.values():
            d = u.created_at.date()
            if not u.is_active or (start and d < start) or (end and d > end):
                continue
            counts[(d.year, d.month)] = counts.get((d.year, d.month), 0) + 1
        return [{"year": y, "month": m, "count": n} for (y, m), n in sorted(counts.items())]


class InMemorySessions:
    def __init__(self):
        self.sessions: dict[int, Session] = {}
        self._next_id = 1

    def get_by_id(self, session_id: int) -> Optional[Session]:
        return self.sessions.get(int(session_id))

    def create(self, *, title, date, start_time, end_time, created_by, type, description, location, max_capacity) -> int:
        session = Session(
            session_id=self._next_id,
            title=title,
            date=date,
            start_time=start_time,
            end_time=end_time,
            created_by=created_by,
            type=type,
            description=description,
            location=location,
            max_capacity=max_capacity,
        )
        self.sessions[session.session_id] = session
        self._next_id += 1
        return session.session_id

    def update(self, session_id: int, fields: Mapping[str, Any]) -> bool:
        if not fields:
            return False
        self.sessions[session_id] = replace(self.sessions[session_id], **dict(fields))
        return True

    def _active(self):
        return [s for s in self.sessions.values() if s.is_active]

    def list_page(self, *, type=None, upcoming=None, today=None, offset=0, limit=20):
        today = today or date.today()
        items = [
            s
            for s in self._active()
            if (type is None or s.type == type)
            and (upcoming is None or (s.date >= today if upcoming else s.date < today))
        ]
        items.sort(key=lambda s: (s.date, s.start_time), reverse=True)
        return items[offset : offset + limit], len(items)

    def list_active_in_range(self, *, start=None, end=None):
        items = [s for s in self._active() if (start is None or s.date >= start) and (end is None or s.date <= end)]
        return sorted(items, key=lambda s: s.date, reverse=True)

    def list_upcoming(self, *, today, limit):
        items = sorted((s for s in self._active() if s.date >= today), key=lambda s: (s.date, s.start_time))
        return items[:limit]

    def add_registration(self, session_id: int, user_id: int) -> bool:
        s = self.sessions[session_id]
        if user_id in s.registered_users:
            return False
        self.sessions[session_id] = replace(s, registered_users=s.registered_users + (user_id,))
        return True

    def remove_registration(self, session_id: int, user_id: int) -> bool:
        s = self.sessions[session_id]
        if user_id not in s.registered_users:
            return False
        self.sessions[session_id] = replace(s, registered_users=tuple(u for u in s.registered_users if u != user_id))
        return True


class InMemoryAttendance:
    """Keyed on (user_id, session_id) like the UNIQUE index; writes are serialized by a lock."""

    def __init__(self, users: InMemoryUsers, sessions: InMemorySessions):
        self.records: dict[tuple[int, int], AttendanceRecord] = {}
        self._users = users
        self._sessions = sessions
        self._lock = threading.Lock()
        self._next_id = 1
        self.fail_seed = False
        self.fail_for_users: set[int] = set()

    def get_for_user_and_session(self, user_id: int, session_id: int) -> Optional[AttendanceRecord]:
        return self.records.get((int(user_id), int(session_id)))

    def _upsert(self, user_id: int, session_id: int, **changes) -> None:
        key = (int(user_id), int(session_id))
        existing = self.records.get(key)
        if existing is None:
            existing = AttendanceRecord(attendance_id=self._next_id, user_id=key[0], session_id=key[1])
            self._next_id += 1
        self.records[key] = replace(existing, **changes)

    def upsert_mark(self, *, user_id, session_id, status, marked_by, notes, now) -> None:
        if user_id in self.fail_for_users:
            raise RuntimeError("database unavailable")
        with self._lock:
            existing = self.records.get((user_id, session_id))
            check_in = existing.check_in_time if existing and existing.check_in_time else None
            if check_in is None and status.is_attended:
                check_in = now
            self._upsert(
                user_id,
                session_id,
                status=status,
                method=CheckInMethod.MANUAL,
                marked_by=marked_by,
                notes=notes,
                check_in_time=check_in,
            )

    def upsert_check_in(self, *, user_id, session_id, status, method, check_in_time) -> None:
        with self._lock:
            self._upsert(user_id, session_id, status=status, method=method, check_in_time=check_in_time)

    def seed_absent(self, *, session_id, user_ids, marked_by) -> int:
        if self.fail_seed:
            raise RuntimeError("seed failed")
        inserted = 0
        with self._lock:
            for uid in user_ids:
                if (uid, session_id) in self.records:
                    continue
                self._upsert(uid, session_id, status=AttendanceStatus.ABSENT, method=CheckInMethod.AUTO, marked_by=marked_by)
                inserted += 1
        return inserted

    def count_by_status(self, *, session_id=None, user_id=None):
        out: dict[AttendanceStatus, int] = {}
        for r in self.records.values():
            if (session_id is None or r.session_id == session_id) and (user_id is None or r.user_id == user_id):
                out[r.status] = out.get(r.status, 0) + 1
        return out

    def count_by_session_and_status(self, session_ids):
        out: dict[int, dict[AttendanceStatus, int]] = {}
        for r in self.records.values():
            if r.session_id in session_ids:
                bucket = out.setdefault(r.session_id, {})
                bucket[r.status] = bucket.get(r.status, 0) + 1
        return out

    def trends_by_month(self):
        counts: dict[tuple[int, int, str], int] = {}
        for r in self.records.values():
            d = self._sessions.get_by_id(r.session_id).date
            key = (d.year, d.month, r.status.value)
            counts[key] = counts.get(key, 0) + 1
        return [{"year": y, "month": m, "status": s, "count": n} for (y, m, s), n in sorted(counts.items())]

    def _row(self, r: AttendanceRecord) -> AttendanceReportRow:
        u = self._users.get_by_id(r.user_id)
        s = self._sessions.get_by_id(r.session_id)
        return AttendanceReportRow(
            record=r,
            user_name=u.name,
            user_email=u.email,
            user_batch=u.batch,
            session_title=s.title,
            session_date=s.date,
            session_start_time=s.start_time,
            session_end_time=s.end_time,
        )

    def list_for_session(self, session_id: int):
        rows = [self._row(r) for r in self.records.values() if r.session_id == session_id]
        return sorted(rows, key=lambda row: (row.user_name, row.record.user_id))

    def list_for_user(self, user_id: int, *, limit=None):
        rows = [self._row(r) for r in self.records.values() if r.user_id == user_id]
        rows.sort(key=lambda row: (row.session_date, row.session_start_time), reverse=True)
        return rows[:limit] if limit is not None else rows


class RecordingCursor:
    def __init__(self, db: "RecordingDatabase"):
        self._db = db
        self.rowcount = 0
        self.lastrowid = None

    def _record(self, kind: str, sql: str, params) -> None:
        self._db.calls.append((kind, " ".join(sql.split()), params))
        if self._db.fail is not None:
            raise self._db.fail
        self.rowcount = self._db.rowcount

    def execute(self, sql: str, params=()) -> None:
        self._record("execute", sql, params)

    def executemany(self, sql: str, rows) -> None:
        self._record("executemany", sql, list(rows))

    def fetchone(self):
        return self._db.rows[0] if self._db.rows else None

    def fetchall(self):
        return list(self._db.rows)

    def close(self) -> None:
        pass


class RecordingConnection:
    def __init__(self, db: "RecordingDatabase"):
        self._db = db

    def cursor(self, dictionary: bool = False) -> RecordingCursor:
        return RecordingCursor(self._db)

    def commit(self) -> None:
        self._db.commits += 1

    def rollback(self) -> None:
        self._db.rollbacks += 1

    def close(self) -> None:
        pass


class RecordingDatabase:
    """Connection factory double: records statements, returns canned rows."""

    def __init__(self):
        self.calls: list[tuple[str, str, Any]] = []
        self.rows: list[dict] = []
        self.rowcount = 0
        self.fail: Optional[Exception] = None
        self.commits = 0
        self.rollbacks = 0

    def connect(self, *, with_database: bool = True) -> RecordingConnection:
        return RecordingConnection(self)


@pytest.fixture
def users_repo():
    repo = InMemoryUsers()
    pw = generate_password_hash(PASSWORD)
    repo.add("Admin", "admin@club.test", Role.ADMIN, password_hash=pw)
    repo.add("Tara Teacher", "teacher@club.test", Role.TEACHER, password_hash=pw)
    repo.add("Alice", "alice@club.test", Role.STUDENT, batch="2025", password_hash=pw)
    repo.add("Bob", "bob@club.test", Role.STUDENT, batch="2025", password_hash=pw)
    repo.add("Carol", "carol@club.test", Role.STUDENT, batch="2024", is_active=False, password_hash=pw)
    return repo


@pytest.fixture
def sessions_repo():
    return InMemorySessions()


@pytest.fixture
def attendance_repo(users_repo, sessions_repo):
    return InMemoryAttendance(users_repo, sessions_repo)


@pytest.fixture
def container(users_repo, sessions_repo, attendance_repo):
    return wire(
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        jwt_secret="test-jwt-secret",
        jwt_expire_minutes=15,
        grace_minutes=15,
        bulk_workers=4,
        qr_token=QR_TOKEN,
    )


@pytest.fixture
def admin(users_repo):
    return users_repo.get_by_email("admin@club.test")


@pytest.fixture
def teacher(users_repo):
    return users_repo.get_by_email("teacher@club.test")


@pytest.fixture
def alice(users_repo):
    return users_repo.get_by_email("alice@club.test")


@pytest.fixture
def bob(users_repo):
    return users_repo.get_by_email("bob@club.test")


@pytest.fixture
def actor_of():
    def _actor(user: User) -> Actor:
        return Actor(user_id=user.user_id, role=user.role)

    return _actor


@pytest.fixture
def make_session(sessions_repo, teacher):
    def _make(*, on: date, start_time: str = "10:00", title: str = "Intro Workshop", max_capacity: int = 100) -> Session:
        session_id = sessions_repo.create(
            title=title,
            date=on,
            start_time=start_time,
            end_time="12:00",
            created_by=teacher.user_id,
            type=SessionType.WORKSHOP,
            description=None,
            location="Room 1",
            max_capacity=max_capacity,
        )
        return sessions_repo.get_by_id(session_id)

    return _make


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(container):
    def _header(user: User) -> dict:
        return {"Authorization": f"Bearer {container.tokens.issue(user)}"}

    return _header


@pytest.fixture
def recording_db():
    return RecordingDatabase()
