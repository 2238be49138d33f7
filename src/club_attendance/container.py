from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import CheckInStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.auth import Guards
from .core.constants import (
    DEFAULT_BULK_MARK_WORKERS,
    DEFAULT_JWT_EXPIRE_MINUTES,
    DEFAULT_JWT_REFRESH_EXPIRE_DAYS,
    DEFAULT_LATE_GRACE_MINUTES,
)
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import AttendanceReportService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .users.tokens import TokenCodec


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository

    tokens: TokenCodec
    guards: Guards

    auth_service: AuthService
    user_service: UserService
    session_service: SessionService
    attendance_service: AttendanceService
    report_service: AttendanceReportService
    dashboard_service: DashboardService


def wire(
    *,
    users_repo: UserRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    jwt_secret: str,
    jwt_expire_minutes: int = DEFAULT_JWT_EXPIRE_MINUTES,
    jwt_refresh_secret: Optional[str] = None,
    jwt_refresh_expire_days: int = DEFAULT_JWT_REFRESH_EXPIRE_DAYS,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    bulk_workers: int = DEFAULT_BULK_MARK_WORKERS,
    qr_token: str = "",
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services on top of any repository implementations (MySQL or in-memory)."""

    tokens = TokenCodec(
        jwt_secret,
        expire_minutes=jwt_expire_minutes,
        refresh_secret=jwt_refresh_secret,
        refresh_expire_days=jwt_refresh_expire_days,
    )
    auth_service = AuthService(users_repo, tokens)
    user_service = UserService(users_repo)
    report_service = AttendanceReportService(attendance_repo, sessions_repo)
    session_service = SessionService(sessions_repo, users_repo, attendance_repo, qr_token=qr_token)
    attendance_service = AttendanceService(
        attendance_repo,
        sessions_repo,
        users_repo,
        report_service,
        strategy_factory=CheckInStrategyFactory(),
        grace_minutes=grace_minutes,
        bulk_workers=bulk_workers,
        qr_token=qr_token,
    )
    dashboard_service = DashboardService(
        users=users_repo,
        sessions=sessions_repo,
        session_service=session_service,
        attendance_service=attendance_service,
        reports=report_service,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        tokens=tokens,
        guards=Guards(auth_service),
        auth_service=auth_service,
        user_service=user_service,
        session_service=session_service,
        attendance_service=attendance_service,
        report_service=report_service,
        dashboard_service=dashboard_service,
    )


def build_container(settings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))

    return wire(
        users_repo=MySQLUserRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        jwt_secret=getattr(settings, "JWT_SECRET"),
        jwt_expire_minutes=int(getattr(settings, "JWT_EXPIRE_MINUTES", DEFAULT_JWT_EXPIRE_MINUTES)),
        jwt_refresh_secret=getattr(settings, "JWT_REFRESH_SECRET", None),
        jwt_refresh_expire_days=int(getattr(settings, "JWT_REFRESH_EXPIRE_DAYS", DEFAULT_JWT_REFRESH_EXPIRE_DAYS)),
        grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
        bulk_workers=int(getattr(settings, "BULK_MARK_WORKERS", DEFAULT_BULK_MARK_WORKERS)),
        qr_token=getattr(settings, "QR_TOKEN", ""),
        conn=conn,
    )
