from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from ..attendance.service import AttendanceService
from ..core.constants import DASHBOARD_OVERVIEW_DAYS, DASHBOARD_RECENT_LIMIT, DASHBOARD_UPCOMING_LIMIT
from ..core.enums import Role
from ..reports.service import AttendanceReportService
from ..sessions.repository import SessionRepository
from ..sessions.service import SessionService
from ..users.model import Actor
from ..users.repository import UserRepository


class DashboardService:
    """Role-specific read views composed from attendance summaries and sessions."""

    def __init__(
        self,
        *,
        users: UserRepository,
        sessions: SessionRepository,
        session_service: SessionService,
        attendance_service: AttendanceService,
        reports: AttendanceReportService,
    ):
        self._users = users
        self._sessions = sessions
        self._session_service = session_service
        self._attendance_service = attendance_service
        self._reports = reports

    def student(self, actor: Actor, *, now: datetime | None = None) -> dict:
        upcoming = self._session_service.upcoming(limit=DASHBOARD_UPCOMING_LIMIT, now=now)
        recent = self._attendance_service.recent_for_user(actor.user_id, limit=DASHBOARD_RECENT_LIMIT)
        return {
            "attendance": self._reports.user_summary(actor.user_id).to_dict(),
            "upcomingSessions": [s.to_dict() for s in upcoming],
            "recentAttendance": [r.to_dict() for r in recent],
        }

    def teacher(self, *, now: datetime | None = None) -> dict:
        now = now or datetime.now()

        counts = self._users.count_active_by_role()
        members = {
            "students": counts.get(Role.STUDENT, 0),
            "teachers": counts.get(Role.TEACHER, 0),
            "admins": counts.get(Role.ADMIN, 0),
        }
        members["total"] = sum(members.values())

        recent = self._session_service.recent(limit=DASHBOARD_RECENT_LIMIT)
        summaries = self._reports.session_summaries([s.session_id for s in recent])
        sessions = []
        for s in recent:
            out = s.to_dict()
            out["attendanceSummary"] = summaries[s.session_id].to_dict()
            sessions.append(out)

        return {
            "members": members,
            "sessions": sessions,
            "attendance": self._overview(since=(now - timedelta(days=DASHBOARD_OVERVIEW_DAYS)).date()),
        }

    def _overview(self, *, since: date) -> dict:
        in_range = self._sessions.list_active_in_range(start=since)
        if not in_range:
            return {"averageAttendance": 0, "totalSessions": 0, "totalRecords": 0}

        summaries = self._reports.session_summaries([s.session_id for s in in_range])
        attended = sum(s.attended for s in summaries.values())
        total = sum(s.total for s in summaries.values())
        return {
            "averageAttendance": self._reports.rate(attended=attended, total=total),
            "totalSessions": len(in_range),
            "totalRecords": total,
        }

    def analytics(self, *, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        return {
            "memberGrowth": self._users.growth_by_month(start=start, end=end),
            "attendanceTrends": self._reports.attendance_trends(),
        }
