from __future__ import annotations

import re
from datetime import date
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import isoformat_or_empty
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..sessions.repository import SessionRepository
from .calculator.base import AttendanceRateCalculator
from .calculator.standard_calculator import StandardRateCalculator
from .model import AnalyticsReport, AttendanceSummary, CsvExport

CSV_FIELDNAMES = ["Name", "Email", "Batch", "Status", "Check-in Time", "Notes"]

_WHITESPACE = re.compile(r"\s+")


def export_filename(title: str, session_date: date) -> str:
    return f"attendance-{_WHITESPACE.sub('-', title)}-{session_date.isoformat()}.csv"


class AttendanceReportService:
    """Summaries are recomputed from attendance records on every read."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: SessionRepository,
        *,
        calculator: Optional[AttendanceRateCalculator] = None,
    ):
        self._attendance = attendance
        self._sessions = sessions
        self._calculator = calculator or StandardRateCalculator()

    def _require_session(self, session_id: int):
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError("Session not found")
        return session

    def rate(self, *, attended: int, total: int) -> int:
        return self._calculator.rate(attended=attended, total=total)

    def session_summary(self, session_id: int) -> AttendanceSummary:
        return AttendanceSummary.from_counts(self._attendance.count_by_status(session_id=session_id))

    def session_summaries(self, session_ids: Sequence[int]) -> dict[int, AttendanceSummary]:
        counts = self._attendance.count_by_session_and_status(session_ids)
        return {sid: AttendanceSummary.from_counts(counts.get(sid, {})) for sid in session_ids}

    def user_summary(self, user_id: int) -> AttendanceSummary:
        summary = AttendanceSummary.from_counts(self._attendance.count_by_status(user_id=user_id))
        return AttendanceSummary(
            present=summary.present,
            absent=summary.absent,
            late=summary.late,
            excused=summary.excused,
            percentage=self.rate(attended=summary.attended, total=summary.total),
        )

    def analytics(self, *, start: Optional[date] = None, end: Optional[date] = None) -> AnalyticsReport:
        if start and end and start > end:
            raise ValidationError("startDate must be on or before endDate")

        sessions = self._sessions.list_active_in_range(start=start, end=end)
        per_session = self._attendance.count_by_session_and_status([s.session_id for s in sessions])

        overall_counts: dict[AttendanceStatus, int] = {}
        by_session: list[dict] = []
        for s in sessions:
            for status in AttendanceStatus:
                n = per_session.get(s.session_id, {}).get(status, 0)
                if not n:
                    continue
                by_session.append({"sessionId": s.session_id, "status": status.value, "count": n})
                overall_counts[status] = overall_counts.get(status, 0) + n

        overall = [{"status": status.value, "count": n} for status, n in overall_counts.items()]
        totals = AttendanceSummary.from_counts(overall_counts)

        return AnalyticsReport(
            overall=overall,
            by_session=by_session,
            total_sessions=len(sessions),
            total_records=totals.total,
            present_count=totals.present,
            late_count=totals.late,
            absent_count=totals.absent,
            attendance_rate=self.rate(attended=totals.attended, total=totals.total),
        )

    def attendance_trends(self) -> list[dict]:
        return self._attendance.trends_by_month()

    def build_export(self, session_id: int) -> CsvExport:
        session = self._require_session(session_id)
        rows = [
            {
                "Name": r.user_name or "Unknown",
                "Email": r.user_email or "",
                "Batch": r.user_batch or "",
                "Status": r.record.status.value,
                "Check-in Time": isoformat_or_empty(r.record.check_in_time),
                "Notes": r.record.notes or "",
            }
            for r in self._attendance.list_for_session(session_id)
        ]
        return CsvExport(
            filename=export_filename(session.title, session.date),
            fieldnames=list(CSV_FIELDNAMES),
            rows=rows,
        )
