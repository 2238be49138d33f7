from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceSummary:
    """Derived, never stored. ``percentage`` is only set for user-scoped summaries."""

    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    percentage: Optional[int] = None

    @classmethod
    def from_counts(cls, counts: Mapping[AttendanceStatus, int]) -> "AttendanceSummary":
        return cls(
            present=int(counts.get(AttendanceStatus.PRESENT, 0)),
            absent=int(counts.get(AttendanceStatus.ABSENT, 0)),
            late=int(counts.get(AttendanceStatus.LATE, 0)),
            excused=int(counts.get(AttendanceStatus.EXCUSED, 0)),
        )

    @property
    def total(self) -> int:
        return self.present + self.absent + self.late + self.excused

    @property
    def attended(self) -> int:
        return self.present + self.late

    def to_dict(self) -> dict:
        out = {
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "excused": self.excused,
            "total": self.total,
        }
        if self.percentage is not None:
            out["percentage"] = self.percentage
        return out


@dataclass(frozen=True)
class AnalyticsReport:
    overall: list[dict]
    by_session: list[dict]
    total_sessions: int
    total_records: int
    present_count: int
    late_count: int
    absent_count: int
    attendance_rate: int

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "bySession": self.by_session,
            "summary": {
                "totalSessions": self.total_sessions,
                "totalRecords": self.total_records,
                "presentCount": self.present_count,
                "lateCount": self.late_count,
                "absentCount": self.absent_count,
                "attendanceRate": self.attendance_rate,
            },
        }


@dataclass(frozen=True)
class CsvExport:
    filename: str
    fieldnames: list[str]
    rows: list[dict] = field(default_factory=list)
