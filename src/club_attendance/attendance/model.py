from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckInMethod


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's participation in one session."""

    attendance_id: int
    user_id: int
    session_id: int
    status: AttendanceStatus = AttendanceStatus.ABSENT
    method: CheckInMethod = CheckInMethod.MANUAL
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    marked_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "user": self.user_id,
            "session": self.session_id,
            "status": self.status.value,
            "method": self.method.value,
            "checkInTime": _iso(self.check_in_time),
            "checkOutTime": _iso(self.check_out_time),
            "markedBy": self.marked_by,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for listings and export: a record joined with its user and session."""

    record: AttendanceRecord
    user_name: str
    user_email: str
    user_batch: Optional[str]
    session_title: str
    session_date: date
    session_start_time: str
    session_end_time: str

    def to_dict(self) -> dict:
        out = self.record.to_dict()
        out["user"] = {
            "id": self.record.user_id,
            "name": self.user_name,
            "email": self.user_email,
            "batch": self.user_batch,
        }
        out["session"] = {
            "id": self.record.session_id,
            "title": self.session_title,
            "date": self.session_date.isoformat(),
            "startTime": self.session_start_time,
            "endTime": self.session_end_time,
        }
        return out
