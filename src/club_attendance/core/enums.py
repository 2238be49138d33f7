from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        return self in (Role.TEACHER, Role.ADMIN)


class AttendanceStatus(str, Enum):
    """Attendance labels stored in the database.

    Flat set of mutually exclusive values: any status may follow any other.
    """

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"

    @property
    def is_attended(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class CheckInMethod(str, Enum):
    MANUAL = "manual"
    SELF = "self"
    QR = "qr"
    AUTO = "auto"


class SessionType(str, Enum):
    WORKSHOP = "workshop"
    LECTURE = "lecture"
    LAB = "lab"
    SEMINAR = "seminar"
    MEETING = "meeting"
    OTHER = "other"
