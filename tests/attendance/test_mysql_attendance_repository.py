from __future__ import annotations

from datetime import datetime

import pytest

from club_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from club_attendance.core.enums import AttendanceStatus, CheckInMethod

NOW = datetime(2026, 3, 2, 10, 5)


@pytest.fixture
def repo(recording_db):
    return MySQLAttendanceRepository(recording_db)


def only_call(db):
    assert len(db.calls) == 1
    return db.calls[0]


def test_mark_keeps_existing_check_in_time(repo, recording_db):
    repo.upsert_mark(user_id=3, session_id=1, status=AttendanceStatus.PRESENT, marked_by=2, notes="front row", now=NOW)

    kind, sql, params = only_call(recording_db)
    assert kind == "execute"
    assert "ON DUPLICATE KEY UPDATE" in sql
    assert "check_in_time=COALESCE(check_in_time, VALUES(check_in_time))" in sql
    assert "check_in_time=VALUES(check_in_time)" not in sql
    assert params == (3, 1, "present", "manual", 2, "front row", NOW)
    assert recording_db.commits == 1


@pytest.mark.parametrize(
    "status, expected",
    [
        (AttendanceStatus.PRESENT, NOW),
        (AttendanceStatus.LATE, NOW),
        (AttendanceStatus.ABSENT, None),
        (AttendanceStatus.EXCUSED, None),
    ],
)
def test_mark_check_in_time_only_for_attended_statuses(repo, recording_db, status, expected):
    repo.upsert_mark(user_id=3, session_id=1, status=status, marked_by=2, notes=None, now=NOW)

    _, _, params = only_call(recording_db)
    assert params[2] == status.value
    assert params[-1] == expected


def test_check_in_overwrites_time_and_keeps_marker(repo, recording_db):
    repo.upsert_check_in(
        user_id=3,
        session_id=1,
        status=AttendanceStatus.LATE,
        method=CheckInMethod.QR,
        check_in_time=NOW,
    )

    _, sql, params = only_call(recording_db)
    update = sql.split("ON DUPLICATE KEY UPDATE", 1)[1]
    assert "check_in_time=VALUES(check_in_time)" in update
    assert "COALESCE" not in update
    assert "marked_by" not in update
    assert "notes" not in update
    assert params == (3, 1, "late", "qr", NOW)


def test_seed_inserts_absent_auto_rows_without_overwriting(repo, recording_db):
    recording_db.rowcount = 2

    inserted = repo.seed_absent(session_id=7, user_ids=[3, 4], marked_by=2)

    kind, sql, rows = only_call(recording_db)
    assert kind == "executemany"
    assert sql.endswith("ON DUPLICATE KEY UPDATE attendance_id=attendance_id")
    assert rows == [(3, 7, "absent", "auto", 2), (4, 7, "absent", "auto", 2)]
    assert inserted == 2


def test_seed_with_no_students_skips_database(repo, recording_db):
    assert repo.seed_absent(session_id=7, user_ids=[], marked_by=2) == 0
    assert recording_db.calls == []


def test_failed_write_rolls_back(repo, recording_db):
    recording_db.fail = RuntimeError("lost connection")

    with pytest.raises(RuntimeError):
        repo.upsert_mark(user_id=3, session_id=1, status=AttendanceStatus.LATE, marked_by=2, notes=None, now=NOW)

    assert recording_db.rollbacks == 1
    assert recording_db.commits == 0


def test_record_row_mapping(repo, recording_db):
    recording_db.rows = [
        {
            "attendance_id": 11,
            "user_id": 3,
            "session_id": 1,
            "status": "late",
            "method": "self",
            "check_in_time": NOW,
            "check_out_time": None,
            "marked_by": None,
            "notes": None,
            "created_at": NOW,
            "updated_at": NOW,
        }
    ]

    record = repo.get_for_user_and_session(3, 1)

    _, sql, params = only_call(recording_db)
    assert "WHERE a.user_id=%s AND a.session_id=%s" in sql
    assert params == (3, 1)
    assert record.status == AttendanceStatus.LATE
    assert record.method == CheckInMethod.SELF
    assert record.check_in_time == NOW
    assert record.marked_by is None
