from __future__ import annotations

from club_attendance.users.mysql_user_repository import MySQLUserRepository


def test_refresh_token_storage(recording_db):
    repo = MySQLUserRepository(recording_db)

    repo.set_refresh_token(3, "tok")
    repo.set_refresh_token(3, None)

    assert [c[2] for c in recording_db.calls] == [("tok", 3), (None, 3)]
    assert all(c[1] == "UPDATE users SET refresh_token=%s WHERE user_id=%s" for c in recording_db.calls)


def test_refresh_token_lookup(recording_db):
    repo = MySQLUserRepository(recording_db)

    assert repo.get_refresh_token(3) is None

    recording_db.rows = [{"refresh_token": "tok"}]
    assert repo.get_refresh_token(3) == "tok"
