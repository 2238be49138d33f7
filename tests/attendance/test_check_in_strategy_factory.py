from datetime import datetime

from club_attendance.attendance.factory import CheckInStrategyFactory
from club_attendance.attendance.strategies.late_strategy import LateStrategy
from club_attendance.attendance.strategies.normal_strategy import NormalStrategy
from club_attendance.core.enums import AttendanceStatus

START = datetime(2026, 3, 2, 10, 0)


def test_factory_checkin_on_time_within_grace():
    now = datetime(2026, 3, 2, 10, 14, 59)

    strategy = CheckInStrategyFactory().for_checkin(now=now, session_start=START, grace_minutes=15)

    assert isinstance(strategy, NormalStrategy)


def test_factory_checkin_exactly_at_grace_boundary_is_on_time():
    now = datetime(2026, 3, 2, 10, 15, 0)

    strategy = CheckInStrategyFactory().for_checkin(now=now, session_start=START, grace_minutes=15)

    assert isinstance(strategy, NormalStrategy)


def test_factory_checkin_late_after_grace():
    now = datetime(2026, 3, 2, 10, 15, 1)

    strategy = CheckInStrategyFactory().for_checkin(now=now, session_start=START, grace_minutes=15)

    assert isinstance(strategy, LateStrategy)


def test_strategies_decide_status():
    now = datetime(2026, 3, 2, 10, 30)

    assert NormalStrategy().decide_checkin(now=now, session_start=START, grace_minutes=15).status == AttendanceStatus.PRESENT
    assert LateStrategy().decide_checkin(now=now, session_start=START, grace_minutes=15).status == AttendanceStatus.LATE
