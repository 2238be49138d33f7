from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import CheckInStrategy, StatusDecision


class LateStrategy(CheckInStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, session_start: datetime, grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, message="Checked in (late)")
