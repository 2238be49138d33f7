from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import CheckInStrategy, StatusDecision


class NormalStrategy(CheckInStrategy):
    """Check-in within the grace window."""

    def decide_checkin(self, *, now: datetime, session_start: datetime, grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT, message="Checked in successfully")
