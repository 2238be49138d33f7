from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .strategies.base import CheckInStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class CheckInStrategyFactory:
    """Factory Pattern: choose the check-in strategy from the session start and grace window."""

    def for_checkin(self, *, now: datetime, session_start: datetime, grace_minutes: int) -> CheckInStrategy:
        # The grace boundary itself still counts as on time.
        if now <= session_start + timedelta(minutes=grace_minutes):
            return NormalStrategy()
        return LateStrategy()
