from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    message: Optional[str] = None


class CheckInStrategy(ABC):
    """Strategy Pattern: encapsulate how a check-in status is decided."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, session_start: datetime, grace_minutes: int) -> StatusDecision:
        raise NotImplementedError
