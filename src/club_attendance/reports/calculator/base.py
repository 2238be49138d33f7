from __future__ import annotations

from abc import ABC, abstractmethod


class AttendanceRateCalculator(ABC):
    """Calculator interface (Strategy Pattern for participation rates)."""

    @abstractmethod
    def rate(self, *, attended: int, total: int) -> int:
        """Whole-number percentage of ``attended`` over ``total``; 0 when ``total`` is 0."""

        raise NotImplementedError
