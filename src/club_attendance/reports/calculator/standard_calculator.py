from __future__ import annotations

from .base import AttendanceRateCalculator


class StandardRateCalculator(AttendanceRateCalculator):
    """Standard rule: attended / total * 100, halves rounded up."""

    def rate(self, *, attended: int, total: int) -> int:
        if total <= 0:
            return 0
        # Integer form of floor(x + 0.5) avoids float and banker's rounding.
        return (200 * attended + total) // (2 * total)
