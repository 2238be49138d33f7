from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from .model import AttendanceRecord, AttendanceReportRow


class AttendanceRepository(Protocol):
    """Every write is an atomic upsert keyed on (user_id, session_id)."""

    def get_for_user_and_session(self, user_id: int, session_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert_mark(
        self,
        *,
        user_id: int,
        session_id: int,
        status: AttendanceStatus,
        marked_by: int,
        notes: Optional[str],
        now: datetime,
    ) -> None:
        """Manual mark: ``check_in_time`` is only filled when still empty and ``status`` is attended."""

        raise NotImplementedError

    def upsert_check_in(
        self,
        *,
        user_id: int,
        session_id: int,
        status: AttendanceStatus,
        method: CheckInMethod,
        check_in_time: datetime,
    ) -> None:
        """Self/QR check-in: overwrites status, method and check_in_time; keeps notes and marked_by."""

        raise NotImplementedError

    def seed_absent(self, *, session_id: int, user_ids: Sequence[int], marked_by: int) -> int:
        """Insert one ``absent``/``auto`` record per user in one batch; existing pairs are left alone."""

        raise NotImplementedError

    def count_by_status(
        self,
        *,
        session_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> dict[AttendanceStatus, int]:
        raise NotImplementedError

    def count_by_session_and_status(self, session_ids: Sequence[int]) -> dict[int, dict[AttendanceStatus, int]]:
        """Counts per session; sessions without records are absent from the result."""

        raise NotImplementedError

    def trends_by_month(self) -> list[dict]:
        """``[{year, month, status, count}]`` keyed on the session date, oldest first."""

        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[AttendanceReportRow]:
        """Rows ordered by user name."""

        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[AttendanceReportRow]:
        """Rows ordered by session date, newest first."""

        raise NotImplementedError
