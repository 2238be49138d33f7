from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import combine_session_start
from ..common.validators import optional_str, require_max_length
from ..core.constants import DEFAULT_BULK_MARK_WORKERS, DEFAULT_LATE_GRACE_MINUTES, MAX_NOTES_LENGTH
from ..core.enums import AttendanceStatus, CheckInMethod
from ..core.exceptions import AuthorizationError, ConflictError, DomainError, InvalidStateError, NotFoundError
from ..reports.model import AttendanceSummary
from ..reports.service import AttendanceReportService
from ..sessions.model import Session
from ..sessions.qr import parse_qr_payload
from ..sessions.repository import SessionRepository
from ..users.model import Actor
from ..users.repository import UserRepository
from .factory import CheckInStrategyFactory
from .model import AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkEntry:
    user_id: int
    status: AttendanceStatus
    notes: Optional[str] = None


@dataclass(frozen=True)
class MarkResult:
    user_id: int
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict = {"userId": self.user_id, "success": self.success}
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class BulkMarkResult:
    results: list[MarkResult]
    summary: AttendanceSummary

    def to_dict(self) -> dict:
        return {"results": [r.to_dict() for r in self.results], "summary": self.summary.to_dict()}


@dataclass(frozen=True)
class CheckInResult:
    record: AttendanceRecord
    message: str


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: SessionRepository,
        users: UserRepository,
        reports: AttendanceReportService,
        *,
        strategy_factory: CheckInStrategyFactory | None = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        bulk_workers: int = DEFAULT_BULK_MARK_WORKERS,
        qr_token: str = "",
    ):
        self._attendance = attendance
        self._sessions = sessions
        self._users = users
        self._reports = reports
        self._factory = strategy_factory or CheckInStrategyFactory()
        self._grace_minutes = int(grace_minutes)
        self._bulk_workers = max(int(bulk_workers), 1)
        self._qr_token = qr_token

    def _require_session(self, session_id: int) -> Session:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError("Session not found")
        return session

    def _require_staff(self, actor: Actor) -> None:
        if not actor.is_staff:
            raise AuthorizationError(f"Role '{actor.role.value}' is not authorized to mark attendance")

    def _mark_one(self, session_id: int, entry: MarkEntry, *, marked_by: int, now: datetime) -> AttendanceRecord:
        if not self._users.get_by_id(entry.user_id):
            raise NotFoundError("User not found")

        notes = optional_str(entry.notes)
        require_max_length(notes, "Notes", MAX_NOTES_LENGTH)

        self._attendance.upsert_mark(
            user_id=entry.user_id,
            session_id=session_id,
            status=entry.status,
            marked_by=marked_by,
            notes=notes,
            now=now,
        )
        return self._attendance.get_for_user_and_session(entry.user_id, session_id)

    def mark(
        self,
        actor: Actor,
        session_id: int,
        entry: MarkEntry,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """Manual mark. Any status may follow any other; the first check-in time is kept."""

        self._require_staff(actor)
        self._require_session(session_id)
        return self._mark_one(session_id, entry, marked_by=actor.user_id, now=now or datetime.now())

    def bulk_mark(
        self,
        actor: Actor,
        session_id: int,
        entries: Sequence[MarkEntry],
        *,
        now: datetime | None = None,
    ) -> BulkMarkResult:
        """Mark every entry independently; a failing entry is reported, never raised."""

        self._require_staff(actor)
        self._require_session(session_id)
        now = now or datetime.now()

        def run(entry: MarkEntry) -> MarkResult:
            try:
                self._mark_one(session_id, entry, marked_by=actor.user_id, now=now)
                return MarkResult(user_id=entry.user_id, success=True)
            except DomainError as e:
                return MarkResult(user_id=entry.user_id, success=False, error=str(e))
            except Exception as e:
                logger.warning("Bulk mark failed for user %s in session %s", entry.user_id, session_id, exc_info=True)
                return MarkResult(user_id=entry.user_id, success=False, error=str(e))

        if entries:
            with ThreadPoolExecutor(max_workers=min(self._bulk_workers, len(entries))) as pool:
                results = list(pool.map(run, entries))
        else:
            results = []

        return BulkMarkResult(results=results, summary=self._reports.session_summary(session_id))

    def self_check_in(self, actor: Actor, session_id: int, *, now: datetime | None = None) -> CheckInResult:
        return self._check_in(actor, self._require_session(session_id), method=CheckInMethod.SELF, now=now)

    def qr_check_in(self, actor: Actor, qr_data: str, *, now: datetime | None = None) -> CheckInResult:
        session_id = parse_qr_payload(self._qr_token, qr_data)
        return self._check_in(actor, self._require_session(session_id), method=CheckInMethod.QR, now=now)

    def _check_in(self, actor: Actor, session: Session, *, method: CheckInMethod, now: datetime | None) -> CheckInResult:
        now = now or datetime.now()

        if session.date != now.date():
            raise InvalidStateError("Can only check in on the session day")

        existing = self._attendance.get_for_user_and_session(actor.user_id, session.session_id)
        # Only 'present' blocks a repeat; a 'late' record is checked in again.
        if existing and existing.status == AttendanceStatus.PRESENT:
            raise ConflictError("Already checked in")

        session_start = combine_session_start(session.date, session.start_time)
        strategy = self._factory.for_checkin(now=now, session_start=session_start, grace_minutes=self._grace_minutes)
        decision = strategy.decide_checkin(now=now, session_start=session_start, grace_minutes=self._grace_minutes)

        self._attendance.upsert_check_in(
            user_id=actor.user_id,
            session_id=session.session_id,
            status=decision.status,
            method=method,
            check_in_time=now,
        )
        record = self._attendance.get_for_user_and_session(actor.user_id, session.session_id)
        return CheckInResult(record=record, message=decision.message or "Checked in successfully")

    def for_session(self, session_id: int) -> tuple[Session, Sequence[AttendanceReportRow], AttendanceSummary]:
        session = self._require_session(session_id)
        rows = self._attendance.list_for_session(session_id)
        return session, rows, self._reports.session_summary(session_id)

    def for_user(self, actor: Actor, user_id: int) -> tuple[Sequence[AttendanceReportRow], AttendanceSummary]:
        if not actor.is_staff and actor.user_id != user_id:
            raise AuthorizationError("Not authorized to view this data")
        return self._attendance.list_for_user(user_id), self._reports.user_summary(user_id)

    def recent_for_user(self, user_id: int, *, limit: int) -> Sequence[AttendanceReportRow]:
        return self._attendance.list_for_user(user_id, limit=limit)
