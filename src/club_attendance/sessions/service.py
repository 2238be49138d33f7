from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import parse_hhmm, parse_iso_date
from ..common.validators import optional_str, require_enum, require_max_length, require_non_empty
from ..core.constants import DEFAULT_MAX_CAPACITY, MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH
from ..core.enums import Role, SessionType
from ..core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from ..users.model import Actor
from ..users.repository import UserRepository
from .model import Session
from .qr import build_qr_payload
from .repository import SessionRepository

logger = logging.getLogger(__name__)


def _capacity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Max capacity must be a positive integer")
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Max capacity must be a positive integer")
    if capacity < 1:
        raise ValidationError("Max capacity must be a positive integer")
    return capacity


def _time(value: Any, field_name: str) -> str:
    t = parse_hhmm(require_non_empty(value, field_name))
    return t.strftime("%H:%M")


def _date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return parse_iso_date(require_non_empty(value, "Session date"))


class SessionService:
    """Session use cases: creation with roster seeding, and registrations."""

    def __init__(
        self,
        sessions: SessionRepository,
        users: UserRepository,
        attendance: AttendanceRepository,
        *,
        qr_token: str = "",
    ):
        self._sessions = sessions
        self._users = users
        self._attendance = attendance
        self._qr_token = qr_token

    def _require_staff(self, actor: Actor) -> None:
        if not actor.is_staff:
            raise AuthorizationError(f"Role '{actor.role.value}' is not authorized to manage sessions")

    def get(self, session_id: int) -> Session:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError("Session not found")
        return session

    def list(
        self,
        *,
        type: Optional[SessionType] = None,
        upcoming: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
        today: Optional[date] = None,
    ) -> tuple[Sequence[Session], int]:
        return self._sessions.list_page(
            type=type,
            upcoming=upcoming,
            today=today or date.today(),
            offset=(page - 1) * limit,
            limit=limit,
        )

    def create(self, actor: Actor, fields: Mapping[str, Any]) -> tuple[Session, int]:
        """Create a session, then give every active student an ``absent`` record.

        Returns the session and the number of seeded records. Seeding runs after
        the session is committed; when it fails the session is kept and 0 is returned.
        """

        self._require_staff(actor)

        title = require_non_empty(fields.get("title"), "Session title")
        require_max_length(title, "Title", MAX_TITLE_LENGTH)
        description = optional_str(fields.get("description"))
        require_max_length(description, "Description", MAX_DESCRIPTION_LENGTH)
        session_type = fields.get("type")

        session_id = self._sessions.create(
            title=title,
            date=_date(fields.get("date")),
            start_time=_time(fields.get("start_time"), "Start time"),
            end_time=_time(fields.get("end_time"), "End time"),
            created_by=actor.user_id,
            type=require_enum(session_type, SessionType, "session type") if session_type else SessionType.WORKSHOP,
            description=description,
            location=optional_str(fields.get("location")),
            max_capacity=_capacity(fields.get("max_capacity", DEFAULT_MAX_CAPACITY)),
        )

        seeded = self._seed_roster(session_id, marked_by=actor.user_id)
        return self.get(session_id), seeded

    def _seed_roster(self, session_id: int, *, marked_by: int) -> int:
        try:
            student_ids = self._users.list_active_ids_by_role(Role.STUDENT)
            if not student_ids:
                return 0
            return self._attendance.seed_absent(session_id=session_id, user_ids=student_ids, marked_by=marked_by)
        except Exception:
            logger.warning("Attendance seeding failed for session %s", session_id, exc_info=True)
            return 0

    def update(self, actor: Actor, session_id: int, fields: Mapping[str, Any]) -> Session:
        """Only whitelisted fields are applied; attendance records are untouched."""

        self._require_staff(actor)
        self.get(session_id)

        changes: dict[str, Any] = {}
        if "title" in fields:
            title = require_non_empty(fields["title"], "Session title")
            changes["title"] = require_max_length(title, "Title", MAX_TITLE_LENGTH)
        if "description" in fields:
            description = optional_str(fields["description"])
            changes["description"] = require_max_length(description, "Description", MAX_DESCRIPTION_LENGTH)
        if "date" in fields:
            changes["date"] = _date(fields["date"])
        if "start_time" in fields:
            changes["start_time"] = _time(fields["start_time"], "Start time")
        if "end_time" in fields:
            changes["end_time"] = _time(fields["end_time"], "End time")
        if "location" in fields:
            changes["location"] = optional_str(fields["location"])
        if "type" in fields:
            changes["type"] = require_enum(fields["type"], SessionType, "session type")
        if "max_capacity" in fields:
            changes["max_capacity"] = _capacity(fields["max_capacity"])
        if "is_active" in fields:
            if not isinstance(fields["is_active"], bool):
                raise ValidationError("isActive must be a boolean")
            changes["is_active"] = fields["is_active"]

        if changes:
            self._sessions.update(session_id, changes)
        return self.get(session_id)

    def delete(self, actor: Actor, session_id: int) -> None:
        """Soft delete: attendance history stays queryable."""

        if not actor.is_admin:
            raise AuthorizationError(f"Role '{actor.role.value}' is not authorized to delete sessions")
        self.get(session_id)
        self._sessions.update(session_id, {"is_active": False})

    def register(self, actor: Actor, session_id: int) -> None:
        session = self.get(session_id)
        if not session.is_active:
            raise InvalidStateError("Session is not active")
        if actor.user_id in session.registered_users:
            raise InvalidStateError("Already registered for this session")
        if session.is_full:
            raise InvalidStateError("Session is full")
        if not self._sessions.add_registration(session_id, actor.user_id):
            raise InvalidStateError("Already registered for this session")

    def unregister(self, actor: Actor, session_id: int) -> None:
        self.get(session_id)
        self._sessions.remove_registration(session_id, actor.user_id)

    def upcoming(self, *, limit: int, now: datetime | None = None) -> Sequence[Session]:
        now = now or datetime.now()
        return self._sessions.list_upcoming(today=now.date(), limit=limit)

    def recent(self, *, limit: int) -> Sequence[Session]:
        sessions, _ = self._sessions.list_page(offset=0, limit=limit)
        return sessions

    def qr_payload(self, actor: Actor, session_id: int) -> str:
        self._require_staff(actor)
        session = self.get(session_id)
        if not session.is_active:
            raise InvalidStateError("Session is not active")
        return build_qr_payload(self._qr_token, session.session_id)
