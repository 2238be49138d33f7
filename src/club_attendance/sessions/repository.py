from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import SessionType
from .model import Session


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[Session]:
        """Session with its registered user ids, active or not."""

        raise NotImplementedError

    def create(
        self,
        *,
        title: str,
        date: date,
        start_time: str,
        end_time: str,
        created_by: int,
        type: SessionType,
        description: Optional[str],
        location: Optional[str],
        max_capacity: int,
    ) -> int:
        raise NotImplementedError

    def update(self, session_id: int, fields: Mapping[str, Any]) -> bool:
        """Apply already-validated column values (snake_case model names)."""

        raise NotImplementedError

    def list_page(
        self,
        *,
        type: Optional[SessionType] = None,
        upcoming: Optional[bool] = None,
        today: Optional[date] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Session], int]:
        """Active sessions, newest first, plus the total matching count.

        ``upcoming=True`` keeps ``date >= today``, ``False`` keeps ``date < today``.
        """

        raise NotImplementedError

    def list_active_in_range(self, *, start: Optional[date] = None, end: Optional[date] = None) -> Sequence[Session]:
        raise NotImplementedError

    def list_upcoming(self, *, today: date, limit: int) -> Sequence[Session]:
        raise NotImplementedError

    def add_registration(self, session_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def remove_registration(self, session_id: int, user_id: int) -> bool:
        raise NotImplementedError
