from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import SessionType


@dataclass(frozen=True)
class Session:
    """Domain entity: a scheduled club meeting."""

    session_id: int
    title: str
    date: date
    start_time: str
    end_time: str
    created_by: int
    type: SessionType = SessionType.WORKSHOP
    description: Optional[str] = None
    location: Optional[str] = None
    max_capacity: int = 100
    is_active: bool = True
    registered_users: tuple[int, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None

    @property
    def is_full(self) -> bool:
        return len(self.registered_users) >= self.max_capacity

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "title": self.title,
            "description": self.description,
            "date": self.date.isoformat(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "location": self.location,
            "type": self.type.value,
            "createdBy": self.created_by,
            "maxCapacity": self.max_capacity,
            "registeredUsers": list(self.registered_users),
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
