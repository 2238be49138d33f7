from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: Plain data object (no DB access code).
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    batch: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    def to_public_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "batch": self.batch,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Actor:
    """Who performs an operation; passed explicitly into every service call."""

    user_id: int
    role: Role

    @property
    def is_staff(self) -> bool:
        return self.role.is_staff

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
