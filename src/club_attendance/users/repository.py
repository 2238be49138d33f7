from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        batch: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_profile(self, user_id: int, *, name: Optional[str], batch: Optional[str]) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def get_refresh_token(self, user_id: int) -> Optional[str]:
        raise NotImplementedError

    def set_refresh_token(self, user_id: int, token: Optional[str]) -> None:
        """Store the user's current refresh token; ``None`` revokes it."""

        raise NotImplementedError

    def list_active_ids_by_role(self, role: Role) -> Sequence[int]:
        """Ids of active users with the given role (session seeding)."""

        raise NotImplementedError

    def list_page(
        self,
        *,
        role: Optional[Role] = None,
        batch: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[User], int]:
        """Active users ordered by name, plus the total matching count."""

        raise NotImplementedError

    def count_active_by_role(self) -> dict[Role, int]:
        raise NotImplementedError

    def growth_by_month(self, *, start: Optional[date] = None, end: Optional[date] = None) -> Sequence[dict]:
        """Active users grouped by creation year/month: ``{year, month, count}``."""

        raise NotImplementedError
