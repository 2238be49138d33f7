from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import (
    optional_str,
    require_email,
    require_max_length,
    require_min_length,
    require_non_empty,
)
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import Actor, User
from .repository import UserRepository
from .tokens import TokenCodec


@dataclass(frozen=True)
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


class AuthService:
    """Use cases: login, self registration, token refresh, bearer token resolution."""

    def __init__(self, users: UserRepository, tokens: TokenCodec):
        self._users = users
        self._tokens = tokens

    def _issue(self, user: User) -> LoginResult:
        # One refresh token per user; issuing a new one revokes the previous.
        refresh_token = self._tokens.issue_refresh(user)
        self._users.set_refresh_token(user.user_id, refresh_token)
        return LoginResult(user=user, access_token=self._tokens.issue(user), refresh_token=refresh_token)

    def authenticate(self, email: str, password: str) -> LoginResult:
        if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
            raise ValidationError("Please provide email and password")

        user = self._users.get_by_email(email.strip().lower())
        if not user:
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated. Please contact administrator.")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid credentials")

        return self._issue(user)

    def register(self, *, name: str, email: str, password: str, batch: Optional[str] = None) -> LoginResult:
        """Self registration always creates a student account."""

        name = require_non_empty(name, "Name")
        require_max_length(name, "Name", 100)
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ValidationError("User already exists with this email")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=Role.STUDENT,
            batch=optional_str(batch),
        )
        return self._issue(self._users.get_by_id(user_id))

    def refresh(self, refresh_token: str) -> LoginResult:
        """Rotate the refresh token and hand out a new access token."""

        if not isinstance(refresh_token, str) or not refresh_token.strip():
            raise ValidationError("Refresh token is required")

        claims = self._tokens.decode_refresh(refresh_token)
        user = self._users.get_by_id(claims.user_id)
        if not user or self._users.get_refresh_token(user.user_id) != refresh_token:
            raise AuthenticationError("Invalid refresh token")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return self._issue(user)

    def logout(self, actor: Actor) -> None:
        self._users.set_refresh_token(actor.user_id, None)

    def resolve_actor(self, token: str) -> Actor:
        claims = self._tokens.decode(token)
        user = self._users.get_by_id(claims.user_id)
        if not user:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("User account is deactivated")
        # Role comes from the stored user, not from the token.
        return Actor(user_id=user.user_id, role=user.role)


class UserService:
    """Use case: manage member accounts."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get(self, actor: Actor, user_id: int) -> User:
        if not actor.is_staff and actor.user_id != user_id:
            raise AuthorizationError("Not authorized to view this user")
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list(
        self,
        *,
        role: Optional[Role] = None,
        batch: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[User], int]:
        return self._users.list_page(role=role, batch=batch, offset=(page - 1) * limit, limit=limit)

    def update_profile(self, actor: Actor, user_id: int, *, name: Optional[str] = None, batch: Optional[str] = None) -> User:
        if not actor.is_admin and actor.user_id != user_id:
            raise AuthorizationError("Not authorized to update this user")
        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")

        name = optional_str(name)
        require_max_length(name, "Name", 100)
        self._users.update_profile(user_id, name=name, batch=optional_str(batch))
        return self._users.get_by_id(user_id)

    def deactivate(self, actor: Actor, user_id: int) -> None:
        """Soft delete: the account and its attendance history are kept."""

        if not actor.is_admin:
            raise AuthorizationError("Not authorized")

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.role == Role.ADMIN:
            raise ValidationError("Cannot deactivate an admin account")

        self._users.set_active(user_id, is_active=False)
