from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING, Callable

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError

if TYPE_CHECKING:
    from ..users.model import Actor
    from ..users.service import AuthService


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise AuthenticationError("Not authorized, no token provided")
    token = header[len("Bearer "):].strip()
    if not token:
        raise AuthenticationError("Not authorized, no token provided")
    return token


def current_actor() -> "Actor":
    actor = getattr(g, "actor", None)
    if actor is None:
        raise AuthenticationError("Not authorized")
    return actor


class Guards:
    """View decorators that resolve the bearer token into ``g.actor``."""

    def __init__(self, auth_service: "AuthService"):
        self._auth = auth_service

    def login_required(self, view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.actor = self._auth.resolve_actor(bearer_token())
            return view(*args, **kwargs)

        return wrapper

    def roles_required(self, *roles: Role) -> Callable[[Callable], Callable]:
        allowed = set(roles)

        def decorator(view: Callable) -> Callable:
            @wraps(view)
            def wrapper(*args, **kwargs):
                actor = self._auth.resolve_actor(bearer_token())
                if actor.role not in allowed:
                    raise AuthorizationError(f"Role '{actor.role.value}' is not authorized to access this route")
                g.actor = actor
                return view(*args, **kwargs)

            return wrapper

        return decorator

    def staff_required(self, view: Callable) -> Callable:
        return self.roles_required(Role.TEACHER, Role.ADMIN)(view)

    def admin_required(self, view: Callable) -> Callable:
        return self.roles_required(Role.ADMIN)(view)
