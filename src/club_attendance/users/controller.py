from __future__ import annotations

from flask import Flask, request

from ..common.auth import current_actor
from ..common.responses import json_body, ok, page_args, pagination
from ..common.validators import require_enum
from ..core.constants import API_PREFIX
from ..core.enums import Role
from ..container import Container
from .service import LoginResult


def _token_payload(result: LoginResult) -> dict:
    return {
        "user": result.user.to_public_dict(),
        "accessToken": result.access_token,
        "refreshToken": result.refresh_token,
    }


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route(f"{API_PREFIX}/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        body = json_body()
        result = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))
        return ok(
            _token_payload(result),
            message="Login successful",
        )

    @app.route(f"{API_PREFIX}/auth/register", methods=["POST"], endpoint="auth_register")
    def register_account():
        body = json_body()
        result = container.auth_service.register(
            name=body.get("name", ""),
            email=body.get("email", ""),
            password=body.get("password", ""),
            batch=body.get("batch"),
        )
        return ok(
            _token_payload(result),
            message="User registered successfully",
            status=201,
        )

    @app.route(f"{API_PREFIX}/auth/refresh-token", methods=["POST"], endpoint="auth_refresh")
    def refresh_token():
        result = container.auth_service.refresh(json_body().get("refreshToken"))
        return ok({"accessToken": result.access_token, "refreshToken": result.refresh_token})

    @app.route(f"{API_PREFIX}/auth/logout", methods=["POST"], endpoint="auth_logout")
    @guards.login_required
    def logout():
        container.auth_service.logout(current_actor())
        return ok(None, message="Logged out successfully")

    @app.route(f"{API_PREFIX}/auth/me", methods=["GET"], endpoint="auth_me")
    @guards.login_required
    def me():
        actor = current_actor()
        user = container.user_service.get(actor, actor.user_id)
        return ok(user.to_public_dict())

    @app.route(f"{API_PREFIX}/users", methods=["GET"], endpoint="users_list")
    @guards.staff_required
    def list_users():
        page, limit = page_args()
        role_s = request.args.get("role")
        role = require_enum(role_s, Role, "role") if role_s else None
        users, total = container.user_service.list(
            role=role,
            batch=request.args.get("batch") or None,
            page=page,
            limit=limit,
        )
        return ok(
            [u.to_public_dict() for u in users],
            pagination=pagination(page=page, limit=limit, total=total),
        )

    @app.route(f"{API_PREFIX}/users/<int:user_id>", methods=["GET"], endpoint="users_get")
    @guards.login_required
    def get_user(user_id: int):
        user = container.user_service.get(current_actor(), user_id)
        return ok(user.to_public_dict())

    @app.route(f"{API_PREFIX}/users/<int:user_id>", methods=["PUT"], endpoint="users_update")
    @guards.login_required
    def update_user(user_id: int):
        body = json_body()
        user = container.user_service.update_profile(
            current_actor(),
            user_id,
            name=body.get("name"),
            batch=body.get("batch"),
        )
        return ok(user.to_public_dict(), message="Profile updated successfully")

    @app.route(f"{API_PREFIX}/users/<int:user_id>", methods=["DELETE"], endpoint="users_deactivate")
    @guards.admin_required
    def deactivate_user(user_id: int):
        container.user_service.deactivate(current_actor(), user_id)
        return ok(None, message="User deactivated successfully")
